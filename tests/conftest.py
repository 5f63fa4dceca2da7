# SPDX-License-Identifier: GPL-2.0-or-later
import copy
import json
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

for p in (_REPO_ROOT, _THIS_DIR):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from fakes.fake_host import FakeHost  # noqa: E402
from fakes.fake_logger import FakeLogger  # noqa: E402

SAMPLE_DOC = {
    "action": "apply",
    "network": {"name": "DevNet", "subnet": "192.168.100.0/24"},
    "portForwarding": [
        {"name": "web", "protocol": "TCP", "externalPort": 8080, "internalIP": "192.168.100.10", "internalPort": 80},
        {"name": "dns", "protocol": "udp", "externalPort": 5353, "internalIP": "192.168.100.11", "internalPort": 53},
    ],
    "vms": [
        {"name": "web01", "ip": "192.168.100.10", "memo": "nginx"},
        {"name": "dns01", "ip": "192.168.100.11"},
    ],
}


@pytest.fixture
def sample_doc():
    return copy.deepcopy(SAMPLE_DOC)


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def fake_logger():
    return FakeLogger()


@pytest.fixture
def write_config(tmp_path):
    def _write(doc, name="network.json"):
        p = tmp_path / name
        if isinstance(doc, str):
            p.write_text(doc, encoding="utf-8")
        else:
            p.write_text(json.dumps(doc), encoding="utf-8")
        return p

    return _write
