# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import io

import pytest
from rich.console import Console

from hvnat.config.validator import validate_document
from hvnat.naming import ResourceNames
from hvnat.reconcile.summary import forwarding_table, print_summary, vm_table


def _render(config):
    buf = io.StringIO()
    print_summary(config, ResourceNames.for_network(config.network.name), Console(file=buf, width=140))
    return buf.getvalue()


@pytest.mark.unit
def test_summary_lists_guest_settings(sample_doc):
    out = _render(validate_document(sample_doc))
    assert "DevNet-Switch" in out
    assert "255.255.255.0" in out
    assert "192.168.100.1" in out
    assert "192.168.100.10/24" in out
    assert "nginx" in out
    assert "192.168.100.11:53" in out


@pytest.mark.unit
def test_empty_sections_are_omitted(sample_doc):
    sample_doc["vms"] = []
    sample_doc["portForwarding"] = []
    cfg = validate_document(sample_doc)
    assert vm_table(cfg) is None
    assert forwarding_table(cfg) is None
    out = _render(cfg)
    assert "Port forwarding" not in out
    assert "Default gateway" in out
