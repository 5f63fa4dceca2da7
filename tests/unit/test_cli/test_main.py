# SPDX-License-Identifier: LGPL-3.0-or-later
"""CLI flow: parse, load, confirm, reconcile, exit code."""
from __future__ import annotations

import io
import json
import logging

import pytest
from rich.console import Console

import hvnat.__main__ as hvnat_main
from hvnat.__main__ import make_host, run
from hvnat.cli.args import settings_from_args, build_parser
from hvnat.core.logger import LOGGER_NAME
from hvnat.hyperv.host import DryRunHost, PowerShellHost


def _run(argv, host, logger, stdin=""):
    return run(
        argv,
        host=host,
        stdin=io.StringIO(stdin),
        logger=logger,
        sleep=lambda s: None,
        console=Console(file=io.StringIO(), width=120),
    )


@pytest.mark.unit
class TestExitCodes:
    def test_apply_confirmed_via_pipe(self, write_config, sample_doc, fake_host, fake_logger):
        rc = _run([str(write_config(sample_doc))], fake_host, fake_logger, stdin="y\n")
        assert rc == 0
        assert fake_host.snapshot()["nats"] == {"DevNet-NAT": "192.168.100.0/24"}

    @pytest.mark.parametrize("answer", ["n\n", "\n", "", "maybe\n"])
    def test_declined_or_eof_is_cancel(self, write_config, sample_doc, fake_host, fake_logger, answer):
        rc = _run([str(write_config(sample_doc))], fake_host, fake_logger, stdin=answer)
        assert rc == 0
        assert fake_host.calls == []
        assert any("Cancelled" in m for m in fake_logger.messages("warning"))

    def test_yes_flag_skips_prompt(self, write_config, sample_doc, fake_host, fake_logger):
        rc = _run([str(write_config(sample_doc)), "--yes"], fake_host, fake_logger, stdin="")
        assert rc == 0
        assert fake_host.switches

    def test_missing_config_is_failure(self, tmp_path, fake_host, fake_logger):
        rc = _run([str(tmp_path / "missing.json"), "-y"], fake_host, fake_logger)
        assert rc == 1
        assert fake_host.calls == []
        assert any("not found" in m for m in fake_logger.messages("error"))

    def test_invalid_config_never_touches_host(self, write_config, sample_doc, fake_host, fake_logger):
        sample_doc["portForwarding"][0]["externalPort"] = 65536
        rc = _run([str(write_config(sample_doc)), "-y"], fake_host, fake_logger)
        assert rc == 1
        assert fake_host.calls == []

    def test_host_failure_is_exit_1(self, write_config, sample_doc, fake_host, fake_logger):
        fake_host.fail_on["New-NetNat"] = "boom"
        rc = _run([str(write_config(sample_doc)), "-y"], fake_host, fake_logger)
        assert rc == 1
        assert fake_host.switches == {}

    def test_remove_override(self, write_config, sample_doc, fake_host, fake_logger):
        path = str(write_config(sample_doc))
        assert _run([path, "-y"], fake_host, fake_logger) == 0
        assert _run([path, "-y", "--action", "remove"], fake_host, fake_logger) == 0
        assert fake_host.snapshot()["switches"] == []

    def test_remove_with_leftovers_is_exit_1(self, write_config, sample_doc, fake_host, fake_logger):
        path = str(write_config(sample_doc))
        _run([path, "-y"], fake_host, fake_logger)
        fake_host.fail_on["Remove-VMSwitch"] = "in use"
        assert _run([path, "-y", "--action", "remove"], fake_host, fake_logger) == 1


@pytest.mark.unit
class TestOutputs:
    def test_show_config(self, write_config, sample_doc, fake_host, fake_logger, capsys):
        rc = _run([str(write_config(sample_doc)), "--show-config"], fake_host, fake_logger)
        assert rc == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["network"]["gateway"] == "192.168.100.1"
        assert fake_host.calls == []

    def test_report_written_on_failure(self, tmp_path, write_config, sample_doc, fake_host, fake_logger):
        report = tmp_path / "out" / "report.json"
        fake_host.fail_on["New-NetNat"] = "boom"
        rc = _run([str(write_config(sample_doc)), "-y", "--report", str(report)], fake_host, fake_logger)

        data = json.loads(report.read_text(encoding="utf-8"))
        assert rc == 1
        assert data["ok"] is False
        assert data["rollback"]["ok"] is True
        assert data["names"]["switch"] == "DevNet-Switch"
        assert data["failure"]["type"] == "ProvisioningError"
        assert data["failure"]["context"]["operation"] == "New-NetNat"


@pytest.mark.unit
class TestArgs:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HVNAT_SETTLE_SECONDS", raising=False)
        monkeypatch.delenv("HVNAT_POWERSHELL", raising=False)
        args = build_parser().parse_args(["net.json"])
        s = settings_from_args(args)
        assert s.settle_seconds == 5.0
        assert s.powershell is None
        assert s.timeout_s == 120
        assert not s.dry_run

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("HVNAT_SETTLE_SECONDS", "1.5")
        monkeypatch.setenv("HVNAT_POWERSHELL", "C:/pwsh/pwsh.exe")
        s = settings_from_args(build_parser().parse_args(["net.json"]))
        assert s.settle_seconds == 1.5
        assert s.powershell == "C:/pwsh/pwsh.exe"

    def test_rejects_unknown_action(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["net.json", "--action", "update"])

    @pytest.mark.parametrize("value", ["-1", "inf", "nan"])
    def test_bad_settle_rejected(self, write_config, sample_doc, fake_host, fake_logger, value):
        with pytest.raises(SystemExit):
            _run([str(write_config(sample_doc)), "-y", "--settle-seconds", value], fake_host, fake_logger)
        assert fake_host.calls == []

    def test_infinite_settle_from_env_rejected(self, monkeypatch, write_config, sample_doc, fake_host, fake_logger):
        monkeypatch.setenv("HVNAT_SETTLE_SECONDS", "inf")
        with pytest.raises(SystemExit):
            _run([str(write_config(sample_doc)), "-y"], fake_host, fake_logger)
        assert fake_host.calls == []

    def test_make_host(self, fake_logger):
        args = build_parser().parse_args(["net.json", "--powershell", "pwsh"])
        assert isinstance(make_host(settings_from_args(args), fake_logger), PowerShellHost)
        args = build_parser().parse_args(["net.json", "--powershell", "pwsh", "--dry-run"])
        assert isinstance(make_host(settings_from_args(args), fake_logger), DryRunHost)


class _Records(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.messages = []

    def emit(self, record):
        self.messages.append((record.levelname, record.getMessage()))


@pytest.mark.unit
class TestMainGuard:
    @pytest.fixture
    def records(self):
        logger = logging.getLogger(LOGGER_NAME)
        handler = _Records()
        old_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        yield handler
        logger.removeHandler(handler)
        logger.setLevel(old_level)

    def _boom(self, exc):
        def _run():
            raise exc

        return _run

    def test_unexpected_error_is_logged_not_printed(self, monkeypatch, records, capsys):
        monkeypatch.setattr(hvnat_main, "run", self._boom(OverflowError("timestamp out of range")))
        with pytest.raises(SystemExit) as ei:
            hvnat_main.main()

        assert ei.value.code == 1
        assert ("ERROR", "💥 UNHANDLED OverflowError: timestamp out of range") in records.messages
        assert "UNHANDLED" not in capsys.readouterr().err

    def test_ctrl_c_exits_130(self, monkeypatch, records):
        monkeypatch.setattr(hvnat_main, "run", self._boom(KeyboardInterrupt()))
        with pytest.raises(SystemExit) as ei:
            hvnat_main.main()

        assert ei.value.code == 130
        assert any("Interrupted" in m for _lvl, m in records.messages)
