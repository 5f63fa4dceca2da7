# SPDX-License-Identifier: LGPL-3.0-or-later
"""End-to-end reconciliation against the in-memory host."""
from __future__ import annotations

import io

import pytest
from rich.console import Console

from hvnat.config.model import Action
from hvnat.config.validator import validate_document
from hvnat.core.exceptions import ProvisioningError, RollbackError
from hvnat.reconcile.reconciler import Reconciler


def _console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def _reconciler(host, logger, console=None):
    return Reconciler(host, logger, settle_seconds=1, sleep=lambda s: None, console=console or _console())


@pytest.fixture
def config(sample_doc):
    return validate_document(sample_doc)


@pytest.mark.unit
class TestApply:
    def test_apply_on_clean_host(self, fake_host, fake_logger, config):
        report = _reconciler(fake_host, fake_logger).run(config)

        assert report.ok
        assert report.teardown.deletions == 0
        assert report.provision.state.value == "ready"
        assert report.rollback is None
        assert fake_host.snapshot()["switches"] == ["DevNet-Switch"]

    def test_apply_twice_is_idempotent(self, fake_host, fake_logger, config):
        rec = _reconciler(fake_host, fake_logger)
        rec.run(config)
        first = fake_host.snapshot()

        second_report = rec.run(config)

        assert second_report.ok
        assert second_report.teardown.deletions == 5
        assert fake_host.snapshot() == first

    def test_apply_replaces_stale_rules(self, fake_host, fake_logger, sample_doc):
        rec = _reconciler(fake_host, fake_logger)
        rec.run(validate_document(sample_doc))

        sample_doc["portForwarding"] = sample_doc["portForwarding"][:1]
        sample_doc["portForwarding"][0]["externalPort"] = 9090
        rec.run(validate_document(sample_doc))

        assert fake_host.snapshot()["mappings"] == [("DevNet-NAT", "TCP", 9090, "192.168.100.10", 80)]

    def test_nat_failure_rolls_back_switch_and_ip(self, fake_host, fake_logger, config):
        fake_host.fail_on["New-NetNat"] = "The object already exists"
        rec = _reconciler(fake_host, fake_logger)

        with pytest.raises(ProvisioningError):
            rec.run(config)

        report = rec.last_report
        assert report.rollback is not None and report.rollback.ok
        assert "switch:DevNet-Switch" in report.rollback.removed
        assert "ip:192.168.100.1/24" in report.rollback.removed
        assert fake_host.snapshot() == {"switches": [], "ips": {}, "nats": {}, "mappings": []}
        assert not report.ok

    def test_failed_rollback_lists_manual_steps(self, fake_host, fake_logger, config):
        fake_host.fail_on["New-NetNat"] = "quota"
        fake_host.fail_on["Remove-VMSwitch"] = "in use by VM"
        rec = _reconciler(fake_host, fake_logger)

        with pytest.raises(RollbackError) as ei:
            rec.run(config)

        err = ei.value
        assert isinstance(err.cause, ProvisioningError)
        assert "VMSwitch 'DevNet-Switch'" in err.resources
        assert "Remove-VMSwitch -Name 'DevNet-Switch' -Force" in err.remediation
        assert "Remove-VMSwitch -Name 'DevNet-Switch' -Force" in fake_logger.text()
        # Rollback ran exactly once (no retry).
        assert [c[0] for c in fake_host.calls].count("Remove-VMSwitch") == 1

    def test_teardown_warning_does_not_block_apply(self, fake_host, fake_logger, config):
        rec = _reconciler(fake_host, fake_logger)
        rec.run(config)
        fake_host.fail_on["Get-NetNatStaticMapping"] = "transient"

        report = rec.run(config)

        assert report.ok
        assert any("teardown port-mappings" in w for w in report.warnings)
        assert fake_host.snapshot()["switches"] == ["DevNet-Switch"]

    def test_summary_printed(self, fake_host, fake_logger, config):
        console = _console()
        _reconciler(fake_host, fake_logger, console).run(config)
        out = console.file.getvalue()
        assert "Default gateway         : 192.168.100.1" in out
        assert "web01" in out
        assert "192.168.100.10/24" in out
        assert "8080" in out

    def test_out_of_subnet_rule_warned(self, fake_host, fake_logger, sample_doc):
        sample_doc["portForwarding"][0]["internalIP"] = "10.9.9.9"
        report = _reconciler(fake_host, fake_logger).run(validate_document(sample_doc))
        assert report.ok
        assert report.warnings and "outside" in report.warnings[0]


@pytest.mark.unit
class TestRemove:
    def test_remove_when_nothing_exists(self, fake_host, fake_logger, config):
        report = _reconciler(fake_host, fake_logger).run(config.with_action(Action.REMOVE))

        assert report.ok
        assert report.teardown.deletions == 0
        assert fake_host.mutations() == []
        assert report.provision is None

    def test_remove_after_apply(self, fake_host, fake_logger, config):
        rec = _reconciler(fake_host, fake_logger)
        rec.run(config)
        report = rec.run(config.with_action(Action.REMOVE))

        assert report.ok
        assert report.teardown.deletions == 5
        assert fake_host.snapshot() == {"switches": [], "ips": {}, "nats": {}, "mappings": []}

    def test_remove_with_failure_is_not_ok(self, fake_host, fake_logger, config):
        rec = _reconciler(fake_host, fake_logger)
        rec.run(config)
        fake_host.fail_on["Remove-NetIPAddress"] = "denied"

        report = rec.run(config.with_action(Action.REMOVE))

        assert not report.ok
        assert fake_host.switches == {}
        assert any(e.startswith("teardown ip-address") for e in report.to_jsonable()["errors"])
