# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/reconcile/reconciler.py
"""
Clean-slate reconciliation of one NAT network.

apply:  teardown -> provision (inside a rollback guard)
remove: teardown
"""
from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from rich.console import Console

from ..config.model import Action, ReconciliationConfig
from ..core.exceptions import HvNatError, RollbackError
from ..core.logger import Log
from ..hyperv.base import NetworkHost
from ..naming import ResourceNames
from .provision import DEFAULT_SETTLE_SECONDS, ProvisioningExecutor, ProvisionResult
from .summary import print_summary
from .teardown import TeardownExecutor, TeardownReport


@dataclass
class RunReport:
    action: str
    names: ResourceNames
    teardown: Optional[TeardownReport] = None
    provision: Optional[ProvisionResult] = None
    rollback: Optional[TeardownReport] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    failure: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "names": asdict(self.names),
            "ok": self.ok,
            "teardown": self.teardown.to_jsonable() if self.teardown else None,
            "provision": self.provision.to_jsonable() if self.provision else None,
            "rollback": self.rollback.to_jsonable() if self.rollback else None,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "failure": self.failure,
        }


def _teardown_warnings(td: TeardownReport) -> List[str]:
    return [f"teardown {r.kind.value}: {r.error}" for r in td.failures]


def _failure_details(e: BaseException) -> Dict[str, Any]:
    if isinstance(e, HvNatError):
        return e.to_dict(include_cause=True)
    return {"type": type(e).__name__, "message": str(e)}


@contextlib.contextmanager
def rollback_on_failure(
    teardown: TeardownExecutor,
    names: ResourceNames,
    report: RunReport,
    logger: logging.Logger,
) -> Iterator[None]:
    """
    Guard for the provisioning step: any exception re-runs teardown for the
    same names once. If that leaves resources behind, RollbackError replaces
    the original error and lists what to clean up by hand.
    """
    try:
        yield
    except Exception as e:
        report.errors.append(str(e))
        report.failure = _failure_details(e)
        Log.warn(logger, f"Rolling back '{names.network}' after failure")
        rb = teardown.run(names)
        report.rollback = rb
        if rb.ok:
            Log.ok(logger, "Rollback complete; host is back to a clean state", removed=rb.deletions)
            raise

        resources = names.describe()
        commands = names.remediation_commands()
        report.errors.extend(_teardown_warnings(rb))
        Log.fail(logger, "Rollback incomplete. Remove these resources manually:")
        for r in resources:
            logger.error("   - %s", r)
        logger.error("   Elevated PowerShell:")
        for cmd in commands:
            logger.error("     %s", cmd)
        raise RollbackError(
            code=1,
            msg=f"Rollback of '{names.network}' incomplete after: {e}",
            cause=e,
            context={"network": names.network},
            resources=resources,
            remediation=commands,
        ) from e


class Reconciler:
    def __init__(
        self,
        host: NetworkHost,
        logger: logging.Logger,
        *,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        console: Optional[Console] = None,
        show_summary: bool = True,
    ):
        self.host = host
        self.logger = logger
        self.teardown = TeardownExecutor(host, logger)
        self.provisioner = ProvisioningExecutor(host, logger, settle_seconds=settle_seconds, sleep=sleep)
        self.console = console
        self.show_summary = show_summary
        self.last_report: Optional[RunReport] = None

    def run(self, config: ReconciliationConfig) -> RunReport:
        names = ResourceNames.for_network(config.network.name)
        report = RunReport(action=config.action.value, names=names)
        self.last_report = report

        for w in config.config_warnings():
            Log.warn(self.logger, w)
            report.warnings.append(w)

        if config.action is Action.REMOVE:
            return self._remove(names, report)
        return self._apply(config, names, report)

    def _remove(self, names: ResourceNames, report: RunReport) -> RunReport:
        td = self.teardown.run(names)
        report.teardown = td
        # Nothing follows a remove, so leftovers are the run's failure.
        report.errors.extend(_teardown_warnings(td))
        if td.ok:
            Log.ok(self.logger, f"Network '{names.network}' removed", deletions=td.deletions)
        return report

    def _apply(self, config: ReconciliationConfig, names: ResourceNames, report: RunReport) -> RunReport:
        td = self.teardown.run(names)
        report.teardown = td
        report.warnings.extend(_teardown_warnings(td))

        with rollback_on_failure(self.teardown, names, report, self.logger):
            report.provision = self.provisioner.run(config, names)

        if self.show_summary:
            print_summary(config, names, self.console)
        return report
