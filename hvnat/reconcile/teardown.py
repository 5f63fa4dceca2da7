# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/reconcile/teardown.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

from ..core.exceptions import HostOperationError
from ..core.logger import Log
from ..hyperv.base import NetworkHost
from ..naming import ResourceNames


class ResourceKind(Enum):
    PORT_MAPPINGS = "port-mappings"
    NAT = "nat"
    IP_ADDRESS = "ip-address"
    SWITCH = "switch"


class Outcome(Enum):
    REMOVED = "removed"
    ABSENT = "absent"
    FAILED = "failed"


# Mappings hang off the NAT, and the IP lives on the switch's adapter: remove dependents first.
TEARDOWN_ORDER = (
    ResourceKind.PORT_MAPPINGS,
    ResourceKind.NAT,
    ResourceKind.IP_ADDRESS,
    ResourceKind.SWITCH,
)


@dataclass
class TeardownResult:
    kind: ResourceKind
    outcome: Outcome
    removed: List[str] = field(default_factory=list)
    error: str = ""

    def to_jsonable(self) -> Dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        d["outcome"] = self.outcome.value
        return d


@dataclass
class TeardownReport:
    names: ResourceNames
    results: List[TeardownResult] = field(default_factory=list)

    @property
    def removed(self) -> List[str]:
        return [r for res in self.results for r in res.removed]

    @property
    def deletions(self) -> int:
        return len(self.removed)

    @property
    def failures(self) -> List[TeardownResult]:
        return [r for r in self.results if r.outcome is Outcome.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "names": asdict(self.names),
            "results": [r.to_jsonable() for r in self.results],
            "deletions": self.deletions,
            "ok": self.ok,
        }


class TeardownExecutor:
    """
    Removes every host resource named after the network.

    Each resource kind is queried first; absence is a no-op. A host error in
    one kind is logged as a warning and the remaining kinds still run.
    """

    def __init__(self, host: NetworkHost, logger: logging.Logger):
        self.host = host
        self.logger = logger

    def run(self, names: ResourceNames) -> TeardownReport:
        Log.banner(self.logger, f"Teardown: {names.network}")
        report = TeardownReport(names=names)
        steps: Dict[ResourceKind, Callable[[ResourceNames, List[str]], None]] = {
            ResourceKind.PORT_MAPPINGS: self._remove_port_mappings,
            ResourceKind.NAT: self._remove_nat,
            ResourceKind.IP_ADDRESS: self._remove_ip_addresses,
            ResourceKind.SWITCH: self._remove_switch,
        }
        for kind in TEARDOWN_ORDER:
            report.results.append(self._run_step(kind, steps[kind], names))

        if report.ok:
            Log.ok(self.logger, f"Teardown complete ({report.deletions} deletion(s))", network=names.network)
        else:
            Log.warn(
                self.logger,
                f"Teardown finished with {len(report.failures)} failure(s)",
                network=names.network,
                failed=",".join(r.kind.value for r in report.failures),
            )
        return report

    def _run_step(
        self,
        kind: ResourceKind,
        fn: Callable[[ResourceNames, List[str]], None],
        names: ResourceNames,
    ) -> TeardownResult:
        removed: List[str] = []
        try:
            fn(names, removed)
        except HostOperationError as e:
            Log.warn(self.logger, f"Could not remove {kind.value}: {e}", operation=e.operation or kind.value)
            return TeardownResult(kind=kind, outcome=Outcome.FAILED, removed=removed, error=str(e))
        return TeardownResult(kind=kind, outcome=Outcome.REMOVED if removed else Outcome.ABSENT, removed=removed)

    def _remove_port_mappings(self, names: ResourceNames, removed: List[str]) -> None:
        mappings = self.host.get_static_mappings(names.nat)
        if not mappings:
            Log.skip(self.logger, f"No port mappings on NAT '{names.nat}'")
            return
        for m in mappings:
            Log.step(self.logger, f"Remove-NetNatStaticMapping {m.describe()}", nat=names.nat, id=m.mapping_id)
            self.host.remove_static_mapping(names.nat, m.mapping_id)
            removed.append(f"mapping:{m.describe()}")
        Log.ok(self.logger, f"Removed {len(removed)} port mapping(s)", nat=names.nat)

    def _remove_nat(self, names: ResourceNames, removed: List[str]) -> None:
        if self.host.get_nat(names.nat) is None:
            Log.skip(self.logger, f"NAT '{names.nat}' not present")
            return
        Log.step(self.logger, f"Remove-NetNat '{names.nat}'")
        self.host.remove_nat(names.nat)
        Log.ok(self.logger, f"Removed NAT '{names.nat}'")
        removed.append(f"nat:{names.nat}")

    def _remove_ip_addresses(self, names: ResourceNames, removed: List[str]) -> None:
        addresses = self.host.get_ip_addresses(names.adapter)
        if not addresses:
            Log.skip(self.logger, f"No IPv4 address on '{names.adapter}'")
            return
        for a in addresses:
            Log.step(self.logger, f"Remove-NetIPAddress {a.ip_address}/{a.prefix_length}", adapter=names.adapter)
            self.host.remove_ip_address(names.adapter, a.ip_address)
            removed.append(f"ip:{a.ip_address}/{a.prefix_length}")
        Log.ok(self.logger, f"Removed {len(removed)} IP address(es)", adapter=names.adapter)

    def _remove_switch(self, names: ResourceNames, removed: List[str]) -> None:
        if self.host.get_switch(names.switch) is None:
            Log.skip(self.logger, f"Switch '{names.switch}' not present")
            return
        Log.step(self.logger, f"Remove-VMSwitch '{names.switch}'")
        self.host.remove_switch(names.switch)
        Log.ok(self.logger, f"Removed switch '{names.switch}'")
        removed.append(f"switch:{names.switch}")
