# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/reconcile/provision.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config.model import ReconciliationConfig
from ..core.exceptions import HostOperationError, ProvisioningError
from ..core.logger import Log
from ..hyperv.base import NetworkHost
from ..naming import ResourceNames

# Mappings listen on every host address.
EXTERNAL_ANY = "0.0.0.0"

DEFAULT_SETTLE_SECONDS = 5.0


class ProvisionState(Enum):
    ABSENT = "absent"
    SWITCH_CREATED = "switch-created"
    IP_ASSIGNED = "ip-assigned"
    NAT_CREATED = "nat-created"
    MAPPINGS_APPLIED = "mappings-applied"
    READY = "ready"


@dataclass
class ProvisionResult:
    state: ProvisionState = ProvisionState.ABSENT
    created: List[str] = field(default_factory=list)
    mappings: int = 0

    def advance(self, state: ProvisionState, created: Optional[str] = None) -> None:
        self.state = state
        if created:
            self.created.append(created)

    def to_jsonable(self) -> Dict[str, Any]:
        return {"state": self.state.value, "created": list(self.created), "mappings": self.mappings}


class ProvisioningExecutor:
    """
    Creates the network in strict order:

        switch -> settle delay -> gateway IP -> NAT -> port mappings

    The first host error stops the run and surfaces as ProvisioningError
    carrying the last state reached. Nothing is cleaned up here; the caller
    owns rollback.
    """

    def __init__(
        self,
        host: NetworkHost,
        logger: logging.Logger,
        *,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.host = host
        self.logger = logger
        self.settle_seconds = max(0.0, float(settle_seconds))
        self.sleep = sleep

    def run(self, config: ReconciliationConfig, names: ResourceNames) -> ProvisionResult:
        net = config.network
        result = ProvisionResult()
        Log.banner(self.logger, f"Provision: {names.network}")

        try:
            Log.step(self.logger, f"New-VMSwitch '{names.switch}' (Internal)")
            self.host.new_switch(names.switch)
            result.advance(ProvisionState.SWITCH_CREATED, f"switch:{names.switch}")
            Log.ok(self.logger, f"Created switch '{names.switch}'")

            if self.settle_seconds > 0:
                Log.step(self.logger, f"Waiting {self.settle_seconds:g}s for '{names.adapter}' to register")
                self.sleep(self.settle_seconds)

            Log.step(self.logger, f"New-NetIPAddress {net.gateway}/{net.prefix_length}", adapter=names.adapter)
            self.host.new_ip_address(names.adapter, str(net.gateway), net.prefix_length)
            result.advance(ProvisionState.IP_ASSIGNED, f"ip:{net.gateway}/{net.prefix_length}")
            Log.ok(self.logger, f"Assigned gateway {net.gateway}/{net.prefix_length}")

            Log.step(self.logger, f"New-NetNat '{names.nat}'", prefix=str(net.subnet))
            self.host.new_nat(names.nat, str(net.subnet))
            result.advance(ProvisionState.NAT_CREATED, f"nat:{names.nat}")
            Log.ok(self.logger, f"Created NAT '{names.nat}' for {net.subnet}")

            for rule in config.port_forwarding:
                Log.step(self.logger, f"Add-NetNatStaticMapping {rule.describe()}", rule=rule.name)
                self.host.add_static_mapping(
                    names.nat,
                    protocol=rule.protocol.value,
                    external_ip=EXTERNAL_ANY,
                    external_port=rule.external_port,
                    internal_ip=str(rule.internal_ip),
                    internal_port=rule.internal_port,
                )
                result.mappings += 1
                result.created.append(f"mapping:{rule.describe()}")
                Log.ok(self.logger, f"Forwarding '{rule.name}' active")
            result.advance(ProvisionState.MAPPINGS_APPLIED)
        except HostOperationError as e:
            Log.fail(self.logger, f"Provisioning stopped at state '{result.state.value}': {e}")
            raise ProvisioningError(
                code=1,
                msg=f"Provisioning failed after '{result.state.value}': {e}",
                cause=e,
                context={"network": names.network, "operation": e.operation},
                state=result.state.value,
            ) from e

        result.advance(ProvisionState.READY)
        Log.ok(self.logger, f"Network '{names.network}' is ready", mappings=result.mappings)
        return result
