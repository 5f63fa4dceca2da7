# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/config/model.py

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Action(Enum):
    APPLY = "apply"
    REMOVE = "remove"


class Protocol(Enum):
    TCP = "TCP"
    UDP = "UDP"


def default_gateway(subnet: ipaddress.IPv4Network) -> ipaddress.IPv4Address:
    """First host address of the subnet (x.y.z.1 for a /24)."""
    return subnet.network_address + 1


@dataclass(frozen=True)
class NetworkSpec:
    name: str
    subnet: ipaddress.IPv4Network
    gateway: ipaddress.IPv4Address

    @property
    def prefix_length(self) -> int:
        return self.subnet.prefixlen

    def to_jsonable(self) -> Dict[str, Any]:
        return {"name": self.name, "subnet": str(self.subnet), "gateway": str(self.gateway)}


@dataclass(frozen=True)
class PortForwardingRule:
    name: str
    protocol: Protocol
    external_port: int
    internal_ip: ipaddress.IPv4Address
    internal_port: int

    @property
    def key(self) -> Tuple[str, int]:
        return (self.protocol.value, self.external_port)

    def describe(self) -> str:
        return f"{self.protocol.value} *:{self.external_port} -> {self.internal_ip}:{self.internal_port}"

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "protocol": self.protocol.value,
            "externalPort": self.external_port,
            "internalIP": str(self.internal_ip),
            "internalPort": self.internal_port,
        }


@dataclass(frozen=True)
class VmHint:
    """Guest-side settings printed for manual configuration; never provisioned."""
    name: str
    ip: ipaddress.IPv4Address
    memo: Optional[str] = None

    def to_jsonable(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name, "ip": str(self.ip)}
        if self.memo:
            d["memo"] = self.memo
        return d


@dataclass(frozen=True)
class ReconciliationConfig:
    action: Action
    network: NetworkSpec
    port_forwarding: Tuple[PortForwardingRule, ...] = ()
    vms: Tuple[VmHint, ...] = ()
    source: Optional[str] = None

    def with_action(self, action: Action) -> "ReconciliationConfig":
        return ReconciliationConfig(
            action=action,
            network=self.network,
            port_forwarding=self.port_forwarding,
            vms=self.vms,
            source=self.source,
        )

    def config_warnings(self) -> List[str]:
        """Non-fatal oddities worth surfacing in the transcript."""
        out: List[str] = []
        for rule in self.port_forwarding:
            if rule.internal_ip not in self.network.subnet:
                out.append(f"port forwarding '{rule.name}' targets {rule.internal_ip}, outside {self.network.subnet}")
            elif rule.internal_ip == self.network.gateway:
                out.append(f"port forwarding '{rule.name}' targets the gateway address {rule.internal_ip}")
        for vm in self.vms:
            if vm.ip not in self.network.subnet:
                out.append(f"vm '{vm.name}' address {vm.ip} is outside {self.network.subnet}")
        return out

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "network": self.network.to_jsonable(),
            "portForwarding": [r.to_jsonable() for r in self.port_forwarding],
            "vms": [v.to_jsonable() for v in self.vms],
        }


@dataclass
class SettingsConfig:
    """Runtime knobs that are not part of the network document."""
    settle_seconds: float = 5.0
    powershell: Optional[str] = None
    timeout_s: int = 120
    dry_run: bool = False
    assume_yes: bool = False
    report_path: Optional[str] = None
