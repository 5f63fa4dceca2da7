# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/hyperv/host.py
"""
NetworkHost backed by the Hyper-V and NetNat PowerShell modules.

Queries enumerate and filter with an exact `-eq` match instead of passing
`-Name`, which would treat `[` and `*` in a network name as wildcards.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..core.logger import Log
from .base import IpAddressInfo, NatInfo, NetworkHost, StaticMappingInfo, SwitchInfo
from .powershell import PowerShellRunner, as_list, ps_quote

_SWITCH_FIELDS = "Name, @{n='SwitchType';e={$_.SwitchType.ToString()}}"
_IP_FIELDS = "IPAddress, PrefixLength, InterfaceAlias, @{n='PrefixOrigin';e={$_.PrefixOrigin.ToString()}}"
_NAT_FIELDS = "Name, InternalIPInterfaceAddressPrefix"
_MAPPING_FIELDS = (
    "StaticMappingID, NatName, @{n='Protocol';e={$_.Protocol.ToString()}}, "
    "ExternalIPAddress, ExternalPort, InternalIPAddress, InternalPort"
)


def _switch(row: Dict[str, Any]) -> SwitchInfo:
    return SwitchInfo(name=str(row.get("Name", "")), switch_type=str(row.get("SwitchType") or "Internal"))


def _ip(row: Dict[str, Any]) -> IpAddressInfo:
    return IpAddressInfo(
        ip_address=str(row.get("IPAddress", "")),
        prefix_length=int(row.get("PrefixLength") or 0),
        interface_alias=str(row.get("InterfaceAlias", "")),
    )


def _nat(row: Dict[str, Any]) -> NatInfo:
    return NatInfo(name=str(row.get("Name", "")), internal_prefix=str(row.get("InternalIPInterfaceAddressPrefix", "")))


def _mapping(row: Dict[str, Any]) -> StaticMappingInfo:
    return StaticMappingInfo(
        mapping_id=int(row.get("StaticMappingID") or 0),
        nat_name=str(row.get("NatName", "")),
        protocol=str(row.get("Protocol", "")).upper(),
        external_ip=str(row.get("ExternalIPAddress", "")),
        external_port=int(row.get("ExternalPort") or 0),
        internal_ip=str(row.get("InternalIPAddress", "")),
        internal_port=int(row.get("InternalPort") or 0),
    )


class PowerShellHost(NetworkHost):
    def __init__(self, runner: PowerShellRunner, logger: Optional[logging.Logger] = None):
        self.runner = runner
        self.logger = logger or runner.logger

    # plumbing

    def _query(self, script: str, operation: str) -> List[Dict[str, Any]]:
        return [r for r in as_list(self.runner.run_json(script, operation=operation)) if isinstance(r, dict)]

    def _mutate(self, script: str, operation: str, *, want_json: bool = False) -> List[Dict[str, Any]]:
        if want_json:
            return self._query(script, operation)
        self.runner.run(script, operation=operation)
        return []

    # switches

    def get_switch(self, name: str) -> Optional[SwitchInfo]:
        rows = self._query(
            f"Get-VMSwitch -ErrorAction SilentlyContinue | Where-Object {{ $_.Name -eq {ps_quote(name)} }} "
            f"| Select-Object {_SWITCH_FIELDS}",
            "Get-VMSwitch",
        )
        return _switch(rows[0]) if rows else None

    def new_switch(self, name: str) -> SwitchInfo:
        self._mutate(f"New-VMSwitch -Name {ps_quote(name)} -SwitchType Internal | Out-Null", "New-VMSwitch")
        return SwitchInfo(name=name, switch_type="Internal")

    def remove_switch(self, name: str) -> None:
        self._mutate(f"Remove-VMSwitch -Name {ps_quote(name)} -Force", "Remove-VMSwitch")

    # IP addresses

    def get_ip_addresses(self, interface_alias: str) -> List[IpAddressInfo]:
        rows = self._query(
            "Get-NetIPAddress -AddressFamily IPv4 -ErrorAction SilentlyContinue "
            f"| Where-Object {{ $_.InterfaceAlias -eq {ps_quote(interface_alias)} -and $_.PrefixOrigin -eq 'Manual' }} "
            f"| Select-Object {_IP_FIELDS}",
            "Get-NetIPAddress",
        )
        # Active and persistent stores both report the same address.
        # Only static addresses are ours; APIPA (169.254/16) is WellKnown.
        seen: Dict[str, IpAddressInfo] = {}
        for row in rows:
            if str(row.get("PrefixOrigin") or "Manual") != "Manual":
                continue
            info = _ip(row)
            seen.setdefault(info.ip_address, info)
        return list(seen.values())

    def new_ip_address(self, interface_alias: str, ip_address: str, prefix_length: int) -> IpAddressInfo:
        self._mutate(
            f"New-NetIPAddress -InterfaceAlias {ps_quote(interface_alias)} -IPAddress {ps_quote(ip_address)} "
            f"-PrefixLength {int(prefix_length)} | Out-Null",
            "New-NetIPAddress",
        )
        return IpAddressInfo(ip_address=ip_address, prefix_length=int(prefix_length), interface_alias=interface_alias)

    def remove_ip_address(self, interface_alias: str, ip_address: str) -> None:
        self._mutate(
            f"Remove-NetIPAddress -InterfaceAlias {ps_quote(interface_alias)} -IPAddress {ps_quote(ip_address)} "
            "-Confirm:$false",
            "Remove-NetIPAddress",
        )

    # NAT

    def get_nat(self, name: str) -> Optional[NatInfo]:
        rows = self._query(
            f"Get-NetNat -ErrorAction SilentlyContinue | Where-Object {{ $_.Name -eq {ps_quote(name)} }} "
            f"| Select-Object {_NAT_FIELDS}",
            "Get-NetNat",
        )
        return _nat(rows[0]) if rows else None

    def new_nat(self, name: str, internal_prefix: str) -> NatInfo:
        self._mutate(
            f"New-NetNat -Name {ps_quote(name)} -InternalIPInterfaceAddressPrefix {ps_quote(internal_prefix)} | Out-Null",
            "New-NetNat",
        )
        return NatInfo(name=name, internal_prefix=internal_prefix)

    def remove_nat(self, name: str) -> None:
        self._mutate(f"Remove-NetNat -Name {ps_quote(name)} -Confirm:$false", "Remove-NetNat")

    # static mappings

    def get_static_mappings(self, nat_name: str) -> List[StaticMappingInfo]:
        rows = self._query(
            f"Get-NetNatStaticMapping -ErrorAction SilentlyContinue | Where-Object {{ $_.NatName -eq {ps_quote(nat_name)} }} "
            f"| Select-Object {_MAPPING_FIELDS}",
            "Get-NetNatStaticMapping",
        )
        return [_mapping(r) for r in rows]

    def add_static_mapping(
        self,
        nat_name: str,
        *,
        protocol: str,
        external_ip: str,
        external_port: int,
        internal_ip: str,
        internal_port: int,
    ) -> StaticMappingInfo:
        rows = self._mutate(
            f"Add-NetNatStaticMapping -NatName {ps_quote(nat_name)} -Protocol {protocol.upper()} "
            f"-ExternalIPAddress {ps_quote(external_ip)} -ExternalPort {int(external_port)} "
            f"-InternalIPAddress {ps_quote(internal_ip)} -InternalPort {int(internal_port)} "
            f"| Select-Object {_MAPPING_FIELDS}",
            "Add-NetNatStaticMapping",
            want_json=True,
        )
        if rows:
            return _mapping(rows[0])
        return StaticMappingInfo(
            mapping_id=0,
            nat_name=nat_name,
            protocol=protocol.upper(),
            external_ip=external_ip,
            external_port=int(external_port),
            internal_ip=internal_ip,
            internal_port=int(internal_port),
        )

    def remove_static_mapping(self, nat_name: str, mapping_id: int) -> None:
        self._mutate(
            f"Remove-NetNatStaticMapping -NatName {ps_quote(nat_name)} -StaticMappingID {int(mapping_id)} -Confirm:$false",
            "Remove-NetNatStaticMapping",
        )


class DryRunHost(PowerShellHost):
    """
    Runs the read-only Get-* queries for real and only logs the mutations,
    so a plan shows exactly what teardown would remove.
    """

    def __init__(self, runner: PowerShellRunner, logger: Optional[logging.Logger] = None):
        super().__init__(runner, logger)
        self.planned: List[str] = []

    def _mutate(self, script: str, operation: str, *, want_json: bool = False) -> List[Dict[str, Any]]:
        self.planned.append(script)
        Log.skip(self.logger, f"[dry-run] {operation} not executed")
        Log.trace(self.logger, "Script: %s", script)
        return []
