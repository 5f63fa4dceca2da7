# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/naming.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .hyperv.powershell import ps_quote


@dataclass(frozen=True)
class ResourceNames:
    """
    Host resource names derived from the network name.

    Built once per run and passed explicitly to the teardown and
    provisioning steps.
    """
    network: str
    switch: str
    nat: str
    adapter: str

    @classmethod
    def for_network(cls, name: str) -> "ResourceNames":
        switch = f"{name}-Switch"
        return cls(
            network=name,
            switch=switch,
            nat=f"{name}-NAT",
            # Hyper-V names the host side of an internal switch "vEthernet (<switch>)".
            adapter=f"vEthernet ({switch})",
        )

    def describe(self) -> List[str]:
        return [
            f"VMSwitch '{self.switch}'",
            f"NetIPAddress on '{self.adapter}'",
            f"NetNat '{self.nat}'",
        ]

    def remediation_commands(self) -> List[str]:
        """PowerShell to run by hand when automatic cleanup leaves something behind."""
        return [
            f"Get-NetNatStaticMapping -NatName {ps_quote(self.nat)} | Remove-NetNatStaticMapping -Confirm:$false",
            f"Remove-NetNat -Name {ps_quote(self.nat)} -Confirm:$false",
            f"Get-NetIPAddress -InterfaceAlias {ps_quote(self.adapter)} | Remove-NetIPAddress -Confirm:$false",
            f"Remove-VMSwitch -Name {ps_quote(self.switch)} -Force",
        ]
