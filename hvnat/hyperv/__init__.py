# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/hyperv/__init__.py
from .base import IpAddressInfo, NatInfo, NetworkHost, StaticMappingInfo, SwitchInfo
from .host import DryRunHost, PowerShellHost
from .powershell import PowerShellRunner

__all__ = [
    "DryRunHost",
    "IpAddressInfo",
    "NatInfo",
    "NetworkHost",
    "PowerShellHost",
    "PowerShellRunner",
    "StaticMappingInfo",
    "SwitchInfo",
]
