# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/__init__.py
"""
hvnat - Hyper-V NAT network reconciler

Declares one NAT network (internal switch, gateway IP, NAT, static port
mappings) in a JSON file and makes the host match it by removing whatever
exists under the network's names and creating it again.

Usage as a library:

    from hvnat import Reconciler, PowerShellHost, PowerShellRunner, load_config

    cfg = load_config("network.json")
    host = PowerShellHost(PowerShellRunner())
    report = Reconciler(host, logger).run(cfg)
"""

__version__ = "0.1.0"

from .config import ReconciliationConfig, load_config, validate_document
from .hyperv import DryRunHost, NetworkHost, PowerShellHost, PowerShellRunner
from .naming import ResourceNames
from .reconcile import Reconciler, RunReport

__all__ = [
    "__version__",
    "DryRunHost",
    "NetworkHost",
    "PowerShellHost",
    "PowerShellRunner",
    "ReconciliationConfig",
    "Reconciler",
    "ResourceNames",
    "RunReport",
    "load_config",
    "validate_document",
]
