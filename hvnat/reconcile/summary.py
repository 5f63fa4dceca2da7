# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/reconcile/summary.py
"""Guest-side settings printed after a successful apply, for manual VM configuration."""
from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config.model import ReconciliationConfig
from ..naming import ResourceNames


def network_panel(config: ReconciliationConfig, names: ResourceNames) -> Panel:
    net = config.network
    body = "\n".join(
        [
            f"Switch to attach VMs to : {names.switch}",
            f"Subnet                  : {net.subnet}",
            f"Subnet mask             : {net.subnet.netmask}",
            f"Default gateway         : {net.gateway}",
            f"Usable guest range      : {net.subnet.network_address + 1} - {net.subnet.broadcast_address - 1}",
        ]
    )
    return Panel(body, title=f"Network '{net.name}'", title_align="left", expand=True, style="cyan")


def vm_table(config: ReconciliationConfig) -> Optional[Table]:
    if not config.vms:
        return None
    net = config.network
    t = Table(title="VM settings (configure inside each guest)", title_justify="left")
    t.add_column("VM", style="bold")
    t.add_column("IP address")
    t.add_column("Gateway")
    t.add_column("Memo")
    for vm in config.vms:
        t.add_row(vm.name, f"{vm.ip}/{net.prefix_length}", str(net.gateway), vm.memo or "")
    return t


def forwarding_table(config: ReconciliationConfig) -> Optional[Table]:
    if not config.port_forwarding:
        return None
    t = Table(title="Port forwarding", title_justify="left")
    t.add_column("Rule", style="bold")
    t.add_column("Protocol")
    t.add_column("Host port", justify="right")
    t.add_column("Target")
    for rule in config.port_forwarding:
        t.add_row(rule.name, rule.protocol.value, str(rule.external_port), f"{rule.internal_ip}:{rule.internal_port}")
    return t


def print_summary(config: ReconciliationConfig, names: ResourceNames, console: Optional[Console] = None) -> None:
    con = console or Console()
    con.print(network_panel(config, names))
    for table in (vm_table(config), forwarding_table(config)):
        if table is not None:
            con.print(table)
