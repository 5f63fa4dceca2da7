# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/cli/prompt.py
from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from ..config.model import Action, ReconciliationConfig
from ..naming import ResourceNames

YES_ANSWERS = ("y", "yes")


class ProceedPrompt(Confirm):
    """Confirm that never re-asks: anything but y/yes declines."""

    def process_response(self, value: str) -> bool:
        return value.strip().lower() in YES_ANSWERS


def plan_lines(config: ReconciliationConfig, names: ResourceNames) -> List[str]:
    net = config.network
    lines = [f"Network '{net.name}' ({net.subnet}, gateway {net.gateway})"]
    lines.append("  will remove (if present): " + ", ".join(names.describe()) + ", and their port mappings")
    if config.action is Action.APPLY:
        lines.append(f"  will create: switch '{names.switch}', {net.gateway}/{net.prefix_length}, NAT '{names.nat}'")
        for rule in config.port_forwarding:
            lines.append(f"  will forward: {rule.name}: {rule.describe()}")
    return lines


def confirm(
    config: ReconciliationConfig,
    names: ResourceNames,
    *,
    stdin: Optional[TextIO] = None,
    out: Optional[TextIO] = None,
) -> bool:
    """
    Ask before touching the host. Reads one line from stdin, so piping `y`
    answers it non-interactively; EOF counts as "no".
    """
    console = Console(file=out if out is not None else sys.stderr)
    for ln in plan_lines(config, names):
        console.print(ln, markup=False, highlight=False, soft_wrap=True)

    return ProceedPrompt.ask(
        escape(f"Proceed with {config.action.value}? [y/N]"),
        console=console,
        default=False,
        show_default=False,
        show_choices=False,
        stream=stdin if stdin is not None else sys.stdin,
    )
