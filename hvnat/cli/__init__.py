# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/cli/__init__.py
from .args import build_parser, parse_args, settings_from_args
from .prompt import confirm, plan_lines

__all__ = ["build_parser", "confirm", "parse_args", "plan_lines", "settings_from_args"]
