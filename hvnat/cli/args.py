# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/cli/args.py
from __future__ import annotations

import argparse
import logging
import math
import os
import sys
from typing import Optional, Sequence, Tuple

from ..config.model import Action, SettingsConfig
from ..core.logger import Log, c
from .help_texts import FEATURE_SUMMARY, JSON_EXAMPLE

ENV_POWERSHELL = "HVNAT_POWERSHELL"
ENV_SETTLE_SECONDS = "HVNAT_SETTLE_SECONDS"


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Combines raw description formatting with default value display in help."""


def _build_epilog() -> str:
    return (
        c("Config example (JSON; .yaml/.yml also accepted):\n", "cyan", ["bold"])
        + c(JSON_EXAMPLE, "cyan")
        + c("\nWhat it does:\n", "cyan", ["bold"])
        + c(FEATURE_SUMMARY, "cyan")
    )


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise SystemExit(f"{name} must be a number, got {raw!r}")


def _add_global_logging(p: argparse.ArgumentParser) -> None:
    from .. import __version__

    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv PowerShell trace")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Only warnings (-q) or errors (-qq).")
    p.add_argument("--log-file", dest="log_file", default=None, help="Also write logs to this file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON logs on stderr.")
    p.add_argument("--no-color", dest="no_color", action="store_true", help="Disable colored log levels.")


def _add_reconcile_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("config", help="Network description (JSON, or YAML by .yaml/.yml suffix).")
    p.add_argument(
        "--action",
        dest="action",
        default=None,
        choices=[a.value for a in Action],
        help="Override the document's `action`.",
    )
    p.add_argument("-y", "--yes", dest="assume_yes", action="store_true", help="Skip the confirmation prompt.")
    p.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Query the host but only log the changes that would be made.",
    )
    p.add_argument("--show-config", dest="show_config", action="store_true", help="Print the validated config as JSON and exit.")
    p.add_argument("--report", dest="report_path", default=None, help="Write a JSON run report to this path.")


def _add_host_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--settle-seconds",
        dest="settle_seconds",
        type=float,
        default=_env_float(ENV_SETTLE_SECONDS, 5.0),
        help=f"Wait after creating the switch so Windows registers its adapter (env {ENV_SETTLE_SECONDS}).",
    )
    p.add_argument(
        "--powershell",
        dest="powershell",
        default=os.environ.get(ENV_POWERSHELL) or None,
        help=f"PowerShell executable (default: first of powershell.exe/pwsh on PATH; env {ENV_POWERSHELL}).",
    )
    p.add_argument("--timeout", dest="timeout_s", type=int, default=120, help="Per-cmdlet timeout in seconds.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hvnat",
        description=c("hvnat: declare and reconcile a Hyper-V NAT network from JSON", "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=_build_epilog(),
    )
    _add_global_logging(p)
    _add_reconcile_flags(p)
    _add_host_flags(p)
    return p


def _build_preparser() -> argparse.ArgumentParser:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    pre.add_argument("--no-color", dest="no_color", action="store_true")
    return pre


def validate_args(args: argparse.Namespace) -> None:
    if not math.isfinite(args.settle_seconds) or args.settle_seconds < 0:
        raise SystemExit("--settle-seconds must be a finite number >= 0")
    if args.timeout_s <= 0:
        raise SystemExit("--timeout must be > 0")


def settings_from_args(args: argparse.Namespace) -> SettingsConfig:
    return SettingsConfig(
        settle_seconds=float(args.settle_seconds),
        powershell=args.powershell,
        timeout_s=int(args.timeout_s),
        dry_run=bool(args.dry_run),
        assume_yes=bool(args.assume_yes),
        report_path=args.report_path,
    )


def parse_args(
    argv: Optional[Sequence[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[argparse.Namespace, logging.Logger]:
    """
    Phase 0: parse only the logging flags and set up the logger, so errors
             from the full parse and from config loading are logged the same way.
    Phase 1: full parse + argument sanity checks.
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    args0, _rest = _build_preparser().parse_known_args(argv)
    if logger is None:
        logger = Log.setup(
            args0.verbose,
            args0.log_file,
            quiet=args0.quiet,
            color=not args0.no_color,
            json_logs=args0.json_logs,
        )

    args = build_parser().parse_args(argv)
    validate_args(args)
    return args, logger
