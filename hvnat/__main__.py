# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/__main__.py
from __future__ import annotations

import logging
import time
import traceback
from typing import Callable, Optional, Sequence, TextIO

from rich.console import Console

from .cli.args import parse_args, settings_from_args
from .cli.prompt import confirm
from .config.loader import load_config
from .config.model import SettingsConfig
from .core.exceptions import HvNatError, format_exception_for_cli
from .core.logger import LOGGER_NAME, Log
from .core.utils import U
from .hyperv.base import NetworkHost
from .hyperv.host import DryRunHost, PowerShellHost
from .hyperv.powershell import PowerShellRunner
from .naming import ResourceNames
from .reconcile.reconciler import Reconciler


def _no_sleep(_seconds: float) -> None:
    return None


def make_host(settings: SettingsConfig, logger: logging.Logger) -> NetworkHost:
    runner = PowerShellRunner(logger, executable=settings.powershell, timeout_s=settings.timeout_s)
    if settings.dry_run:
        return DryRunHost(runner, logger)
    return PowerShellHost(runner, logger)


def run(
    argv: Optional[Sequence[str]] = None,
    *,
    host: Optional[NetworkHost] = None,
    stdin: Optional[TextIO] = None,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
    console: Optional[Console] = None,
) -> int:
    """
    Parse, load, confirm, reconcile. Returns the process exit code:
    0 on success or when the user declines, 1 on any failure.
    """
    args, logger = parse_args(argv, logger)
    settings = settings_from_args(args)

    try:
        config = load_config(args.config, action_override=args.action, logger=logger)
    except HvNatError as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=args.verbose))
        return 1

    if args.show_config:
        print(U.json_dump(config.to_jsonable()))
        return 0

    names = ResourceNames.for_network(config.network.name)
    if not (settings.assume_yes or settings.dry_run):
        if not confirm(config, names, stdin=stdin):
            Log.warn(logger, "Cancelled; no changes made")
            return 0

    if host is None:
        host = make_host(settings, logger)

    reconciler = Reconciler(
        host,
        logger,
        settle_seconds=settings.settle_seconds,
        sleep=_no_sleep if settings.dry_run else sleep,
        console=console,
    )

    rc = 1
    try:
        Log.banner(logger, f"{config.action.value} {config.network.name}{' (dry-run)' if settings.dry_run else ''}")
        report = reconciler.run(config)
        if report.ok:
            rc = 0
        else:
            for err in report.errors:
                Log.fail(logger, err)
    except HvNatError as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=args.verbose))
    finally:
        if settings.report_path and reconciler.last_report is not None:
            p = U.write_json(settings.report_path, reconciler.last_report.to_jsonable())
            logger.info("Report written: %s", p)
    return rc


def main() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    try:
        rc = run()
    except KeyboardInterrupt:
        Log.warn(logger, "Interrupted by user (Ctrl+C).")
        rc = 130
    except Exception as e:
        # Hard guardrail: unexpected exceptions should not fail silently.
        # The formatter degrades to ASCII on legacy code pages.
        Log.fail(logger, f"UNHANDLED {type(e).__name__}: {e}")
        logger.debug(traceback.format_exc())
        rc = 1
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
