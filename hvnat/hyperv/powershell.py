# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/hyperv/powershell.py

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, List, Optional

from ..core.exceptions import HostOperationError, wrap_host_error
from ..core.logger import Log
from ..core.utils import U

LOG = logging.getLogger(__name__)

# Windows PowerShell ships the Hyper-V and NetNat modules; pwsh works when they are imported.
POWERSHELL_CANDIDATES = ("powershell.exe", "powershell", "pwsh.exe", "pwsh")

_PREAMBLE = "$ErrorActionPreference = 'Stop'; $ProgressPreference = 'SilentlyContinue'; "


def ps_quote(value: Any) -> str:
    """Render a value as a single-quoted PowerShell literal."""
    return "'" + str(value).replace("'", "''") + "'"


def as_list(data: Any) -> List[Any]:
    """ConvertTo-Json emits a bare object for one result and an array for many."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


def _first_line(stderr: str) -> str:
    for ln in (stderr or "").splitlines():
        s = ln.strip()
        if s:
            return s
    return ""


class PowerShellRunner:
    """
    Runs one PowerShell script per call and returns its output.

    Every failure (missing binary, timeout, non-zero exit, unparsable JSON)
    becomes HostOperationError. There are no retries.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        executable: Optional[str] = None,
        timeout_s: int = 120,
    ):
        self.logger = logger or LOG
        self.executable = executable
        self.timeout_s = int(timeout_s)

    def _resolve_executable(self, operation: str) -> str:
        if self.executable:
            return self.executable
        found = U.first_which(POWERSHELL_CANDIDATES)
        if not found:
            raise wrap_host_error(
                "PowerShell not found on PATH (tried: " + ", ".join(POWERSHELL_CANDIDATES) + ")",
                operation=operation,
            )
        self.executable = found
        return found

    def build_command(self, script: str, operation: str = "") -> List[str]:
        return [
            self._resolve_executable(operation),
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            _PREAMBLE + script,
        ]

    def run(self, script: str, *, operation: str) -> str:
        cmd = self.build_command(script, operation)
        self.logger.debug("PowerShell: %s", operation)
        Log.trace(self.logger, "Running: %s", U.pretty_cmd(cmd))

        try:
            p = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_s)
        except FileNotFoundError as e:
            raise wrap_host_error(f"{operation}: PowerShell executable not found: {cmd[0]}", e, operation=operation)
        except subprocess.TimeoutExpired as e:
            raise wrap_host_error(f"{operation}: timed out after {self.timeout_s}s", e, operation=operation)

        stdout = U.to_text(p.stdout).strip()
        stderr = U.to_text(p.stderr).strip()
        Log.trace(self.logger, "rc=%s stdout=%r stderr=%r", p.returncode, stdout, stderr)

        if p.returncode != 0:
            detail = _first_line(stderr) or _first_line(stdout) or f"exit code {p.returncode}"
            raise HostOperationError(
                code=1,
                msg=f"{operation} failed: {detail}",
                operation=operation,
                stderr=stderr,
                context={"rc": p.returncode},
            )
        return stdout

    def run_json(self, script: str, *, operation: str, depth: int = 4) -> Any:
        out = self.run(f"{script} | ConvertTo-Json -Compress -Depth {depth}", operation=operation)
        if out == "":
            return None
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise wrap_host_error(f"{operation}: could not parse PowerShell JSON output: {e}", e, operation=operation)
