# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _clamp_exit_code(code: int) -> int:
    if code < 0:
        return 1
    if code > 255:
        return 255
    return code


def _one_line(s: str, limit: int = 600) -> str:
    s = (s or "").strip().replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


_SECRET_KEY_PARTS = (
    "pass",
    "secret",
    "token",
    "apikey",
    "api_key",
    "credential",
)

REDACTED = "***REDACTED***"


def _is_secret_key(k: str) -> bool:
    ks = (k or "").lower()
    return any(p in ks for p in _SECRET_KEY_PARTS)


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: (REDACTED if _is_secret_key(str(k)) else _redact(v)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_redact(v) for v in obj]
    return obj


def _format_context_compact(ctx: Dict[str, Any]) -> str:
    parts = []
    for k in sorted(ctx.keys()):
        v = ctx.get(k)
        if _is_secret_key(str(k)):
            parts.append(f"{k}={REDACTED}")
        else:
            parts.append(f"{k}={v!r}")
    return ", ".join(parts)


@dataclass(eq=False)
class HvNatError(Exception):
    """
    Base project error with:
      - stable fields for reporting/JSON
      - readable __str__ (what users see)
      - safe code handling (never crashes on int())
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _clamp_exit_code(_safe_int(self.code, default=1))
        self.msg = _one_line(self.msg) or self.__class__.__name__
        if self.context is None:
            self.context = {}
        super().__init__(self.msg)
        self.args = (self.msg,)

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        """Human-friendly message for CLI output/logs."""
        parts = [self.msg or self.__class__.__name__]

        if include_context and self.context:
            parts.append(f"[{_one_line(_format_context_compact(self.context))}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message()

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.msg,
            "context": _redact(dict(self.context or {})),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


# Config errors: raised before any host mutation.


class ConfigError(HvNatError):
    pass


class ConfigNotFound(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


@dataclass(eq=False)
class ValidationError(ConfigError):
    """A single violated constraint; `field` is the document path (e.g. `network.subnet`)."""
    field: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.field:
            self.context.setdefault("field", self.field)  # type: ignore[union-attr]


# Host errors


@dataclass(eq=False)
class HostOperationError(HvNatError):
    """
    A call into the host networking subsystem failed.

    `operation` is the cmdlet (or logical operation) that was issued.
    """
    operation: str = ""
    stderr: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.operation:
            self.context.setdefault("operation", self.operation)  # type: ignore[union-attr]


@dataclass(eq=False)
class ProvisioningError(HvNatError):
    """Provisioning stopped; `state` is the last state reached before the failure."""
    state: str = ""


@dataclass(eq=False)
class RollbackError(HvNatError):
    """Rollback after a provisioning failure left resources behind."""
    resources: List[str] = field(default_factory=list)
    remediation: List[str] = field(default_factory=list)


def wrap_host_error(
    msg: str,
    exc: Optional[BaseException] = None,
    *,
    operation: str = "",
    stderr: str = "",
    **context: Any,
) -> HostOperationError:
    return HostOperationError(code=1, msg=msg, cause=exc, context=context or None, operation=operation, stderr=stderr)


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, HvNatError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__
