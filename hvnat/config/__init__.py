# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/config/__init__.py
from .loader import load_config, load_document
from .model import (
    Action,
    NetworkSpec,
    PortForwardingRule,
    Protocol,
    ReconciliationConfig,
    SettingsConfig,
    VmHint,
)
from .validator import validate_document

__all__ = [
    "Action",
    "NetworkSpec",
    "PortForwardingRule",
    "Protocol",
    "ReconciliationConfig",
    "SettingsConfig",
    "VmHint",
    "load_config",
    "load_document",
    "validate_document",
]
