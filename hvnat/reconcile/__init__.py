# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/reconcile/__init__.py
from .provision import ProvisioningExecutor, ProvisionResult, ProvisionState
from .reconciler import Reconciler, RunReport, rollback_on_failure
from .teardown import TeardownExecutor, TeardownReport

__all__ = [
    "ProvisionResult",
    "ProvisionState",
    "ProvisioningExecutor",
    "Reconciler",
    "RunReport",
    "TeardownExecutor",
    "TeardownReport",
    "rollback_on_failure",
]
