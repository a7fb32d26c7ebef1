from pipefn.pipefn_runtime import ArityRouter, ExecutionResult, Runner, make_runner
from pipefn.pipefn_registry import CapabilityRegistry, build_registry
from pipefn.pipefn_context import InvocationContext
from pipefn.pipefn_config import RunnerConfig
from pipefn.pipefn_datatypes import (
    DispatchError, Exact, Found, NameNotFound, NOT_FOUND, NullaryRule, Pattern, UnsupportedArity,
)

__all__ = [
    "ArityRouter", "ExecutionResult", "Runner", "make_runner",
    "CapabilityRegistry", "build_registry",
    "InvocationContext", "RunnerConfig",
    "DispatchError", "Exact", "Found", "NameNotFound", "NOT_FOUND", "NullaryRule", "Pattern", "UnsupportedArity",
]
