# pipefn_runtime.py

import inspect
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Literal, Mapping, Optional, Sequence

import httpx

from pipefn.pipefn_config import RunnerConfig
from pipefn.pipefn_context import InvocationContext
from pipefn.pipefn_datatypes import (
    DispatchError, Found, NameNotFound, NullaryRule, Pipeable, Resolution, UnsupportedArity,
)
from pipefn.pipefn_nullary import make_nullary_resolver
from pipefn.pipefn_registry import CapabilityRegistry

Resolver = Callable[[str], Resolution]
Invoke = Callable[..., Awaitable[Pipeable]]


def _dbg(*parts):
    if os.environ.get("PIPEFN_DEBUG"):
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass


# ===================================================================
# 1. Arity Router
# ===================================================================

class ArityRouter:
    """Picks the resolver for len(args), resolves the name and awaits the call."""

    def __init__(self, resolvers: Mapping[int, Resolver], debug: bool = False):
        self.resolvers = dict(resolvers)
        self.debug = debug

    def _dbg(self, *parts):
        if self.debug:
            print("[DBG]", *parts, file=sys.stderr)
        else:
            _dbg(*parts)

    def resolve(self, name: str, arity: int) -> Resolution:
        resolver = self.resolvers.get(arity)
        if resolver is None:
            raise UnsupportedArity(name, arity)
        return resolver(name)

    async def invoke(self, name: str, args: Sequence[Pipeable] = ()) -> Pipeable:
        args = list(args)
        arity = len(args)
        match self.resolve(name, arity):
            case Found(func=f):
                pass
            case _:
                self._dbg("resolve", f"{name}/{arity}", "-> not found")
                raise NameNotFound(name, arity)

        self._dbg("invoke", f"{name}/{arity}", "arg_types", [type(a).__name__ for a in args])
        try:
            result = f(*args)
            if inspect.isawaitable(result):
                result = await result
        except DispatchError:
            raise
        except Exception as e:
            # Keep the original exception type; record which step raised it.
            if getattr(e, "pipefn_detail", None) is None:
                e.pipefn_detail = f"in ({name}/{arity})"
            raise
        self._dbg("result", f"{name}/{arity}", "->", type(result).__name__)
        return result


# ===================================================================
# 2. Chain execution result
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of running a chain of steps."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    trace: List[str] = field(default_factory=list)

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.trace:
            msg += "\npipefn trace: " + " ".join(self.trace)
        return msg


def _format_runtime_error(e: Exception) -> str:
    match e:
        case NameNotFound():
            return f"NameNotFound: {e}"
        case UnsupportedArity():
            return f"UnsupportedArity: {e}"
        case _:
            msg = f"{type(e).__name__}: {e}"
            detail = getattr(e, "pipefn_detail", None)
            if isinstance(detail, str) and detail:
                msg = f"{msg} {detail}"
            return msg


# ===================================================================
# 3. Runner
# ===================================================================

class Runner:
    """Per-request composition of the nullary rules and the shared capability registry."""

    def __init__(
        self,
        context: InvocationContext | httpx.Request | None = None,
        registry: Optional[CapabilityRegistry] = None,
        *,
        config: Optional[RunnerConfig] = None,
        extra_rules: Iterable[NullaryRule] = (),
    ):
        if registry is None:
            registry = CapabilityRegistry.default() if config is None else CapabilityRegistry.for_config(config)
        self.config = config or RunnerConfig.from_env()
        if context is None:
            context = InvocationContext(client_ip_header=self.config.client_ip_header)
        elif isinstance(context, httpx.Request):
            context = InvocationContext.from_request(context, client_ip_header=self.config.client_ip_header)
        self.context = context
        self.registry = registry
        self.nullary = make_nullary_resolver(context, extra_rules)
        self.router = ArityRouter({0: self.nullary, 1: self.registry}, debug=self.config.debug)

    async def invoke(self, name: str, args: Sequence[Pipeable] = ()) -> Pipeable:
        return await self.router.invoke(name, args)

    async def __call__(self, name: str, args: Sequence[Pipeable] = ()) -> Pipeable:
        return await self.invoke(name, args)

    async def handle_chain(self, steps: Sequence[str]) -> ExecutionResult:
        """Run `steps` in order, piping each value into the next step. Never raises."""
        trace: List[str] = []
        value: Pipeable = None
        try:
            for i, name in enumerate(steps):
                args = [] if i == 0 else [value]
                trace.append(f"({name}/{len(args)})")
                value = await self.invoke(name, args)
        except Exception as e:
            return ExecutionResult(status='error', error_message=_format_runtime_error(e), trace=trace)
        return ExecutionResult(status='success', value=value, trace=trace)


def make_runner(
    context: InvocationContext | httpx.Request | None = None,
    registry: Optional[CapabilityRegistry] = None,
    **kwargs,
) -> Invoke:
    """Build a Runner for one request and return its `invoke(name, args)` entry point."""
    return Runner(context, registry, **kwargs).invoke
