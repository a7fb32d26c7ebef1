
"""
Defines the core data types for the pipefn dispatcher.

This module provides the value kinds that flow between pipeline steps,
the matchers used by nullary rules, the explicit resolution result, and
the dispatch errors.
"""

import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, List, Optional, Union

import httpx

# The closed set of values that may be piped from one step into the next.
Pipeable = Union[
    str,
    int,
    float,
    List[str],
    List[List[str]],
    bytes,
    httpx.Response,
    AsyncIterator[bytes],
    None,
]


class DispatchError(Exception):
    """Base class for failures raised by the router itself."""
    def __init__(self, name: str, arity: int, message: Optional[str] = None):
        super().__init__(message or f"No function found matching {name}/{arity}")
        self.name = name
        self.arity = arity


class NameNotFound(DispatchError, LookupError):
    pass


class UnsupportedArity(DispatchError):
    def __init__(self, name: str, arity: int):
        super().__init__(name, arity, f"No function found matching {name}/{arity} (only arity 0 and 1 are supported)")


# =================================================================
# Resolution results
# =================================================================

class _NotFound:
    """Singleton sentinel returned when no rule or entry matches."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class Found:
    func: Callable[..., Any]


Resolution = Union[Found, _NotFound]


# =================================================================
# Nullary rule matchers
# =================================================================

@dataclass(frozen=True)
class Exact:
    text: str

    def match(self, name: str) -> Optional[tuple]:
        return () if name == self.text else None


class Pattern:
    """A regex matched against the whole name; capture groups become producer args."""
    __slots__ = ("regex",)

    def __init__(self, regex: Union[str, "re.Pattern[str]"]):
        self.regex = re.compile(regex) if isinstance(regex, str) else regex

    def match(self, name: str) -> Optional[tuple]:
        m = self.regex.fullmatch(name)
        if m is None:
            return None
        return m.groups()

    def __eq__(self, other):
        return isinstance(other, Pattern) and self.regex.pattern == other.regex.pattern

    def __hash__(self):
        return hash(self.regex.pattern)

    def __repr__(self):
        return f"Pattern({self.regex.pattern!r})"


Matcher = Union[Exact, Pattern]


@dataclass(frozen=True)
class NullaryRule:
    matcher: Matcher
    producer: Callable[..., Pipeable]


# =================================================================
# Value coercion helpers used by text-oriented capabilities
# =================================================================

async def read_bytes(value: Pipeable) -> bytes:
    """Collapse text, bytes, numbers or a byte stream into a single bytes object."""
    match value:
        case None:
            raise TypeError("expected a value, got none")
        case bytes() | bytearray():
            return bytes(value)
        case str():
            return value.encode("utf-8")
        case bool():
            raise TypeError("booleans are not pipeable")
        case int() | float():
            return str(value).encode("utf-8")
    if hasattr(value, "__aiter__"):
        chunks = []
        async for chunk in value:
            chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk))
        return b"".join(chunks)
    raise TypeError(f"cannot read bytes from {type(value).__name__}")


async def read_text(value: Pipeable) -> str:
    if isinstance(value, str):
        return value
    return (await read_bytes(value)).decode("utf-8", errors="replace")
