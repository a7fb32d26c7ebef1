from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional

from pipefn.pipefn_datatypes import (
    Exact, Found, NameNotFound, NOT_FOUND, NullaryRule, Pattern, Pipeable, Resolution,
)

LIST_OPEN, LIST_CLOSE = "[", "]"


def rule(matcher, producer: Callable[..., Pipeable]) -> NullaryRule:
    """Build a rule from a literal name or a compiled regex."""
    if isinstance(matcher, (Exact, Pattern)):
        return NullaryRule(matcher, producer)
    if isinstance(matcher, str):
        return NullaryRule(Exact(matcher), producer)
    if isinstance(matcher, re.Pattern):
        return NullaryRule(Pattern(matcher), producer)
    raise TypeError(f"Invalid pattern {matcher!r}")


class NullaryResolver:
    """Resolves a name to a zero-argument producer by first matching rule."""

    def __init__(self, rules: Iterable[NullaryRule]):
        self.rules: tuple[NullaryRule, ...] = tuple(rules)

    def resolve(self, name: str) -> Resolution:
        for r in self.rules:
            groups = r.matcher.match(name)
            if groups is None:
                continue
            producer = r.producer
            return Found(lambda: producer(*groups))
        return NOT_FOUND

    def __call__(self, name: str) -> Resolution:
        return self.resolve(name)

    def __len__(self):
        return len(self.rules)


def _is_word(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def split_list_items(inner: str) -> List[str]:
    """
    Split the inside of a bracketed list into item names.

    A comma separates items only when neither neighbour is a word character
    (the comma in `"a","b"` or `],[`, never the one in `a,b`), and only at the
    top level: commas inside nested brackets are kept. Quotes are not
    special, so a quoted item containing `","` is split like any other.
    """
    items: List[str] = []
    start = 0
    depth = 0
    for i, ch in enumerate(inner):
        if ch == LIST_OPEN:
            depth += 1
        elif ch == LIST_CLOSE:
            depth -= 1
        elif ch == "," and depth == 0:
            before = inner[i - 1] if i > 0 else ""
            after = inner[i + 1] if i + 1 < len(inner) else ""
            if not _is_word(before) and not _is_word(after):
                items.append(inner[start:i])
                start = i + 1
    items.append(inner[start:])
    return items


def default_rules(context, resolver: Callable[[], Optional[NullaryResolver]]) -> List[NullaryRule]:
    """
    The built-in nullary rules, in precedence order.

    `context` supplies the request-scoped values. `resolver` returns the
    resolver that owns these rules so list items resolve against the same
    rule set and never another request's.
    """

    def resolve_item(item: str) -> Pipeable:
        match resolver().resolve(item):
            case Found(func=f):
                return f()
            case _:
                raise NameNotFound(item, 0)

    def bracketed_list(inner: str) -> List[Pipeable]:
        return [resolve_item(item) for item in split_list_items(inner)]

    return [
        rule("Viewer.ipAddress", context.client_address),
        rule("Input.read", context.read_body),
        rule(re.compile(r'"(.*)"'), lambda s: s),
        rule(re.compile(r"\[\]"), lambda: []),
        rule(re.compile(r"\[(.*)\]"), bracketed_list),
    ]


def make_nullary_resolver(context, extra_rules: Iterable[NullaryRule] = ()) -> NullaryResolver:
    """Build a fresh resolver for one request; `extra_rules` take precedence over the built-ins."""
    holder: list[NullaryResolver] = []
    resolver = NullaryResolver([*extra_rules, *default_rules(context, lambda: holder[0])])
    holder.append(resolver)
    return resolver
