from __future__ import annotations

from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from pipefn.pipefn_config import RunnerConfig
from pipefn.pipefn_datatypes import Found, NOT_FOUND, Pipeable, Resolution
from pipefn.pipefn_digest import sha256
from pipefn.pipefn_graphql import build_schema
from pipefn.pipefn_http import Fetch
from pipefn.pipefn_markup import to_html, wrap_html_in_page
from pipefn.pipefn_store import TextStore

UnaryFunc = Callable[[Any], Awaitable[Pipeable]]


class CapabilityRegistry:
    """An immutable name -> one-argument async transform table. Lookup is exact."""

    _default: Optional["CapabilityRegistry"] = None
    _by_config: Dict[RunnerConfig, "CapabilityRegistry"] = {}

    def __init__(self, entries: Mapping[str, UnaryFunc]):
        self._entries = MappingProxyType(dict(entries))

    def resolve(self, name: str) -> Resolution:
        f = self._entries.get(name)
        if f is None:
            return NOT_FOUND
        return Found(f)

    def __call__(self, name: str) -> Resolution:
        return self.resolve(name)

    def __contains__(self, name) -> bool:
        return name in self._entries

    def __len__(self):
        return len(self._entries)

    def names(self) -> list[str]:
        return sorted(self._entries)

    @property
    def entries(self) -> Mapping[str, UnaryFunc]:
        return self._entries

    @classmethod
    def default(cls) -> "CapabilityRegistry":
        """The process-wide registry, built from the environment on first use."""
        if cls._default is None:
            cls._default = cls.for_config(RunnerConfig.from_env())
        return cls._default

    @classmethod
    def for_config(cls, config: RunnerConfig) -> "CapabilityRegistry":
        """The registry for `config`, built on first use and shared afterwards."""
        reg = cls._by_config.get(config)
        if reg is None:
            reg = cls._by_config[config] = build_registry(config)
        return reg

    @classmethod
    def reset_default(cls) -> None:
        cls._default = None
        cls._by_config.clear()


def default_capabilities(config: RunnerConfig) -> Dict[str, UnaryFunc]:
    fetch = Fetch(timeout=config.fetch_timeout, retries=config.fetch_retries, backoff=config.fetch_backoff)
    store = TextStore(config.store_dir)
    return {
        'Fetch.get': fetch.get,
        'Fetch.body': fetch.body,
        'Fetch.status': fetch.status,
        'Fetch.headers': fetch.headers,
        # TODO: drop the bare 'sha256' alias once pipelines use Digest.sha256
        'sha256': sha256,
        'Digest.sha256': sha256,
        'Store.addTextMarkdown': store.add_text_markdown,
        'Store.readTextMarkdown': store.read_text_markdown,
        'Store.addTextGraphQLSchema': store.add_text_graphql_schema,
        'Store.readTextGraphQLSchema': store.read_text_graphql_schema,
        'Markdown.toHTML': to_html,
        'HTML.wrapInPage': wrap_html_in_page,
        'GraphQL.buildSchema': build_schema,
    }


def build_registry(config: Optional[RunnerConfig] = None, extra: Optional[Mapping[str, UnaryFunc]] = None) -> CapabilityRegistry:
    entries = default_capabilities(config or RunnerConfig())
    if extra:
        entries.update(extra)
    return CapabilityRegistry(entries)
