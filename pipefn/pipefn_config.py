from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CLIENT_IP_HEADER = "CF-Connecting-IP"

ENV_PREFIX = "PIPEFN_"

# Environment variable names that do not follow the PIPEFN_<FIELD> pattern.
_ENV_ALIASES = {
    "store_dir": "PIPEFN_STORE",
}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RunnerConfig:
    """Process-wide settings for the capability registry and runners."""
    client_ip_header: str = DEFAULT_CLIENT_IP_HEADER
    store_dir: str = ".pipefn_store"
    fetch_timeout: float = 5.0
    fetch_retries: int = 2
    fetch_backoff: float = 0.2
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunnerConfig":
        """Build from a mapping with kebab-case or snake_case keys."""
        fields = {f.name: f for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for raw_key, value in (data or {}).items():
            key = str(raw_key).replace("-", "_")
            if key not in fields:
                raise ValueError(f"Unknown config key: {raw_key!r}")
            kwargs[key] = _coerce(fields[key].type, value)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, base: Optional["RunnerConfig"] = None) -> "RunnerConfig":
        env = os.environ if environ is None else environ
        current = base or cls()
        overrides: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            env_key = _ENV_ALIASES.get(f.name, f"{ENV_PREFIX}{f.name.upper()}")
            if env_key in env:
                overrides[f.name] = _coerce(f.type, env[env_key])
        return dataclasses.replace(current, **overrides)

    @classmethod
    def from_file(cls, path: str | os.PathLike, environ: Optional[Mapping[str, str]] = None) -> "RunnerConfig":
        """Load a YAML or JSON file; environment variables override file values."""
        p = Path(path)
        text = p.read_text(encoding="utf-8")
        if p.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Config file must contain a mapping: {p}")
        return cls.from_env(environ, base=cls.from_mapping(data))


def _coerce(type_name: Any, value: Any) -> Any:
    # Field types are strings under `from __future__ import annotations`.
    t = type_name if isinstance(type_name, str) else getattr(type_name, "__name__", str(type_name))
    match t:
        case "bool":
            if isinstance(value, str):
                return value.strip().lower() in _TRUTHY
            return bool(value)
        case "int":
            return int(value)
        case "float":
            return float(value)
        case _:
            return str(value)
