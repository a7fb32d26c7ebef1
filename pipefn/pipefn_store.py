"""
Content addressed text storage, one directory per kind:

<root>/
  markdown/sha256/ab/cdef...          # Store.addTextMarkdown
  graphql-schema/sha256/ab/cdef...    # Store.addTextGraphQLSchema

Identifiers are the lowercase hex SHA-256 of the UTF-8 text.
"""
from __future__ import annotations

import os
import re
import time
from pathlib import Path
from typing import Union

from pipefn.pipefn_datatypes import Pipeable, read_text
from pipefn.pipefn_digest import sha256_bytes

KINDS = ("markdown", "graphql-schema")

_HEX_ID = re.compile(r"[0-9a-f]{64}")


def _fanout_path(root: Path, kind: str, digest_hex: str) -> Path:
    return root / kind / "sha256" / digest_hex[:2] / digest_hex[2:]


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp-" + str(time.time_ns()))
    with open(tmp, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class TextStore:
    """A file-backed content addressed store for text blobs."""

    def __init__(self, root: Union[str, os.PathLike]):
        self.root = Path(root)

    def _check_kind(self, kind: str) -> None:
        if kind not in KINDS:
            raise ValueError(f"Unknown store kind: {kind!r}")

    def put_text(self, kind: str, text: str) -> str:
        self._check_kind(kind)
        data = text.encode("utf-8")
        digest_hex = sha256_bytes(data)
        dst = _fanout_path(self.root, kind, digest_hex)
        # Same content, same id: nothing to write.
        if not dst.exists():
            _atomic_write_bytes(dst, data)
        return digest_hex

    def get_text(self, kind: str, identifier: str) -> str:
        self._check_kind(kind)
        digest_hex = identifier.strip().lower()
        if digest_hex.startswith("sha256:"):
            digest_hex = digest_hex[7:]
        if not _HEX_ID.fullmatch(digest_hex):
            raise ValueError(f"Malformed store identifier: {identifier!r}")
        path = _fanout_path(self.root, kind, digest_hex)
        if not path.is_file():
            raise FileNotFoundError(f"{kind} object not found: {digest_hex}")
        return path.read_text(encoding="utf-8")

    # --- Store.* capabilities ---
    async def add_text_markdown(self, value: Pipeable) -> str:
        return self.put_text("markdown", await read_text(value))

    async def read_text_markdown(self, identifier: Pipeable) -> str:
        return self.get_text("markdown", await read_text(identifier))

    async def add_text_graphql_schema(self, value: Pipeable) -> str:
        return self.put_text("graphql-schema", await read_text(value))

    async def read_text_graphql_schema(self, identifier: Pipeable) -> str:
        return self.get_text("graphql-schema", await read_text(identifier))
