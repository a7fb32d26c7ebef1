from __future__ import annotations
import hashlib

from pipefn.pipefn_datatypes import Pipeable, read_bytes


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


async def sha256(value: Pipeable) -> str:
    """Hex SHA-256 of text (UTF-8), bytes, a number, or a fully drained byte stream."""
    return sha256_bytes(await read_bytes(value))
