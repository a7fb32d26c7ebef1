import hashlib

import httpx
import pytest

from pipefn.pipefn_datatypes import read_bytes, read_text
from pipefn.pipefn_digest import sha256
import pipefn.pipefn_store as pipefn_store_mod
from pipefn.pipefn_store import TextStore


async def stream_of(*chunks):
    for c in chunks:
        yield c


@pytest.mark.asyncio
async def test_sha256_of_text_bytes_and_numbers():
    assert await sha256("hello") == hashlib.sha256(b"hello").hexdigest()
    assert await sha256(b"hello") == hashlib.sha256(b"hello").hexdigest()
    assert await sha256(42) == hashlib.sha256(b"42").hexdigest()


@pytest.mark.asyncio
async def test_sha256_drains_streams():
    assert await sha256(stream_of(b"hel", b"lo")) == hashlib.sha256(b"hello").hexdigest()
    assert await sha256(httpx.ByteStream(b"hello")) == hashlib.sha256(b"hello").hexdigest()


@pytest.mark.asyncio
async def test_sha256_rejects_none():
    with pytest.raises(TypeError):
        await sha256(None)


@pytest.mark.asyncio
async def test_read_helpers():
    assert await read_text(b"caf\xc3\xa9") == "café"
    with pytest.raises(TypeError):
        await read_bytes(True)
    with pytest.raises(TypeError):
        await read_bytes(["a", "b"])


@pytest.mark.asyncio
async def test_markdown_roundtrip_through_store(tmp_path):
    store = TextStore(tmp_path)
    ident = await store.add_text_markdown("# Hello")
    assert ident == hashlib.sha256("# Hello".encode("utf-8")).hexdigest()
    assert await store.read_text_markdown(ident) == "# Hello"
    # fanout layout
    assert (tmp_path / "markdown" / "sha256" / ident[:2] / ident[2:]).is_file()


@pytest.mark.asyncio
async def test_add_is_idempotent(tmp_path):
    store = TextStore(tmp_path)
    a = await store.add_text_markdown("same")
    b = await store.add_text_markdown(b"same")
    assert a == b
    files = [p for p in (tmp_path / "markdown").rglob("*") if p.is_file()]
    assert len(files) == 1


@pytest.mark.asyncio
async def test_kinds_are_separate(tmp_path):
    store = TextStore(tmp_path)
    ident = await store.add_text_graphql_schema("type Query { ok: Boolean }")
    assert await store.read_text_graphql_schema(ident) == "type Query { ok: Boolean }"
    with pytest.raises(FileNotFoundError):
        await store.read_text_markdown(ident)


@pytest.mark.asyncio
async def test_read_accepts_prefixed_and_uppercase_ids(tmp_path):
    store = TextStore(tmp_path)
    ident = await store.add_text_markdown("x")
    assert await store.read_text_markdown(f"sha256:{ident.upper()}") == "x"


@pytest.mark.asyncio
async def test_malformed_identifier(tmp_path):
    store = TextStore(tmp_path)
    with pytest.raises(ValueError):
        await store.read_text_markdown("../../etc/passwd")


def test_unknown_kind(tmp_path):
    with pytest.raises(ValueError):
        TextStore(tmp_path).put_text("images", "x")


def test_store_module_documents_its_layout():
    doc = pipefn_store_mod.__doc__
    assert doc is not None
    assert "markdown/sha256/ab/cdef" in doc
    assert "graphql-schema/sha256/ab/cdef" in doc
