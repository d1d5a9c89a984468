"""
Pytest configuration and fixtures for plugin server tests.
"""

import io
import os
import struct
import zipfile
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Union

import pytest

# Must be set before plugin_server.database creates its engine
os.environ["PLUGIN_SERVER_DATABASE_URL"] = "sqlite://"
os.environ.pop("PLUGIN_SERVER_DEFAULT_USER", None)

from fastapi.testclient import TestClient  # noqa: E402

from plugin_server.models.plugin_models import Plugin  # noqa: E402
from plugin_server.repositories.plugin_repository import MemoryPluginStore  # noqa: E402
from plugin_server.services.plugins.handlers import PluginHandlerContext  # noqa: E402

FIXED_NOW = datetime(2024, 5, 17, 9, 30, tzinfo=timezone.utc)


def manifest_text(plugin_name: Optional[str] = "demo-plugin") -> str:
    lines = ["Manifest-Version: 1.0"]
    if plugin_name is not None:
        lines.append(f"plugin-name: {plugin_name}")
    return "\r\n".join(lines) + "\r\n\r\n"


def build_jar(
    plugin_name: Optional[str] = "demo-plugin",
    files: Optional[Dict[str, Union[bytes, str]]] = None,
    directories: Iterable[str] = (),
    manifest: Union[str, bool] = True,
) -> bytes:
    """
    Build a JAR in memory.

    The manifest is written first unless manifest=False; pass a string to
    write custom manifest text.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as jar:
        if manifest is True:
            jar.writestr("META-INF/MANIFEST.MF", manifest_text(plugin_name))
        elif manifest:
            jar.writestr("META-INF/MANIFEST.MF", manifest)
        for directory in directories:
            jar.writestr(directory, b"")
        for name, content in (files or {}).items():
            jar.writestr(name, content)
    return buffer.getvalue()


def corrupt_entry(archive: bytes, name: str) -> bytes:
    """Overwrite the first compressed byte of an entry with a reserved deflate block type."""
    with zipfile.ZipFile(io.BytesIO(archive)) as jar:
        info = jar.getinfo(name)
    offset = info.header_offset
    name_len, extra_len = struct.unpack("<HH", archive[offset + 26 : offset + 30])
    data_start = offset + 30 + name_len + extra_len
    corrupted = bytearray(archive)
    corrupted[data_start] = 0xFF
    return bytes(corrupted)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def jar_factory():
    """Provide the in-memory JAR builder."""
    return build_jar


@pytest.fixture
def corrupt_jar_entry():
    """Provide the helper that breaks the compressed data of one entry."""
    return corrupt_entry


@pytest.fixture
def demo_jar() -> bytes:
    """A plugin JAR named demo-plugin with two files and one directory."""
    return build_jar(
        "demo-plugin",
        files={"lib/Demo.class": b"\xca\xfe\xba\xbe", "README.txt": "hello plugin"},
        directories=["lib/"],
    )


@pytest.fixture
def make_plugin():
    """Build a Plugin with sensible defaults."""

    def _make(name: str = "demo-plugin", archive: bytes = b"", filename: str = "", user: str = "alice") -> Plugin:
        return Plugin(
            name=name,
            filename=filename or f"{name}.jar",
            archive=archive,
            user=user,
            timestamp=FIXED_NOW,
        )

    return _make


@pytest.fixture
def store() -> MemoryPluginStore:
    return MemoryPluginStore()


@pytest.fixture
def context(store) -> PluginHandlerContext:
    """Handler context with a fixed clock and user."""
    return PluginHandlerContext(store=store, clock=lambda: FIXED_NOW, user="alice")


@pytest.fixture
def client(store):
    """FastAPI test client backed by the in-memory store."""
    from plugin_server.main import app
    from plugin_server.routes.plugins import get_plugin_store

    app.dependency_overrides[get_plugin_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
