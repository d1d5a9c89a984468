"""
Unit tests for PluginListHandler and PluginDownloadHandler.
"""

import json

import pytest

from plugin_server.services.plugins.exceptions import ArchiveDecodeError, PluginValidationError
from plugin_server.services.plugins.handlers import PluginDownloadHandler, PluginListHandler

BASE = "/api/plugin"


@pytest.fixture
def stored(store, make_plugin, demo_jar):
    store.save(make_plugin("demo-plugin", archive=demo_jar, filename="demo.jar"))
    return store


@pytest.fixture
def downloads(stored) -> PluginDownloadHandler:
    return PluginDownloadHandler(BASE, stored)


@pytest.mark.unit
class TestListHandler:
    """Test listing archive entries."""

    def test_lists_entries(self, stored, context) -> None:
        response = PluginListHandler().handle_one("demo-plugin", context, accept="application/json")
        assert response.status_code == 200
        assert response.headers["x-content-type"] == "EntryList"
        assert response.media_type == "application/json"

        entries = json.loads(response.body)
        assert [entry["name"] for entry in entries] == [
            "/META-INF/MANIFEST.MF",
            "/lib/",
            "/lib/Demo.class",
            "/README.txt",
        ]
        assert entries[3]["size"] == len(b"hello plugin")
        assert all(value is not None for entry in entries for value in entry.values())

    def test_unknown_plugin(self, stored, context) -> None:
        assert PluginListHandler().handle_one("other", context, accept="application/json") is None

    def test_accept_required(self, stored, context) -> None:
        with pytest.raises(PluginValidationError, match="Missing header Accept"):
            PluginListHandler().handle_one("demo-plugin", context)

    def test_accept_mismatch(self, stored, context) -> None:
        with pytest.raises(PluginValidationError, match="Accept: Got application/json require text/plain"):
            PluginListHandler().handle_one("demo-plugin", context, accept="text/plain")

    def test_corrupt_archive(self, store, make_plugin, context) -> None:
        store.save(make_plugin("broken", archive=b"corrupt"))
        with pytest.raises(ArchiveDecodeError):
            PluginListHandler().handle_one("broken", context, accept="*/*")


@pytest.mark.unit
class TestDownloadPathParsing:
    """Test splitting request paths."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/api/plugin/demo/download", ("demo", None)),
            ("/api/plugin/demo/download/", ("demo", "/")),
            ("/api/plugin/demo/download/a.txt", ("demo", "/a.txt")),
            ("/api/plugin/demo/download/META-INF/MANIFEST.MF", ("demo", "/META-INF/MANIFEST.MF")),
        ],
    )
    def test_parse(self, downloads, path, expected) -> None:
        assert downloads.parse_path(path) == expected

    def test_base_path_trailing_separator(self, stored) -> None:
        handler = PluginDownloadHandler(BASE + "/", stored)
        assert handler.parse_path("/api/plugin/demo/download") == ("demo", None)

    @pytest.mark.parametrize(
        "path",
        ["/api/plugin/demo", "/api/plugin/demo/list", "/other/demo/download", "/api/plugin/1bad/download"],
    )
    def test_invalid(self, downloads, path) -> None:
        with pytest.raises(PluginValidationError):
            downloads.parse_path(path)


@pytest.mark.unit
class TestDownloadHandler:
    """Test download dispatch."""

    def test_whole_archive(self, downloads, demo_jar) -> None:
        response = downloads.handle("/api/plugin/demo-plugin/download")
        assert response.status_code == 200
        assert response.body == demo_jar
        assert response.media_type == "application/java-archive"
        assert response.headers["content-disposition"] == 'attachment; filename="demo.jar"'

    def test_single_file(self, downloads) -> None:
        response = downloads.handle("/api/plugin/demo-plugin/download/lib/Demo.class")
        assert response.status_code == 200
        assert response.body == b"\xca\xfe\xba\xbe"
        assert response.media_type == "application/java-vm"
        assert response.headers["content-disposition"] == 'attachment; filename="/lib/Demo.class"'

    def test_unknown_plugin(self, downloads) -> None:
        response = downloads.handle("/api/plugin/other/download")
        assert response.status_code == 204
        assert response.body == b""

    def test_unknown_file(self, downloads) -> None:
        assert downloads.handle("/api/plugin/demo-plugin/download/missing.txt").status_code == 204

    def test_trailing_separator(self, downloads) -> None:
        assert downloads.handle("/api/plugin/demo-plugin/download/").status_code == 204

    def test_accept_mismatch(self, downloads) -> None:
        response = downloads.handle("/api/plugin/demo-plugin/download", accept="application/json")
        assert response.status_code == 204

    def test_accept_match(self, downloads) -> None:
        response = downloads.handle("/api/plugin/demo-plugin/download/README.txt", accept="text/*")
        assert response.status_code == 200
        assert response.body == b"hello plugin"

    def test_custom_detector(self, stored) -> None:
        handler = PluginDownloadHandler(BASE, stored, detector=lambda filename, content: "application/x-custom")
        assert handler.handle("/api/plugin/demo-plugin/download").media_type == "application/x-custom"

    def test_corrupt_archive_file(self, store, make_plugin) -> None:
        store.save(make_plugin("broken", archive=b"corrupt"))
        handler = PluginDownloadHandler(BASE, store)
        assert handler.handle("/api/plugin/broken/download").body == b"corrupt"
        with pytest.raises(ArchiveDecodeError):
            handler.handle("/api/plugin/broken/download/a.txt")
