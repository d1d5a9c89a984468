"""
Unit tests for extracting single files from plugin archives.
"""

import io
import warnings
import zipfile

import pytest

from plugin_server.services.plugins.archive.extractor import extract_file
from plugin_server.services.plugins.content_type import detect_content_type
from plugin_server.services.plugins.exceptions import ArchiveDecodeError


class RecordingDetector:
    """Detector returning a fixed media type and remembering its calls."""

    def __init__(self, media_type: str = "application/x-test") -> None:
        self.media_type = media_type
        self.calls = []

    def __call__(self, filename: str, content: bytes) -> str:
        self.calls.append((filename, content))
        return self.media_type


@pytest.mark.unit
class TestExtractFile:
    """Test extract_file."""

    def test_existing_file(self, demo_jar) -> None:
        extracted = extract_file(demo_jar, "/README.txt", detect_content_type)
        assert extracted is not None
        assert extracted.content == b"hello plugin"
        assert extracted.media_type == "text/plain"
        assert extracted.path == "/README.txt"

    def test_detector_receives_requested_path(self, demo_jar) -> None:
        detector = RecordingDetector()
        extracted = extract_file(demo_jar, "/lib/Demo.class", detector)
        assert detector.calls == [("/lib/Demo.class", b"\xca\xfe\xba\xbe")]
        assert extracted.media_type == "application/x-test"

    def test_response_entity(self, demo_jar) -> None:
        response = extract_file(demo_jar, "/README.txt", RecordingDetector("text/plain")).response()
        assert response.status_code == 200
        assert response.body == b"hello plugin"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == 'attachment; filename="/README.txt"'

    def test_missing_file(self, demo_jar) -> None:
        detector = RecordingDetector()
        assert extract_file(demo_jar, "/missing.txt", detector) is None
        assert detector.calls == []

    def test_match_is_case_sensitive(self, demo_jar) -> None:
        assert extract_file(demo_jar, "/readme.txt", detect_content_type) is None

    def test_root_path_not_found(self, demo_jar) -> None:
        assert extract_file(demo_jar, "/", detect_content_type) is None

    def test_directory_entry(self, demo_jar) -> None:
        extracted = extract_file(demo_jar, "/lib/", RecordingDetector())
        assert extracted is not None
        assert extracted.content == b""

    def test_first_duplicate_wins(self) -> None:
        buffer = io.BytesIO()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with zipfile.ZipFile(buffer, "w") as archive:
                archive.writestr("a.txt", "first")
                archive.writestr("a.txt", "second")

        extracted = extract_file(buffer.getvalue(), "/a.txt", RecordingDetector())
        assert extracted.content == b"first"

    def test_corrupt_archive(self) -> None:
        with pytest.raises(ArchiveDecodeError) as exc_info:
            extract_file(b"garbage", "/a.txt", detect_content_type, plugin_name="broken")
        assert exc_info.value.details["plugin_name"] == "broken"

    def test_corrupt_entry_data(self, demo_jar, corrupt_jar_entry) -> None:
        archive = corrupt_jar_entry(demo_jar, "README.txt")
        with pytest.raises(ArchiveDecodeError) as exc_info:
            extract_file(archive, "/README.txt", detect_content_type, plugin_name="broken")
        assert exc_info.value.details["plugin_name"] == "broken"

    def test_corrupt_entry_leaves_other_entries_readable(self, demo_jar, corrupt_jar_entry) -> None:
        archive = corrupt_jar_entry(demo_jar, "README.txt")
        assert extract_file(archive, "/lib/Demo.class", RecordingDetector()).content == b"\xca\xfe\xba\xbe"
