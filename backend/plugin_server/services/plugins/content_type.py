"""
Content type detection for plugin archives and the files inside them.
"""

import mimetypes
import posixpath
from typing import Callable, Dict

from .media_types import BINARY, JAR, ZIP

ContentTypeDetector = Callable[[str, bytes], str]

ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")

# Extensions mimetypes does not know or maps inconsistently across platforms
EXTENSION_OVERRIDES: Dict[str, str] = {
    ".jar": JAR,
    ".java": "text/x-java-source",
    ".class": "application/java-vm",
    ".mf": "text/plain",
    ".properties": "text/plain",
    ".zip": ZIP,
}


def detect_content_type(filename: str, content: bytes) -> str:
    """
    Detect the media type of a file from its name, falling back to its bytes.

    Args:
        filename: File name or in-archive path, only the extension is used.
        content: The file content.

    Returns:
        A media type, "application/octet-stream" when nothing matches.
    """
    extension = posixpath.splitext(filename.lower())[1]
    if extension in EXTENSION_OVERRIDES:
        return EXTENSION_OVERRIDES[extension]

    guessed, _ = mimetypes.guess_type(filename, strict=False)
    if guessed:
        return guessed

    if content[:4] in ZIP_SIGNATURES:
        return ZIP
    return BINARY
