"""
File Extractor
Reads a single file out of a plugin archive on demand
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Response

from ....models.archive_models import SEPARATOR
from ..content_type import ContentTypeDetector
from ..exceptions import ArchiveDecodeError
from ..media_types import content_disposition
from .zip_format import DECODE_ERRORS, ArchiveSource, open_archive, physical_entries

logger = logging.getLogger(__name__)


def _strip_separator(path: str) -> str:
    return path[len(SEPARATOR) :] if path.startswith(SEPARATOR) else path


@dataclass(frozen=True)
class ExtractedFile:
    """The decompressed content of one archive entry, ready to be sent"""

    path: str
    content: bytes
    media_type: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Disposition": content_disposition(self.path)}

    def response(self, status_code: int = 200) -> Response:
        return Response(
            content=self.content,
            status_code=status_code,
            media_type=self.media_type,
            headers=self.headers,
        )


def extract_file(
    archive: ArchiveSource,
    path: str,
    detector: ContentTypeDetector,
    plugin_name: Optional[str] = None,
) -> Optional[ExtractedFile]:
    """
    Find the entry with the given path and return its decompressed bytes.

    Paths are compared exactly, after removing the leading separator from
    both sides. The first matching entry wins and scanning stops there.

    Args:
        archive: Raw archive bytes or a binary stream.
        path: Requested in-archive path, e.g. "/META-INF/MANIFEST.MF".
        detector: Maps (path, content) to the response media type.
        plugin_name: Owning plugin, used for error reporting only.

    Returns:
        ExtractedFile, or None when no entry has that path.

    Raises:
        ArchiveDecodeError: The archive or the entry data is corrupt.
    """
    wanted = _strip_separator(path)

    try:
        with open_archive(archive) as zip_file:
            for info in physical_entries(zip_file):
                if _strip_separator(info.filename) != wanted:
                    continue
                content = zip_file.read(info)
                return ExtractedFile(
                    path=path,
                    content=content,
                    media_type=detector(path, content),
                )
    except DECODE_ERRORS as e:
        logger.error(f"Failed to extract {path} from plugin {plugin_name}: {e}")
        raise ArchiveDecodeError(f"Unable to extract {path}: {e}", plugin_name=plugin_name) from e

    logger.debug(f"File {path} not found in plugin {plugin_name}")
    return None
