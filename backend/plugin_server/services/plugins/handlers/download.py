"""
Download Handler

Serves either a whole plugin archive or one file from inside it:

    {base}/{name}/download              -> the stored archive
    {base}/{name}/download/{path...}    -> one extracted file

The path is taken apart by segment position after the base path rather
than by route parameters, so "{base}/{name}/download/" asks for the
archive path "/".
"""

import logging
from typing import List, Optional, Tuple

from fastapi import Response, status

from ....models.archive_models import SEPARATOR
from ....models.plugin_models import validate_plugin_name
from ....repositories.plugin_repository import PluginStore
from ..archive.extractor import extract_file
from ..content_type import ContentTypeDetector, detect_content_type
from ..exceptions import PluginValidationError
from ..media_types import accepts, content_disposition

logger = logging.getLogger(__name__)

DOWNLOAD = "download"

NAME_SEGMENT = 0
DOWNLOAD_SEGMENT = 1
FILE_PATH_SEGMENT = 2


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


class PluginDownloadHandler:
    """
    Top level handler for plugin downloads.

    Example:
        handler = PluginDownloadHandler("/api/plugin", store)
        response = handler.handle("/api/plugin/demo/download/META-INF/MANIFEST.MF")
    """

    def __init__(
        self,
        base_path: str,
        store: PluginStore,
        detector: ContentTypeDetector = detect_content_type,
    ) -> None:
        self.base_path = base_path.rstrip(SEPARATOR)
        self.store = store
        self.detector = detector

    def _segments(self, path: str) -> List[str]:
        if not path.startswith(self.base_path + SEPARATOR):
            raise PluginValidationError(f"Path {path!r} outside {self.base_path!r}", field="path")
        return path[len(self.base_path) + 1 :].split(SEPARATOR)

    def parse_path(self, path: str) -> Tuple[str, Optional[str]]:
        """
        Split a request path into plugin name and in-archive file path.

        Returns:
            (plugin name, file path with leading separator or None)

        Raises:
            PluginValidationError: Invalid plugin name or no "download" segment.
        """
        segments = self._segments(path)
        if len(segments) <= DOWNLOAD_SEGMENT or segments[DOWNLOAD_SEGMENT] != DOWNLOAD:
            raise PluginValidationError(f"Path {path!r} missing {DOWNLOAD!r}", field="path")

        name = validate_plugin_name(segments[NAME_SEGMENT])
        if len(segments) == FILE_PATH_SEGMENT:
            return name, None
        return name, SEPARATOR + SEPARATOR.join(segments[FILE_PATH_SEGMENT:])

    def handle(self, path: str, accept: Optional[str] = None) -> Response:
        """
        Answer one download request.

        Returns:
            200 with the archive or extracted file, or an empty 204 when the
            plugin or file does not exist or the Accept header rejects the
            media type.

        Raises:
            PluginValidationError: The request path is malformed.
            ArchiveDecodeError: The stored archive is corrupt.
        """
        name, file_path = self.parse_path(path)

        plugin = self.store.load(name)
        if plugin is None:
            logger.debug(f"Download of unknown plugin {name}")
            return no_content()

        if file_path is None:
            media_type = self.detector(plugin.filename, plugin.archive)
            response = Response(
                content=plugin.archive,
                media_type=media_type,
                headers={"Content-Disposition": content_disposition(plugin.filename)},
            )
        else:
            extracted = extract_file(plugin.archive, file_path, self.detector, plugin_name=name)
            if extracted is None:
                return no_content()
            media_type = extracted.media_type
            response = extracted.response()

        if not accepts(accept, media_type):
            logger.debug(f"Download of {name} {file_path or ''} not acceptable as {media_type}: {accept}")
            return no_content()
        return response
