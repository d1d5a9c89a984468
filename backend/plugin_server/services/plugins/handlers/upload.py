"""
Upload Handler

Accepts a plugin JAR, derives the plugin name from the "plugin-name"
attribute of its manifest and stores it, replacing any plugin of that name.

Accepted request bodies:
    multipart/form-data         first part carrying a filename
    application/octet-stream    raw bytes, filename from Content-Disposition
    text/base64                 base64 text, filename from Content-Disposition

Everything is validated before the store is written, a rejected upload
leaves the store unchanged.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from fastapi import Response

from ....models.plugin_models import Plugin
from ..archive.manifest import PluginArchiveManifest
from ..exceptions import PluginValidationError
from ..media_types import (
    BASE64,
    BINARY,
    MULTIPART_FORM_DATA,
    base_media_type,
    content_disposition,
    filename_from_content_disposition,
    require_accept,
)
from .base import PluginHandlerContext, PluginResourceHandler

logger = logging.getLogger(__name__)

PLUGIN_NAME_HEADER = "X-Plugin-Name"


@dataclass(frozen=True)
class UploadPart:
    """One part of a multipart body"""

    name: Optional[str]
    filename: Optional[str]
    content: bytes


@dataclass
class PluginUpload:
    """The parts of an upload request the handler needs"""

    accept: Optional[str] = None
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
    body: bytes = b""
    parts: List[UploadPart] = field(default_factory=list)


def _first_file(parts: List[UploadPart]) -> Tuple[str, bytes]:
    for part in parts:
        if part.filename:
            return part.filename, part.content
    raise PluginValidationError("Multipart parts missing file", field="file")


def _filename(upload: PluginUpload) -> str:
    filename = filename_from_content_disposition(upload.content_disposition)
    if not filename:
        raise PluginValidationError("Missing filename", field="Content-Disposition")
    return filename


def _decode_base64(body: bytes) -> bytes:
    try:
        return base64.b64decode(b"".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise PluginValidationError(f"Invalid base64 body: {e}", field="body") from e


def read_upload(upload: PluginUpload) -> Tuple[str, bytes]:
    """
    Extract the uploaded filename and archive bytes from the request.

    Raises:
        PluginValidationError: Missing or unsupported Content-Type, no file
            part, missing filename, or undecodable base64.
    """
    content_type = base_media_type(upload.content_type)
    if content_type is None:
        raise PluginValidationError("Missing Content-Type", field="Content-Type")

    if content_type == MULTIPART_FORM_DATA:
        return _first_file(upload.parts)
    if content_type == BINARY:
        return _filename(upload), upload.body
    if content_type == BASE64:
        return _filename(upload), _decode_base64(upload.body)

    raise PluginValidationError(
        f"Unsupported Content-Type {content_type}, expected {MULTIPART_FORM_DATA}, {BINARY} or {BASE64}",
        field="Content-Type",
    )


class PluginUploadHandler(PluginResourceHandler):
    def handle_all(self, context: PluginHandlerContext, upload: Optional[PluginUpload] = None, **parameters) -> Response:
        if upload is None:
            raise PluginValidationError("Missing upload", field="body")

        require_accept(upload.accept, BINARY)
        user = context.user_or_fail()
        filename, archive = read_upload(upload)

        manifest = PluginArchiveManifest.from_archive(archive)
        plugin = Plugin(
            name=manifest.plugin_name,
            filename=filename,
            archive=archive,
            user=user,
            timestamp=context.now(),
        )

        context.store.save(plugin)
        logger.info(f"Plugin {plugin.name} uploaded by {user} as {plugin.filename} ({len(archive)} bytes)")
        if manifest.provider_factory_class_name:
            logger.info(f"Plugin {plugin.name} provides factory {manifest.provider_factory_class_name}")

        return Response(
            content=plugin.archive,
            media_type=BINARY,
            headers={
                "Content-Disposition": content_disposition(plugin.filename),
                PLUGIN_NAME_HEADER: plugin.name,
            },
        )
