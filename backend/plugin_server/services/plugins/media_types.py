"""
Media type helpers for plugin responses.

Accept negotiation, Content-Disposition formatting/parsing and the media
type constants used by the plugin endpoints.
"""

from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import List, Optional, Tuple
from urllib.parse import quote

from .exceptions import PluginValidationError

BINARY = "application/octet-stream"
JSON = "application/json"
BASE64 = "text/base64"
MULTIPART_FORM_DATA = "multipart/form-data"
JAR = "application/java-archive"
ZIP = "application/zip"

X_CONTENT_TYPE = "X-Content-Type"


def base_media_type(content_type: Optional[str]) -> Optional[str]:
    """Lower-cased "type/subtype" without parameters, or None when missing."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or None


def parse_accept(accept: str) -> List[Tuple[str, float]]:
    """
    Parse an Accept header into (media range, quality) pairs.

    Ranges with an unparseable quality are treated as q=1. Order is preserved.
    """
    ranges = []
    for item in accept.split(","):
        parts = [p.strip() for p in item.split(";")]
        media_range = parts[0].lower()
        if not media_range:
            continue
        if "/" not in media_range:
            media_range = "*/*" if media_range == "*" else f"{media_range}/*"

        quality = 1.0
        for param in parts[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    quality = float(value.strip())
                except ValueError:
                    quality = 1.0
        ranges.append((media_range, quality))
    return ranges


def _range_matches(media_range: str, media_type: str) -> bool:
    range_type, _, range_subtype = media_range.partition("/")
    media_main, _, media_sub = media_type.partition("/")
    if range_type == "*":
        return True
    if range_type != media_main:
        return False
    return range_subtype in ("*", media_sub)


def accepts(accept: Optional[str], media_type: str) -> bool:
    """
    Test whether a media type satisfies an Accept header.

    A missing or blank header accepts everything, the same as "*/*".
    The most specific matching range decides, so "type/sub;q=0" excludes
    a type that a broader "*/*" would otherwise allow.
    """
    if accept is None or not accept.strip():
        return True

    media_type = base_media_type(media_type) or ""
    best_specificity = -1
    best_quality = 0.0
    for media_range, quality in parse_accept(accept):
        if not _range_matches(media_range, media_type):
            continue
        specificity = _specificity(media_range)
        if specificity > best_specificity:
            best_specificity = specificity
            best_quality = quality
    return best_specificity >= 0 and best_quality > 0


def _specificity(media_range: str) -> int:
    range_type, _, range_subtype = media_range.partition("/")
    if range_type == "*":
        return 0
    if range_subtype == "*":
        return 1
    return 2


def require_accept(accept: Optional[str], media_type: str, required: bool = False) -> None:
    """
    Fail unless the Accept header allows the given media type.

    Args:
        accept: The request Accept header value.
        media_type: The media type the handler is about to produce.
        required: When True a missing Accept header is itself an error.

    Raises:
        PluginValidationError: Accept missing (when required) or incompatible.
    """
    if accept is None or not accept.strip():
        if required:
            raise PluginValidationError("Missing header Accept", field="Accept")
        return
    if not accepts(accept, media_type):
        raise PluginValidationError(f"Accept: Got {media_type} require {accept}", field="Accept")


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """
    Format a Content-Disposition header value carrying a filename.

    Non-ASCII filenames get an ASCII fallback plus the RFC 5987 encoded form.
    """
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = "".join(c if ord(c) < 128 else "_" for c in escaped)
        quoted = quote(filename, safe="/")
        return f"{disposition}; filename=\"{fallback}\"; filename*=utf-8''{quoted}"

    return f'{disposition}; filename="{escaped}"'


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the filename parameter from a Content-Disposition header value.

    An RFC 5987 "filename*" parameter takes precedence over "filename".
    """
    if not header:
        return None
    message = Message()
    message["content-disposition"] = header
    filename = None
    for key, value in (message.get_params(header="content-disposition") or [])[1:]:
        if key.lower() != "filename":
            continue
        if isinstance(value, tuple):
            return collapse_rfc2231_value(value) or None
        filename = filename or value
    return filename or None


__all__ = [
    "BINARY",
    "JSON",
    "BASE64",
    "MULTIPART_FORM_DATA",
    "JAR",
    "ZIP",
    "X_CONTENT_TYPE",
    "base_media_type",
    "parse_accept",
    "accepts",
    "require_accept",
    "content_disposition",
    "filename_from_content_disposition",
]
