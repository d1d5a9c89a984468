"""
Plugin Models
Stored plugin records and their JSON representations
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..services.plugins.exceptions import PluginValidationError

PLUGIN_NAME_PATTERN = "^[A-Za-z][A-Za-z0-9_-]*$"
PLUGIN_NAME_MAX_LENGTH = 255

_PLUGIN_NAME_RE = re.compile(PLUGIN_NAME_PATTERN)


def validate_plugin_name(text: Optional[str], label: str = "name") -> str:
    """
    Validate a plugin name taken from a URL, a query or a JAR manifest.

    Raises:
        PluginValidationError: If the name is missing, too long or contains
            characters other than letters, digits, '-' and '_'.
    """
    if not text:
        raise PluginValidationError(f"Missing plugin {label}", field=label)
    if len(text) > PLUGIN_NAME_MAX_LENGTH:
        raise PluginValidationError(
            f"Plugin {label} longer than {PLUGIN_NAME_MAX_LENGTH} characters",
            field=label,
        )
    if not _PLUGIN_NAME_RE.match(text):
        raise PluginValidationError(f"Invalid plugin {label} {text!r}", field=label)
    return text


class Plugin(BaseModel):
    """An uploaded plugin archive together with its provenance"""

    name: str = Field(..., min_length=1, max_length=PLUGIN_NAME_MAX_LENGTH, pattern=PLUGIN_NAME_PATTERN)
    filename: str = Field(..., min_length=1, description="Original upload filename")
    archive: bytes = Field(..., description="Raw JAR/ZIP bytes, never modified")
    user: str = Field(..., min_length=1, description="User who uploaded the plugin")
    timestamp: datetime = Field(..., description="Upload time")

    class Config:
        frozen = True

    @field_validator("filename")
    @classmethod
    def filename_without_path(cls, v: str) -> str:
        """Browsers may send a full client path; only the base name is kept."""
        return v.replace("\\", "/").rsplit("/", 1)[-1] or v

    @field_validator("timestamp")
    @classmethod
    def timestamp_in_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC, aware ones converted to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class PluginResponse(BaseModel):
    """JSON view of a plugin, the archive itself is only available via download"""

    name: str
    filename: str
    user: str
    timestamp: datetime
    size: int = Field(..., description="Archive size in bytes")

    @classmethod
    def from_plugin(cls, plugin: Plugin) -> "PluginResponse":
        return cls(
            name=plugin.name,
            filename=plugin.filename,
            user=plugin.user,
            timestamp=plugin.timestamp,
            size=len(plugin.archive),
        )


class PluginListResponse(BaseModel):
    """Response model for load/filter of many plugins"""

    plugins: List[PluginResponse] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def from_plugins(cls, plugins: List[Plugin]) -> "PluginListResponse":
        items = [PluginResponse.from_plugin(p) for p in plugins]
        return cls(plugins=items, total=len(items))


__all__ = [
    "PLUGIN_NAME_PATTERN",
    "PLUGIN_NAME_MAX_LENGTH",
    "validate_plugin_name",
    "Plugin",
    "PluginResponse",
    "PluginListResponse",
]
