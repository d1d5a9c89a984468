"""
Plugin Services Module

Module Architecture:
    plugins/
    +-- __init__.py          # This file
    +-- exceptions.py        # Custom exception classes
    +-- media_types.py       # Accept negotiation and Content-Disposition helpers
    +-- content_type.py      # (filename, bytes) -> media type detection
    +-- archive/             # Listing, extraction and manifest reading
    +-- handlers/            # Plugin resource handlers used by the routes

Usage:
    from plugin_server.services.plugins.archive import read_entry_list

    entries = read_entry_list(plugin.archive, plugin_name=plugin.name)
"""

from .exceptions import (
    ArchiveDecodeError,
    PluginError,
    PluginOperationNotSupportedError,
    PluginValidationError,
)

__all__ = [
    "ArchiveDecodeError",
    "PluginError",
    "PluginOperationNotSupportedError",
    "PluginValidationError",
]
