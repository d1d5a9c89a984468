"""
Plugin Server Models Package
Plugin records and archive entry models
"""

from .archive_models import MANIFEST_MF, EntryInfo, EntryList, EntryName
from .plugin_models import Plugin, PluginListResponse, PluginResponse, validate_plugin_name

__all__ = [
    "MANIFEST_MF",
    "EntryInfo",
    "EntryList",
    "EntryName",
    "Plugin",
    "PluginListResponse",
    "PluginResponse",
    "validate_plugin_name",
]
