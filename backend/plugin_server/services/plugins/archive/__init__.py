"""
Plugin archive access.

Archives are treated as a read-through virtual filesystem: every listing or
extraction decodes the stored bytes again, nothing is unpacked to disk.
"""

from .extractor import ExtractedFile, extract_file
from .manifest import PluginArchiveManifest, parse_manifest
from .reader import read_entry_list

__all__ = [
    "ExtractedFile",
    "extract_file",
    "PluginArchiveManifest",
    "parse_manifest",
    "read_entry_list",
]
