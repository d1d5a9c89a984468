"""
Repository Pattern Implementation

Centralizes plugin persistence behind PluginStore so handlers never touch
SQLAlchemy directly.
"""

from .plugin_repository import MemoryPluginStore, PluginStore, SqlPluginStore

__all__ = [
    "PluginStore",
    "MemoryPluginStore",
    "SqlPluginStore",
]
