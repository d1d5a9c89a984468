"""
List Handler
Lists the entries inside a stored plugin archive as JSON
"""

from typing import Optional

from fastapi import Response

from ..archive.reader import read_entry_list
from ..media_types import JSON, X_CONTENT_TYPE, require_accept
from .base import PluginHandlerContext, PluginResourceHandler

ENTRY_LIST = "EntryList"


class PluginListHandler(PluginResourceHandler):
    def handle_one(
        self,
        name: str,
        context: PluginHandlerContext,
        accept: Optional[str] = None,
        **parameters,
    ) -> Optional[Response]:
        """
        List the archive entries of one plugin, in physical order.

        Returns:
            JSON array response, or None when the plugin does not exist.

        Raises:
            PluginValidationError: Accept header missing or not allowing JSON.
            ArchiveDecodeError: The stored archive is corrupt.
        """
        require_accept(accept, JSON, required=True)

        plugin = context.store.load(name)
        if plugin is None:
            return None

        entries = read_entry_list(plugin.archive, plugin_name=plugin.name)
        return Response(
            content=entries.to_json(),
            media_type=JSON,
            headers={X_CONTENT_TYPE: ENTRY_LIST},
        )
