"""
Filter Handler
Finds plugins whose name contains a query string
"""

from typing import List, Optional

from ....models.plugin_models import Plugin
from .base import ALL, PluginHandlerContext, PluginResourceHandler, check_paging


class PluginFilterHandler(PluginResourceHandler):
    def handle_all(
        self,
        context: PluginHandlerContext,
        query: Optional[str] = None,
        offset: Optional[int] = None,
        count: Optional[int] = None,
        **parameters,
    ) -> List[Plugin]:
        """
        Case-insensitive substring match on plugin names.

        A missing, blank or "*" query matches every plugin. Results are
        ordered by name and paged like a load of all plugins.
        """
        offset, count = check_paging(offset, count)
        if query is not None:
            query = query.strip()
        if not query or query == ALL:
            query = None
        return context.store.filter(query, offset, count)
