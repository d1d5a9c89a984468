"""
Load Handler
Fetches one plugin, a page of plugins, or a name range
"""

from typing import List, Optional

from ....models.plugin_models import Plugin
from .base import PluginHandlerContext, PluginResourceHandler, check_paging


class PluginLoadHandler(PluginResourceHandler):
    def handle_one(self, name: str, context: PluginHandlerContext, **parameters) -> Optional[Plugin]:
        return context.store.load(name)

    def handle_all(
        self,
        context: PluginHandlerContext,
        offset: Optional[int] = None,
        count: Optional[int] = None,
        **parameters,
    ) -> List[Plugin]:
        offset, count = check_paging(offset, count)
        return context.store.values(offset, count)

    def handle_range(self, lower: str, upper: str, context: PluginHandlerContext, **parameters) -> List[Plugin]:
        return context.store.between(lower, upper)
