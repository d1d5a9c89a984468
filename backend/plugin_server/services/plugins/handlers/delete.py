"""
Delete Handler
Removes one plugin, a name range, or every plugin
"""

import logging

from .base import PluginHandlerContext, PluginResourceHandler

logger = logging.getLogger(__name__)


class PluginDeleteHandler(PluginResourceHandler):
    """Deleting a plugin that does not exist is not an error"""

    def handle_one(self, name: str, context: PluginHandlerContext, **parameters) -> None:
        if context.store.delete(name):
            logger.info(f"Deleted plugin {name}")
        else:
            logger.debug(f"Delete of unknown plugin {name} ignored")

    def handle_all(self, context: PluginHandlerContext, **parameters) -> None:
        deleted = context.store.delete_all()
        logger.info(f"Deleted all {deleted} plugins")

    def handle_range(self, lower: str, upper: str, context: PluginHandlerContext, **parameters) -> None:
        deleted = context.store.delete_between(lower, upper)
        logger.info(f"Deleted {deleted} plugins between {lower} and {upper}")
