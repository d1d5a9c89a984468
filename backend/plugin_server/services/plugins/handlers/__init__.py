"""
Plugin resource handlers used by the plugin routes.
"""

from .base import PluginHandlerContext, PluginResourceHandler, Selection
from .delete import PluginDeleteHandler
from .download import PluginDownloadHandler
from .filter import PluginFilterHandler
from .list import PluginListHandler
from .load import PluginLoadHandler
from .upload import PluginUpload, PluginUploadHandler, UploadPart

__all__ = [
    "PluginHandlerContext",
    "PluginResourceHandler",
    "Selection",
    "PluginDeleteHandler",
    "PluginDownloadHandler",
    "PluginFilterHandler",
    "PluginListHandler",
    "PluginLoadHandler",
    "PluginUpload",
    "PluginUploadHandler",
    "UploadPart",
]
