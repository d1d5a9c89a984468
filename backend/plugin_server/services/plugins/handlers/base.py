"""
Plugin Resource Handler Base

Every plugin handler implements one interface declaring all operations.
An operation a handler does not override raises
PluginOperationNotSupportedError, which the API reports as 405.

Selections address plugins in the URL:
    *       every plugin                  -> handle_all
    a..b    names between a and b         -> handle_range
    name    exactly one plugin            -> handle_one
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from ....models.plugin_models import validate_plugin_name
from ....repositories.plugin_repository import PluginStore
from ..content_type import ContentTypeDetector, detect_content_type
from ..exceptions import PluginOperationNotSupportedError, PluginValidationError

ALL = "*"
RANGE_SEPARATOR = ".."

DEFAULT_COUNT = 20
MAX_COUNT = 40

Clock = Callable[[], datetime]


@dataclass
class PluginHandlerContext:
    """Collaborators available to a handler for the duration of one request"""

    store: PluginStore
    clock: Clock
    user: Optional[str] = None
    detector: ContentTypeDetector = detect_content_type

    def user_or_fail(self) -> str:
        if not self.user:
            raise PluginValidationError("Missing user", field="user")
        return self.user

    def now(self) -> datetime:
        return self.clock()


@dataclass(frozen=True)
class Selection:
    """A parsed {selection} path segment"""

    kind: str  # "all", "range" or "one"
    name: Optional[str] = None
    lower: Optional[str] = None
    upper: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Selection":
        """
        Raises:
            PluginValidationError: A name or range bound is not a valid plugin name.
        """
        if text == ALL:
            return cls(kind="all")
        if RANGE_SEPARATOR in text:
            lower, _, upper = text.partition(RANGE_SEPARATOR)
            return cls(
                kind="range",
                lower=validate_plugin_name(lower, label="range lower bound"),
                upper=validate_plugin_name(upper, label="range upper bound"),
            )
        return cls(kind="one", name=validate_plugin_name(text))


def check_paging(offset: Optional[int], count: Optional[int]) -> tuple:
    """
    Apply the default page size and cap it at MAX_COUNT.

    Returns:
        (offset, count) ready for the store.

    Raises:
        PluginValidationError: offset or count is negative.
    """
    offset = 0 if offset is None else offset
    count = DEFAULT_COUNT if count is None else count
    if offset < 0:
        raise PluginValidationError(f"Invalid offset {offset} < 0", field="offset")
    if count < 0:
        raise PluginValidationError(f"Invalid count {count} < 0", field="count")
    return offset, min(count, MAX_COUNT)


class PluginResourceHandler:
    """Base class for plugin handlers, all operations unsupported"""

    def _not_supported(self, operation: str) -> PluginOperationNotSupportedError:
        return PluginOperationNotSupportedError(type(self).__name__, operation)

    def handle_all(self, context: PluginHandlerContext, **parameters: Any) -> Any:
        raise self._not_supported("all")

    def handle_one(self, name: str, context: PluginHandlerContext, **parameters: Any) -> Any:
        raise self._not_supported("one")

    def handle_many(self, names: List[str], context: PluginHandlerContext, **parameters: Any) -> Any:
        raise self._not_supported("many")

    def handle_range(self, lower: str, upper: str, context: PluginHandlerContext, **parameters: Any) -> Any:
        raise self._not_supported("range")

    def handle_none(self, context: PluginHandlerContext, **parameters: Any) -> Any:
        raise self._not_supported("none")

    def dispatch(self, selection: Selection, context: PluginHandlerContext, **parameters: Any) -> Any:
        """Route a parsed selection to the matching operation."""
        if selection.kind == "all":
            return self.handle_all(context, **parameters)
        if selection.kind == "range":
            return self.handle_range(selection.lower, selection.upper, context, **parameters)
        return self.handle_one(selection.name, context, **parameters)

    def __str__(self) -> str:
        return type(self).__name__
