"""
Plugin System Exceptions

Centralized exception hierarchy for plugin archive errors. Each exception maps
onto one outcome class of the HTTP layer, so routes never have to inspect
messages to decide on a status code.

Exception Hierarchy:
    PluginError (base)
    +-- PluginValidationError: Client supplied a malformed request or archive
    +-- ArchiveDecodeError: A stored archive could not be decoded
    +-- PluginOperationNotSupportedError: Handler does not support the operation

Unknown plugins and unknown archive paths are NOT exceptions; handlers return
None and the routes answer with 204 No Content.

Usage:
    from plugin_server.services.plugins.exceptions import (
        ArchiveDecodeError,
        PluginError,
        PluginValidationError,
    )

    try:
        entries = read_entry_list(plugin.archive)
    except ArchiveDecodeError as e:
        logger.error(f"Plugin archive unreadable: {e}")
"""

from typing import Any, Dict, Optional


class PluginError(Exception):
    """
    Base exception for all plugin-related errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error (optional).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary containing error type, message, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class PluginValidationError(PluginError):
    """
    Raised when a request, plugin name, entry name or uploaded archive is invalid.

    Validation always completes before the store is touched, so raising this
    exception guarantees the store was left unchanged.

    Attributes:
        field: The request field or header that failed validation (optional).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.field = field
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, details=error_details)


class ArchiveDecodeError(PluginError):
    """
    Raised when a stored plugin archive cannot be decoded as a ZIP/JAR container.

    Archives are validated on upload, so this indicates corruption and is
    reported as a server-side failure. Decoding is deterministic and is
    never retried.

    Attributes:
        plugin_name: The plugin whose archive failed to decode (optional).
    """

    def __init__(
        self,
        message: str,
        plugin_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.plugin_name = plugin_name
        error_details = details or {}
        if plugin_name:
            error_details["plugin_name"] = plugin_name
        super().__init__(message=message, details=error_details)


class PluginOperationNotSupportedError(PluginError):
    """
    Raised when a handler is asked to perform an operation it does not declare.

    Attributes:
        handler: Name of the handler that rejected the operation.
        operation: The rejected operation (all, one, many, range, none).
    """

    def __init__(self, handler: str, operation: str) -> None:
        self.handler = handler
        self.operation = operation
        super().__init__(
            message=f"{handler}: {operation} not supported",
            details={"handler": handler, "operation": operation},
        )


__all__ = [
    "PluginError",
    "PluginValidationError",
    "ArchiveDecodeError",
    "PluginOperationNotSupportedError",
]
