"""
Preform Exception Hierarchy.

All custom exceptions inherit from PreformError for unified error handling.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class PreformError(Exception):
    """Base exception for Preform errors.

    Attributes:
        message: Human-readable error description
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self._log_error()

    def _log_error(self) -> None:
        """Log the error creation at debug level.

        Validation errors are expected during normal editing, so callers
        decide whether anything is worth logging above debug.
        """
        logger.debug(
            f"{self.__class__.__name__}: {self.message}",
            extra={"error_context": self.context},
        )

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{ctx}]"
        return self.message


class ConfigError(PreformError):
    """Raised for configuration errors.

    Examples:
        - Malformed config.toml
        - Unknown log level
        - Unknown configuration key
    """


class ValidationError(PreformError):
    """Raised when form input is rejected.

    The form stays open; the message is shown to the user.

    Examples:
        - Empty subject on submit
        - Invalid name for a new commit type
    """

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        value: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field_name:
            ctx["field"] = field_name
        if value is not None:
            ctx["value"] = repr(value)
        super().__init__(message, ctx)
        self.field_name = field_name
        self.value = value

    def __str__(self) -> str:
        return self.message


class FileAccessError(PreformError, OSError):
    """Raised when a file or directory cannot be read or written.

    Always fatal for the command that hit it.

    Attributes:
        path: The path that failed
        operation: What was being attempted (read, write, install, ...)
    """

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        operation: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if path is not None:
            ctx["path"] = str(path)
        if operation:
            ctx["operation"] = operation
        super().__init__(message, ctx)
        self.path = Path(path) if path is not None else None
        self.operation = operation
