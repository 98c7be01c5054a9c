"""Exception hierarchy for the json2db loader."""

from __future__ import annotations

from typing import Optional


class Json2DbError(Exception):
    """Base exception for all loader failures."""


class ConfigError(Json2DbError):
    """Raised when the mapping configuration is missing or malformed."""


class LoadError(Json2DbError):
    """Raised when a load run cannot continue.

    Carries optional context about where the failure happened so the message
    can be diagnosed without re-running with more verbose logging.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.mapping: Optional[str] = None
        self.path: Optional[str] = None
        self.index: Optional[int] = None

    def with_context(
        self,
        mapping: Optional[str] = None,
        path: Optional[str] = None,
        index: Optional[int] = None,
    ) -> "LoadError":
        # Innermost context wins; outer callers only fill the gaps.
        if self.mapping is None:
            self.mapping = mapping
        if self.path is None:
            self.path = path
        if self.index is None:
            self.index = index
        return self

    def __str__(self) -> str:
        parts = []
        if self.mapping:
            parts.append(f"mapping {self.mapping}")
        if self.path:
            parts.append(f"file {self.path}")
        if self.index is not None:
            parts.append(f"element {self.index}")
        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


class SourceNotFoundError(LoadError):
    """Raised when a mapping's source path does not exist."""


class UnsupportedSourceTypeError(LoadError):
    """Raised when a source is neither a regular file nor a directory."""


class InvalidDocumentShapeError(LoadError):
    """Raised when a JSON file holds something other than an object or array."""


class DocumentParseError(InvalidDocumentShapeError):
    """Raised when a source file cannot be decoded as JSON."""


class IdExpressionError(LoadError):
    """Base class for identifier expression failures."""

    def __init__(self, message: str, expression: str) -> None:
        super().__init__(message)
        self.expression = expression


class MalformedExpressionError(IdExpressionError):
    """Raised for an unterminated ``${`` placeholder."""


class FieldNotFoundError(IdExpressionError):
    """Raised when a placeholder names a field the document does not have."""

    def __init__(self, field: str, expression: str) -> None:
        super().__init__(
            f"Key '{field}' not found in JSON data for id expression: {expression}",
            expression,
        )
        self.field = field


class TypeMismatchError(IdExpressionError):
    """Raised when a referenced field is neither a string nor an integer."""

    def __init__(self, field: str, expression: str, value_type: str) -> None:
        super().__init__(
            f"Invalid value type {value_type} for key '{field}' in id expression "
            f"{expression}. Expected string or integer.",
            expression,
        )
        self.field = field
        self.value_type = value_type


class StoreConnectionError(LoadError):
    """Raised when a destination connection cannot be established."""


class QueryError(LoadError):
    """Raised when the destination store rejects a statement."""


class WriteError(LoadError):
    """Raised when a record could not be written for a mapping."""
