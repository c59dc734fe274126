"""Domain exceptions for the ltnso record layer.

Defines the error kinds services report. Validation, store and relationship
failures are carried inside ServiceResult.error rather than raised to the
caller; cache failures are absorbed by the cache layer and only recorded.
"""

from typing import Any


class LtnsoException(Exception):
    """Base exception for all ltnso errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, table, key).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation (message, code, details)."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationException(LtnsoException):
    """Raised when input validation fails (missing field, bad format or range)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize with message, optional field name and offending value.

        Args:
            message: Description of the validation failure.
            field: Optional field that failed validation.
            value: Optional value that was rejected.
        """
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field
        self.value = value


class DbException(LtnsoException):
    """Backing store read or write failed."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        table: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, "DB_ERROR", details)
        self.operation = operation
        self.table = table
        self.__cause__ = cause


class CacheException(LtnsoException):
    """Cache operation failed. Never surfaced to callers; kept as last error."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if key:
            details["key"] = key
        super().__init__(message, "CACHE_ERROR", details)
        self.operation = operation
        self.key = key


class RelationshipException(LtnsoException):
    """Junction table operation failed."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        error_code: str = "RELATIONSHIP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = {"table": table} if table else {}
        merged.update(details or {})
        super().__init__(message, error_code, merged)
        self.table = table


class RelationshipAlreadyExistsException(RelationshipException):
    """The (source, target) pair already exists in the junction table."""

    def __init__(self, table: str, source_id: Any, target_id: Any) -> None:
        super().__init__(
            f"Relationship already exists in {table}",
            table=table,
            error_code="RELATIONSHIP_ALREADY_EXISTS",
            details={"source_id": str(source_id), "target_id": str(target_id)},
        )
        self.source_id = source_id
        self.target_id = target_id
