"""Error Hierarchy — typed, categorized exceptions for every cache operation failure.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - LoadFailure leaves the published snapshot untouched
    - ParseFailureError / CorruptEntryError are scoped to one identifier in one reload
    - Absence is never an error inside the store: lookups return None

Design Decisions:
    - Single TzCacheError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Kinds as subclasses, not a status flag: callers tell transient load issues
      from data corruption with isinstance
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATA_SOURCE = "data_source"
    DATABASE = "database"
    CORRUPT_DATA = "corrupt_data"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tzid: str | None = None
    generation: int | None = None
    debug_info: dict[str, Any] | None = None


class TzCacheError(Exception):
    """Base exception: a cache operation failure."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "tzid": self.context.tzid,
                    "generation": self.context.generation,
                },
            }
        }


# ─── Load Errors (source unavailable) ───────────────────────────

class LoadFailure(TzCacheError):
    """The loader could not supply data; the prior snapshot stays active."""
    def __init__(
        self, message: str, source: str = "loader",
        context: ErrorContext | None = None,
        code: str = "LOAD_FAILURE",
        category: ErrorCategory = ErrorCategory.DATA_SOURCE,
    ):
        super().__init__(
            f"Timezone data load from {source} failed: {message}",
            code, category, ErrorSeverity.CRITICAL, context, 503,
        )
        self.source = source


class DatabaseError(LoadFailure):
    """Database operation failed while reading or replacing definitions."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"{operation}: {message}", "database", context,
            code="DATABASE_ERROR", category=ErrorCategory.DATABASE,
        )
        self.operation = operation


class StoreStoppedError(LoadFailure):
    """Reload requested after stop()."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "store has been stopped", "store", context,
            code="STORE_STOPPED", category=ErrorCategory.INTERNAL,
        )


# ─── Data Errors (one identifier) ───────────────────────────────

class ParseFailureError(TzCacheError):
    """Definition text could not be parsed."""
    def __init__(self, tzid: str | None, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.tzid = tzid
        super().__init__(
            f"Unparseable definition for '{tzid}': {message}",
            "PARSE_FAILURE", ErrorCategory.CORRUPT_DATA,
            ErrorSeverity.ERROR, ctx, 422,
        )
        self.tzid = tzid


class CorruptEntryError(ParseFailureError):
    """Parsed definition lacks the expected VTIMEZONE component."""
    def __init__(self, tzid: str | None, message: str, context: ErrorContext | None = None):
        super().__init__(tzid, message, context)
        self.code = "CORRUPT_ENTRY"
        self.message = f"Incorrectly stored timezone '{tzid}': {message}"
        self.args = (self.message,)


# ─── Request Errors (400-level) ─────────────────────────────────

class InvalidRequestError(TzCacheError):
    """A query parameter is malformed, missing or repeated."""
    def __init__(
        self, parameter: str, message: str, code: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code or f"INVALID_{parameter.upper()}",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, context, 400,
        )
        self.parameter = parameter


class InvalidTimestampError(InvalidRequestError):
    """A timestamp parameter is not a recognizable UTC date-time."""
    def __init__(self, value: str, field: str = "changedsince", context: ErrorContext | None = None):
        super().__init__(
            field, f"The '{field}' value '{value}' is not a valid UTC date-time",
            context=context,
        )
        self.field = field
        self.value = value


class ResourceNotFoundError(TzCacheError):
    """Requested identifier is not known to the server."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
        code: str = "RESOURCE_NOT_FOUND",
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class UnknownTimezoneError(ResourceNotFoundError):
    """tzid is neither a canonical identifier nor an alias."""
    def __init__(self, tzid: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.tzid = tzid
        super().__init__("Timezone", tzid, ctx, code="MISSING_TZID")
        self.tzid = tzid
