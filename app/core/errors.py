"""Error Hierarchy — typed, categorized exceptions for all Food Share failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Codes are machine-stable: clients branch on `code`, never on `message`
    - Domain errors (400-level) are user-correctable; store errors (500-level) are critical
    - to_response() produces REST envelope; to_ws_event() produces WebSocket envelope

Design Decisions:
    - Single hierarchy with FoodShareError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    listing_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class FoodShareError(Exception):
    """Base exception for all Food Share errors."""

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
                    "listing_id": self.context.listing_id,
                    "user_id": self.context.user_id,
                },
            }
        }

    def to_ws_event(self) -> dict:
        """Convert to WebSocket error event."""
        return {
            "event": "error",
            "data": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(FoodShareError):
    """Required input missing or malformed."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ListingNotFoundError(FoodShareError):
    """Listing id does not exist."""
    def __init__(self, listing_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.listing_id = listing_id
        super().__init__(
            f"Listing '{listing_id}' not found",
            "LISTING_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.listing_id = listing_id


class InvalidTransitionError(FoodShareError):
    """Lifecycle precondition failed (wrong prior status)."""
    def __init__(
        self,
        listing_id: str,
        current: str,
        target: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.listing_id = listing_id
        super().__init__(
            f"Cannot move listing '{listing_id}' from '{current}' to '{target}'",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.current = current
        self.target = target


class ConcurrencyError(FoodShareError):
    """Concurrent modification kept winning after bounded re-reads."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENT_UPDATE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreUnavailableError(FoodShareError):
    """Document store read/write failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
