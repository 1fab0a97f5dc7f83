"""Error Hierarchy — typed, categorized exceptions for all CraftSync failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation and not-found errors are terminal for the call that raised them
    - Persistence and broadcast errors are absorbed at the component boundary
    - to_response() produces the REST envelope rendered by the global handlers
    - Key conflicts are terminal: an encoded key belongs to exactly one pair

Design Decisions:
    - Single hierarchy with CraftSyncError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
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
    PERSISTENCE = "persistence"
    BROADCAST = "broadcast"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    combination_key: str | None = None
    retry_after_ms: int | None = None


class CraftSyncError(Exception):
    """Base exception for all CraftSync errors."""

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
                    "session_id": self.context.session_id,
                    "combination_key": self.context.combination_key,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Caller-visible Errors (400-level) ──────────────────────────

class CombinationValidationError(CraftSyncError):
    """A required combination field is missing or empty."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class CombinationNotFoundError(CraftSyncError):
    """No combination is recorded under the requested key."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.combination_key = key
        super().__init__(
            f"Combination '{key}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.key = key


class CombinationKeyConflictError(CraftSyncError):
    """A different pair already persists under the same encoded key."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.combination_key = key
        super().__init__(
            f"Combination key '{key}' is already used by a different pair",
            "KEY_CONFLICT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.key = key


# ─── Absorbed Errors (logged, never fail the mutating call) ─────

class PersistenceError(CraftSyncError):
    """Durable load/save through the persistence gateway failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Persistence {operation} failed: {message}",
            "PERSISTENCE_ERROR", ErrorCategory.PERSISTENCE,
            ErrorSeverity.WARNING, context, 503,
        )
        self.operation = operation


class BroadcastDeliveryError(CraftSyncError):
    """Delivery to a single subscriber failed."""
    def __init__(self, subscriber_id: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Delivery to subscriber {subscriber_id} failed: {reason}",
            "BROADCAST_DELIVERY_FAILED", ErrorCategory.BROADCAST,
            ErrorSeverity.WARNING, context, 500,
        )
        self.subscriber_id = subscriber_id


class GenerationError(CraftSyncError):
    """Anthropic API call for combination generation failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Generation API error ({api_error_type}): {message}",
            "GENERATION_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type
