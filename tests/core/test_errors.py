"""Error Hierarchy — envelopes, codes, and severities.

Tests cover:
    - Validation / not-found are 400 / 404 errors with stable codes
    - Persistence and broadcast failures are WARNING (recoverable)
    - to_response envelope shape
    - Key conflicts are 409 errors carrying the contested key
"""

from craftsync.core.errors import (
    BroadcastDeliveryError,
    CombinationKeyConflictError,
    CombinationNotFoundError,
    CombinationValidationError,
    CraftSyncError,
    ErrorContext,
    ErrorSeverity,
    GenerationError,
    PersistenceError,
)


def test_validation_error_is_400_with_field():
    err = CombinationValidationError("Missing required field: emoji", "emoji")
    assert err.http_status == 400
    assert err.code == "VALIDATION_ERROR"
    assert err.field == "emoji"
    assert isinstance(err, CraftSyncError)


def test_not_found_carries_key_in_context():
    err = CombinationNotFoundError("Fire+Water")
    assert err.http_status == 404
    assert err.context.combination_key == "Fire+Water"
    assert "Fire+Water" in err.message


def test_persistence_error_is_warning():
    err = PersistenceError("disk full", "save")
    assert err.severity == ErrorSeverity.WARNING
    assert err.message == "Persistence save failed: disk full"


def test_broadcast_delivery_error_names_subscriber():
    err = BroadcastDeliveryError("sub-1", "queue full")
    assert err.subscriber_id == "sub-1"
    assert err.severity == ErrorSeverity.WARNING


def test_generation_error_keeps_retry_after():
    err = GenerationError("slow down", "rate_limit", retry_after_ms=2000)
    assert err.context.retry_after_ms == 2000
    assert err.severity == ErrorSeverity.CRITICAL
    assert err.to_response()["error"]["context"]["retry_after_ms"] == 2000


def test_to_response_envelope():
    ctx = ErrorContext(session_id="s1")
    body = CombinationValidationError("bad", "first", ctx).to_response()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["category"] == "validation"
    assert body["error"]["context"]["session_id"] == "s1"
    assert "timestamp" in body["error"]


def test_key_conflict_is_409_with_key():
    err = CombinationKeyConflictError("a+b+c", ErrorContext(session_id="s1"))
    body = err.to_response()["error"]
    assert err.http_status == 409
    assert body["code"] == "KEY_CONFLICT"
    assert body["context"] == {
        "session_id": "s1", "combination_key": "a+b+c", "retry_after_ms": None,
    }
