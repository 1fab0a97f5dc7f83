"""Error Handlers — envelope shape for domain, validation, and unexpected errors.

Tests cover:
    - Domain error → its own status and to_response() envelope
    - Validation details name fields without the body/query prefix
    - Unexpected exception → 500 INTERNAL_ERROR without leaking the message
"""

import json

import pytest
from fastapi import Request

from craftsync.api.error_handlers import handle_domain_error, handle_unexpected_error
from craftsync.core.errors import PersistenceError


def _request(path: str = "/api/v1/combinations") -> Request:
    return Request({
        "type": "http", "method": "POST", "path": path,
        "headers": [], "query_string": b"",
    })


@pytest.mark.asyncio
async def test_domain_error_uses_own_status():
    resp = await handle_domain_error(_request(), PersistenceError("disk full", "save"))
    body = json.loads(resp.body)
    assert resp.status_code == 503
    assert body["error"]["code"] == "PERSISTENCE_ERROR"
    assert body["error"]["severity"] == "warning"


@pytest.mark.asyncio
async def test_unexpected_error_hides_details():
    resp = await handle_unexpected_error(_request(), RuntimeError("secret path /etc"))
    body = json.loads(resp.body)
    assert resp.status_code == 500
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert body["error"]["category"] == "internal"
    assert "secret" not in resp.body.decode()


@pytest.mark.asyncio
async def test_validation_details_drop_location_prefix(client):
    resp = await client.post(
        "/api/v1/combinations",
        json={"first": "Fire", "second": "Water", "result": "Steam"},
    )
    error = resp.json()["error"]
    assert resp.status_code == 400
    assert [d["field"] for d in error["details"]] == ["emoji"]
