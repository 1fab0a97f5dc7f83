"""Combination Routes — HTTP contract over the CombinationService.

Tests cover:
    - GET lookup hit/miss (404 envelope), session query parameter
    - POST record: isNew/isFirstDiscovery flags, camelCase sessionId alias
    - POST generate with generation disabled → fallback, nothing recorded
    - Listing, first discoveries, would-be-first
    - DELETE by encoded key and full reset
    - Validation failures → 400 VALIDATION_ERROR envelope
    - Encoded key owned by another pair → 409 KEY_CONFLICT
    - Health checks
"""

import pytest

BASE = "/api/v1/combinations"


async def _post(client, first, second, result, emoji, **extra):
    body = {"first": first, "second": second, "result": result, "emoji": emoji}
    body.update(extra)
    return await client.post(BASE, json=body)


# ==============================================================================
# Lookup / record
# ==============================================================================


@pytest.mark.asyncio
async def test_lookup_miss_returns_404_envelope(client):
    resp = await client.get(f"{BASE}/Fire/Water")
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "RESOURCE_NOT_FOUND"
    assert error["context"]["combination_key"] == "Fire+Water"


@pytest.mark.asyncio
async def test_record_then_lookup_either_order(client):
    resp = await _post(client, "Water", "Fire", "Steam", "💨")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["key"] == "Fire+Water"
    assert body["isNew"] is True
    assert body["isFirstDiscovery"] is True
    assert body["warning"] is None

    lookup = await client.get(f"{BASE}/Fire/Water")
    assert lookup.json()["result"] == "Steam"
    assert lookup.json()["sessionId"] == "default"


@pytest.mark.asyncio
async def test_record_twice_keeps_original(client):
    await _post(client, "Fire", "Water", "Steam", "💨")
    resp = await _post(client, "Fire", "Water", "Vapor", "☁️")
    body = resp.json()
    assert body["isNew"] is False
    assert body["isFirstDiscovery"] is False
    assert body["combination"]["result"] == "Steam"


@pytest.mark.asyncio
async def test_record_accepts_camel_case_session(client):
    resp = await _post(client, "Fire", "Water", "Steam", "💨", sessionId="s1")
    assert resp.json()["key"] == "s1:Fire+Water"

    scoped = await client.get(f"{BASE}/Fire/Water", params={"session_id": "s1"})
    assert scoped.status_code == 200
    unscoped = await client.get(f"{BASE}/Fire/Water")
    assert unscoped.status_code == 404


@pytest.mark.asyncio
async def test_conflicting_encoded_key_returns_409(client):
    await _post(client, "a+b", "c", "X1", "1️⃣")
    resp = await _post(client, "a", "b+c", "X2", "2️⃣")
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "KEY_CONFLICT"
    assert error["context"]["combination_key"] == "a+b+c"
    assert (await client.get(BASE)).json()["count"] == 1


@pytest.mark.parametrize("body", [
    {"first": "Fire", "second": "Water", "result": "Steam"},
    {"first": "", "second": "Water", "result": "Steam", "emoji": "💨"},
    {"first": "Fire", "second": "Water", "result": "", "emoji": "💨"},
])
@pytest.mark.asyncio
async def test_record_validation_error(client, body):
    resp = await client.post(BASE, json=body)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]


@pytest.mark.asyncio
async def test_whitespace_only_field_rejected_by_store(client):
    resp = await _post(client, "Fire", "Water", "   ", "💨")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


# ==============================================================================
# Generate
# ==============================================================================


@pytest.mark.asyncio
async def test_generate_without_generator_returns_fallback(client):
    resp = await client.post(
        f"{BASE}/generate", json={"first": "Fire", "second": "Water"},
    )
    body = resp.json()
    assert body["success"] is False
    assert body["combination"] == {
        "result": "Nothing", "emoji": "❌", "generated": False,
    }
    listing = await client.get(BASE)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_generate_returns_existing(client):
    await _post(client, "Fire", "Water", "Steam", "💨")
    resp = await client.post(
        f"{BASE}/generate", json={"first": "Water", "second": "Fire"},
    )
    body = resp.json()
    assert body["success"] is True
    assert body["existed"] is True
    assert body["combination"]["result"] == "Steam"


# ==============================================================================
# Listing
# ==============================================================================


@pytest.mark.asyncio
async def test_listing_and_first_discoveries(client):
    await _post(client, "X", "Y", "Dragon", "🐉")
    await _post(client, "P", "Q", "dragon", "🐉", session_id="s1")

    everything = (await client.get(BASE)).json()
    assert everything["count"] == 2
    assert set(everything["combinations"]) == {"X+Y", "s1:P+Q"}

    scoped = (await client.get(BASE, params={"session_id": "s1"})).json()
    assert list(scoped["combinations"]) == ["s1:P+Q"]

    firsts = (await client.get(f"{BASE}/first-discoveries")).json()
    assert list(firsts["combinations"]) == ["X+Y"]


@pytest.mark.asyncio
async def test_would_be_first(client):
    await _post(client, "X", "Y", "Dragon", "🐉")
    taken = await client.get(f"{BASE}/would-be-first", params={"result": "DRAGON"})
    assert taken.json() == {"result": "DRAGON", "wouldBeFirstDiscovery": False}
    fresh = await client.get(f"{BASE}/would-be-first", params={"result": "Phoenix"})
    assert fresh.json()["wouldBeFirstDiscovery"] is True


@pytest.mark.asyncio
async def test_would_be_first_requires_result(client):
    resp = await client.get(f"{BASE}/would-be-first")
    assert resp.status_code == 400


# ==============================================================================
# Delete / reset
# ==============================================================================


@pytest.mark.asyncio
async def test_delete_by_encoded_key(client):
    await _post(client, "Fire", "Water", "Steam", "💨", session_id="s1")
    resp = await client.delete(f"{BASE}/s1:Fire+Water")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert (await client.get(BASE)).json()["count"] == 0


@pytest.mark.asyncio
async def test_delete_missing_key_404(client):
    resp = await client.delete(f"{BASE}/Fire+Water")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_reset_removes_everything(client):
    await _post(client, "Fire", "Water", "Steam", "💨")
    await _post(client, "Earth", "Fire", "Lava", "🌋", session_id="s2")
    resp = await client.delete(BASE)
    assert resp.json() == {"success": True, "removed": 2, "warning": None}
    assert (await client.get(BASE)).json()["count"] == 0


# ==============================================================================
# Stats / health
# ==============================================================================


@pytest.mark.asyncio
async def test_stats_endpoint(client):
    await _post(client, "Fire", "Water", "Steam", "💨")
    stats = (await client.get("/api/v1/stats")).json()
    assert stats["totalCombinations"] == 1
    assert stats["firstDiscoveries"] == 1
    assert stats["activeSubscribers"] == 0


@pytest.mark.asyncio
async def test_health_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
