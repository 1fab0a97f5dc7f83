"""Combinations — lookup, record, generate, list, and delete recorded pairs.

Invariants:
    - Every handler delegates to CombinationService (no store access here)
    - Misses raise CombinationNotFoundError → 404 envelope via global handler
    - Persistence trouble never fails a write: it comes back in "warning"

Design Decisions:
    - Fixed-segment routes (first-discoveries, would-be-first) declared before
      the two-segment lookup route for readability
    - DELETE key uses a path converter: encoded keys may contain "/"
"""

import logging

from fastapi import APIRouter, Depends, Query

from craftsync.api.dependencies import get_combination_service
from craftsync.schemas.combination import CombinationCreate, CombinationGenerate
from craftsync.services.combination_service import CombinationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/combinations", tags=["combinations"])


def _listing(items) -> dict:
    return {
        "combinations": {key: record.to_dict() for key, record in items},
        "count": len(items),
    }


@router.get("")
async def list_combinations(
    session_id: str | None = Query(None),
    service: CombinationService = Depends(get_combination_service),
):
    """Every recorded combination, optionally for one session."""
    return _listing(service.list_all(session_id))


@router.get("/first-discoveries")
async def list_first_discoveries(
    session_id: str | None = Query(None),
    service: CombinationService = Depends(get_combination_service),
):
    return _listing(service.list_first_discoveries(session_id))


@router.get("/would-be-first")
async def would_be_first(
    result: str = Query(min_length=1),
    session_id: str | None = Query(None),
    service: CombinationService = Depends(get_combination_service),
):
    return {
        "result": result,
        "wouldBeFirstDiscovery": service.would_be_first_discovery(
            result, session_id,
        ),
    }


@router.get("/{first}/{second}")
async def get_combination(
    first: str,
    second: str,
    session_id: str | None = Query(None),
    service: CombinationService = Depends(get_combination_service),
):
    record = service.lookup(first, second, session_id)
    return record.to_dict()


@router.post("")
async def add_combination(
    body: CombinationCreate,
    service: CombinationService = Depends(get_combination_service),
):
    added = await service.record(
        body.first, body.second, body.result, body.emoji, body.session_id,
    )
    return {
        "success": True,
        "key": added.key,
        "combination": added.record.to_dict(),
        "isNew": added.is_new,
        "isFirstDiscovery": added.is_first_discovery,
        "warning": added.warning,
    }


@router.post("/generate")
async def generate_combination(
    body: CombinationGenerate,
    service: CombinationService = Depends(get_combination_service),
):
    """Return the known result for a pair, inventing one if unseen."""
    outcome = await service.generate(body.first, body.second, body.session_id)
    return {
        "success": outcome.record is not None,
        "key": outcome.key,
        "combination": (
            outcome.record.to_dict() if outcome.record is not None
            else {
                "result": outcome.candidate.result,
                "emoji": outcome.candidate.emoji,
                "generated": outcome.candidate.generated,
            }
        ),
        "existed": outcome.existed,
        "isFirstDiscovery": outcome.is_first_discovery,
        "warning": outcome.warning,
    }


@router.delete("/{key:path}")
async def delete_combination(
    key: str,
    service: CombinationService = Depends(get_combination_service),
):
    outcome = await service.remove(key)
    return {
        "success": True,
        "message": "Combination deleted",
        "warning": outcome.warning,
    }


@router.delete("")
async def reset_combinations(
    service: CombinationService = Depends(get_combination_service),
):
    """Remove every combination in every session."""
    removed, warning = await service.reset()
    return {"success": True, "removed": removed, "warning": warning}
