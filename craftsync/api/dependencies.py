"""API Dependencies — resolves lifespan-built singletons for route handlers.

Invariants:
    - The CombinationService lives on app.state, built once by the lifespan hook
    - Routes never construct stores or broadcasters themselves

Design Decisions:
    - Depends() indirection: tests swap the service via dependency_overrides
"""

from fastapi import Request

from craftsync.services.combination_service import CombinationService


def get_combination_service(request: Request) -> CombinationService:
    service = getattr(request.app.state, "combination_service", None)
    if service is None:
        raise RuntimeError("Combination service not initialized")
    return service
