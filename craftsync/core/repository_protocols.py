"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Gateway methods are async because implementations do IO; the store
      orchestrates those calls around its pure logic
"""

from typing import Protocol

from craftsync.core.errors import ErrorContext
from craftsync.core.store_events import StoreEvent


class CombinationRepository(Protocol):
    """Persistence gateway — durable load/save of the full store snapshot."""
    async def load(self) -> dict[str, dict]: ...
    async def save(self, snapshot: dict[str, dict]) -> None: ...


class Subscriber(Protocol):
    """Capability handle held by the change broadcaster."""
    subscriber_id: str

    def send(self, event: StoreEvent) -> None: ...
    def close(self) -> None: ...


class MessageClient(Protocol):
    """Structural contract for the Anthropic client used by the generator."""
    async def create_message(
        self, *, model: str, max_tokens: int, system: str, messages: list,
        context: ErrorContext | None = None,
    ): ...
