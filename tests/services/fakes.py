"""Test Doubles — in-memory gateway, subscribers, and Anthropic client.

Invariants:
    - InMemoryCombinationRepository records every saved snapshot in order
    - FailingCombinationRepository raises PersistenceError on save (load optional)
    - BrokenCombinationRepository raises an arbitrary exception on load
    - RecordingSubscriber keeps every event; ExplodingSubscriber always fails
    - FakeMessageClient replays configured replies or raises configured errors

Design Decisions:
    - Flat fake classes (no inheritance): simple, explicit, easy to debug
    - Anthropic replies mimic SDK objects: .content[*].text and .usage
"""

import asyncio
import copy
import uuid

from craftsync.core.errors import BroadcastDeliveryError, PersistenceError


# -- Persistence gateways ------------------------------------------------------


class InMemoryCombinationRepository:
    """Gateway that keeps snapshots in a list."""

    def __init__(self, initial: dict | None = None):
        self.stored: dict = copy.deepcopy(initial or {})
        self.saves: list[dict] = []

    async def load(self) -> dict:
        return copy.deepcopy(self.stored)

    async def save(self, snapshot: dict) -> None:
        self.stored = copy.deepcopy(snapshot)
        self.saves.append(copy.deepcopy(snapshot))


class FailingCombinationRepository:
    """Gateway whose save always fails."""

    def __init__(self, fail_load: bool = False):
        self.fail_load = fail_load
        self.save_attempts = 0

    async def load(self) -> dict:
        if self.fail_load:
            raise PersistenceError("disk unavailable", "load")
        return {}

    async def save(self, snapshot: dict) -> None:
        self.save_attempts += 1
        raise PersistenceError("disk full", "save")


class BrokenCombinationRepository:
    """Gateway whose load raises something other than PersistenceError."""

    def __init__(self, error: Exception | None = None):
        self.error = error or RuntimeError("driver exploded")

    async def load(self) -> dict:
        raise self.error

    async def save(self, snapshot: dict) -> None:
        return None


class HangingCombinationRepository:
    """Gateway whose save never completes (until cancelled)."""

    async def load(self) -> dict:
        return {}

    async def save(self, snapshot: dict) -> None:
        await asyncio.Event().wait()


class YieldingCombinationRepository(InMemoryCombinationRepository):
    """Gateway that suspends on save so concurrent callers interleave."""

    async def save(self, snapshot: dict) -> None:
        await asyncio.sleep(0)
        await super().save(snapshot)


# -- Subscribers ---------------------------------------------------------------


class RecordingSubscriber:
    """Keeps every delivered event."""

    def __init__(self):
        self.subscriber_id = f"rec-{uuid.uuid4().hex[:8]}"
        self.events = []
        self.closed = False

    def send(self, event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    @property
    def types(self) -> list[str]:
        return [e.type.value for e in self.events]


class ExplodingSubscriber(RecordingSubscriber):
    """Fails every delivery after the first `healthy_sends`."""

    def __init__(self, healthy_sends: int = 1):
        super().__init__()
        self.healthy_sends = healthy_sends

    def send(self, event) -> None:
        if len(self.events) >= self.healthy_sends:
            raise BroadcastDeliveryError(self.subscriber_id, "socket closed")
        super().send(event)


# -- Anthropic -----------------------------------------------------------------


class _TextBlock:
    def __init__(self, text: str):
        self.type = "text"
        self.text = text


class _Usage:
    def __init__(self, input_tokens: int = 40, output_tokens: int = 12):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class FakeReply:
    def __init__(self, text: str):
        self.content = [_TextBlock(text)]
        self.usage = _Usage()


class FakeMessageClient:
    """Replays replies (str → FakeReply, Exception → raised) in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def create_message(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return FakeReply(reply)
