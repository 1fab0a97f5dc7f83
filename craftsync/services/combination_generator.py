"""Combination Generator — invents a result for an unseen pair via the Anthropic API.

Invariants:
    - Never raises: API or parse failures return the fallback candidate
    - Fallback candidate has generated=False and is never recorded by callers
    - Candidate result/emoji are stripped, non-empty strings

Design Decisions:
    - Prompt asks for a bare JSON object; the reply is scanned for the first
      {...} containing "result" so chatty replies still parse
    - Discovery status is NOT decided here: the store computes it at insert
"""

import json
import logging
import re
from dataclasses import dataclass

from craftsync.core.errors import ErrorContext, GenerationError
from craftsync.core.repository_protocols import MessageClient

logger = logging.getLogger(__name__)

FALLBACK_RESULT = "Nothing"
FALLBACK_EMOJI = "❌"

_JSON_OBJECT = re.compile(r"\{[^{}]*\"result\"[^{}]*\}")

SYSTEM_PROMPT = (
    "You are the combination engine for an Infinite Craft style game. "
    "When given two items, combine them like Infinite Craft: funny, creative, "
    "or unexpected, but with an internal logic (metaphorical, cultural, "
    "scientific, or linguistic). Return ONLY valid JSON in this exact format: "
    '{"result": "Item Name", "emoji": "🎯"}'
)

_EXAMPLES = (
    'Fire + Water → {"result": "Steam", "emoji": "💨"}\n'
    'Earth + Water → {"result": "Plant", "emoji": "🌱"}'
)


@dataclass(frozen=True)
class GeneratedCombination:
    result: str
    emoji: str
    generated: bool


FALLBACK = GeneratedCombination(FALLBACK_RESULT, FALLBACK_EMOJI, False)


def build_prompt(first: str, second: str) -> str:
    return f'Examples:\n{_EXAMPLES}\n\nCombine "{first}" + "{second}":'


def parse_candidate(text: str) -> GeneratedCombination | None:
    """Extract {"result", "emoji"} from a model reply. Pure."""
    match = _JSON_OBJECT.search(text)
    raw = match.group(0) if match else text.strip()
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    result = parsed.get("result")
    emoji = parsed.get("emoji")
    if not isinstance(result, str) or not isinstance(emoji, str):
        return None
    result, emoji = result.strip(), emoji.strip()
    if not result or not emoji:
        return None
    return GeneratedCombination(result, emoji, True)


def _reply_text(response) -> str:
    return "".join(
        getattr(block, "text", "") for block in getattr(response, "content", [])
    )


class CombinationGenerator:
    """Asks the model for a candidate result; degrades to FALLBACK."""

    def __init__(
        self, client: MessageClient, model: str, max_tokens: int = 100,
    ):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def generate(
        self, first: str, second: str, session_id: str | None = None,
    ) -> GeneratedCombination:
        logger.info(
            "Generating combination for %s + %s", first, second,
            extra={"session_id": session_id},
        )
        try:
            response = await self._client.create_message(
                model=self._model,
                max_tokens=self._max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": build_prompt(first, second)},
                ],
                context=ErrorContext(session_id=session_id),
            )
        except GenerationError as e:
            logger.warning(
                f"Generation failed, using fallback: {e.message}",
                extra={"error_code": e.code, "session_id": session_id},
            )
            return FALLBACK

        text = _reply_text(response)
        candidate = parse_candidate(text)
        if candidate is None:
            logger.warning("Unparseable generation reply: %r", text[:200])
            return FALLBACK
        return candidate
