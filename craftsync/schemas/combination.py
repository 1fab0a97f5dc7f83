"""Combination Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - CombinationCreate requires first, second, result, emoji (non-empty)
    - session_id accepted as session_id or sessionId; blank means default session
    - Item names are passed through unstripped: the key codec never trims

Design Decisions:
    - AliasChoices for session_id: older clients post camelCase sessionId
    - Responses are plain dicts built from CombinationRecord.to_dict(): one wire shape
"""

from pydantic import AliasChoices, BaseModel, Field


class CombinationCreate(BaseModel):
    """Manual combination entry."""
    first: str = Field(min_length=1, max_length=200)
    second: str = Field(min_length=1, max_length=200)
    result: str = Field(min_length=1, max_length=200)
    emoji: str = Field(min_length=1, max_length=32)
    session_id: str | None = Field(
        None, max_length=200,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


class CombinationGenerate(BaseModel):
    """Request to resolve (and, if unseen, invent) a pair's result."""
    first: str = Field(min_length=1, max_length=200)
    second: str = Field(min_length=1, max_length=200)
    session_id: str | None = Field(
        None, max_length=200,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )
