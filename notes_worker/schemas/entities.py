"""Structured entities extracted from a meeting transcript."""
from typing import Literal

from pydantic import BaseModel, Field

MAX_PEOPLE = 10
MAX_DECISIONS = 5
MAX_RISKS = 5
MAX_DATES = 5

Severity = Literal["low", "medium", "high"]


class Decision(BaseModel):
    """A decision sentence and the keyword that flagged it."""
    decision: str
    context: str  # matched keyword, e.g. "decided"


class Risk(BaseModel):
    """A sentence raising a risk, with a coarse severity."""
    risk: str
    severity: Severity


class DateMention(BaseModel):
    """A date literal and the sentence it appeared in."""
    date: str
    context: str


class ExtractedEntities(BaseModel):
    """Entities stored on a finalised note.

    Field order is the canonical shape of the persisted ``entities`` payload.
    """
    decisions: list[Decision] = Field(default_factory=list, max_length=MAX_DECISIONS)
    risks: list[Risk] = Field(default_factory=list, max_length=MAX_RISKS)
    people: list[str] = Field(default_factory=list, max_length=MAX_PEOPLE)
    dates: list[DateMention] = Field(default_factory=list, max_length=MAX_DATES)


class FinaliseResult(BaseModel):
    """Outcome of finalising a meeting note."""
    summary_text: str
    entities: ExtractedEntities
