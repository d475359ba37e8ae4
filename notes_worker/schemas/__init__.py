"""Pydantic models for notes and extracted meeting entities."""

from notes_worker.schemas.entities import (
    DateMention,
    Decision,
    ExtractedEntities,
    FinaliseResult,
    Risk,
)
from notes_worker.schemas.note import (
    CreateNoteInput,
    FinaliseJob,
    FinaliseMeetingInput,
    GetNotesQuery,
    Note,
    NotePatch,
    NoteSource,
    UpdateNoteInput,
)

__all__ = [
    "CreateNoteInput",
    "DateMention",
    "Decision",
    "ExtractedEntities",
    "FinaliseJob",
    "FinaliseMeetingInput",
    "FinaliseResult",
    "GetNotesQuery",
    "Note",
    "NotePatch",
    "NoteSource",
    "Risk",
    "UpdateNoteInput",
]
