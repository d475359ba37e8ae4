"""Note records and the inputs accepted by the note store."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from notes_worker.schemas.entities import ExtractedEntities

NoteSource = Literal["manual", "meeting", "import"]


class Note(BaseModel):
    """A persisted note: manual text, an imported document, or a meeting."""

    id: str
    workspace_id: str
    title: str
    source: NoteSource
    content_md: str | None = None
    transcript_text: str | None = None
    summary_text: str | None = None
    entities: dict[str, Any] | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class CreateNoteInput(BaseModel):
    """Fields accepted when creating a note."""

    workspace_id: UUID
    title: str
    source: NoteSource
    content_md: str | None = None
    transcript_text: str | None = None
    created_by: UUID


class UpdateNoteInput(BaseModel):
    """Partial note update. Only fields explicitly provided are written."""

    id: UUID
    title: str | None = None
    content_md: str | None = None
    transcript_text: str | None = None
    summary_text: str | None = None
    entities: dict[str, Any] | None = None


class GetNotesQuery(BaseModel):
    """Filter for listing the notes of a workspace."""

    workspace_id: UUID
    source: NoteSource | None = None
    limit: PositiveInt | None = None


class FinaliseMeetingInput(BaseModel):
    """Request to finalise a meeting note."""

    note_id: UUID


class FinaliseJob(FinaliseMeetingInput):
    """A finalise request queued for the worker, with its retry bookkeeping."""

    model_config = ConfigDict(populate_by_name=True)

    note_id: UUID = Field(alias="noteId")
    attempt: PositiveInt = 1
    retry_after: float = Field(default=0, alias="retryAfter", allow_inf_nan=False)


class NotePatch(BaseModel):
    """Fields written back to a note once it has been finalised."""

    summary_text: str
    entities: ExtractedEntities
    updated_at: datetime
