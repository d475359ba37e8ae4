"""Meeting finalisation: derive a summary and entities from a transcript."""

import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

from notes_worker.errors import InvalidStateError, NotFoundError
from notes_worker.extractors import (
    extract_dates,
    extract_decisions,
    extract_people,
    extract_risks,
)
from notes_worker.schemas.entities import ExtractedEntities, FinaliseResult
from notes_worker.schemas.note import Note, NotePatch
from notes_worker.segmenter import segment
from notes_worker.summary import synthesize_summary

logger = logging.getLogger(__name__)


class NoteStore(Protocol):
    """Persistence operations the finaliser relies on."""

    async def fetch(self, note_id: str) -> Note | None:
        ...

    async def update(self, note_id: str, patch: NotePatch) -> Note | None:
        ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def process_transcript(transcript: str) -> FinaliseResult:
    """Run segmentation, extraction and summary synthesis over a transcript.

    Pure function: the same transcript always yields an identical result.

    Args:
        transcript: Raw transcript text

    Returns:
        FinaliseResult with summary text and extracted entities
    """
    segmented = segment(transcript)
    sentences = segmented.sentences

    people = extract_people(transcript)
    decisions = extract_decisions(transcript, sentences)
    risks = extract_risks(transcript, sentences)
    dates = extract_dates(transcript, sentences)

    logger.debug(
        f"Extracted {len(people)} people, {len(decisions)} decisions, "
        f"{len(risks)} risks, {len(dates)} dates from {len(sentences)} sentences"
    )

    return FinaliseResult(
        summary_text=synthesize_summary(sentences, people, decisions),
        entities=ExtractedEntities(
            decisions=decisions, risks=risks, people=people, dates=dates
        ),
    )


def validate_finalisable(note: Note) -> str:
    """Check that a note can be finalised.

    Args:
        note: Note to check

    Returns:
        The note's transcript text

    Raises:
        InvalidStateError: The note is not a meeting or has no transcript
    """
    if note.source != "meeting":
        raise InvalidStateError("Note must be from a meeting source to finalise")
    if note.transcript_text is None or not note.transcript_text.strip():
        raise InvalidStateError("Note must have transcript text to finalise")
    return note.transcript_text


class MeetingFinaliser:
    """Finalises meeting notes against a NoteStore.

    Holds no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(self, store: NoteStore, clock: Callable[[], datetime] = utcnow):
        self._store = store
        self._clock = clock

    async def finalise(self, note_id: str) -> FinaliseResult:
        """Summarise a meeting note's transcript and persist the result.

        Args:
            note_id: Note identifier

        Returns:
            FinaliseResult written to the note

        Raises:
            NotFoundError: No note exists for ``note_id``
            InvalidStateError: The note is not a meeting or has no transcript
        """
        try:
            note = await self._store.fetch(note_id)
            if note is None:
                raise NotFoundError(note_id)

            transcript = validate_finalisable(note)
            result = process_transcript(transcript)

            patch = NotePatch(
                summary_text=result.summary_text,
                entities=result.entities,
                updated_at=self._clock(),
            )
            if await self._store.update(note_id, patch) is None:
                raise NotFoundError(note_id)

        except Exception as e:
            logger.error(f"Meeting finalisation failed for note {note_id}: {e}")
            raise

        logger.info(
            f"Finalised note {note_id}: {len(result.entities.decisions)} decisions, "
            f"{len(result.entities.risks)} risks"
        )
        return result
