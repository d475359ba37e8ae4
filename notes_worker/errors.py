"""Errors raised while finalising meeting notes."""


class FinaliseError(Exception):
    """Base class for deterministic finalisation failures.

    These are never retried: running the same job again against the same
    note would fail the same way.
    """


class NotFoundError(FinaliseError):
    """The referenced note does not exist."""

    def __init__(self, note_id: str):
        self.note_id = note_id
        super().__init__(f"Note with id {note_id} not found")


class InvalidStateError(FinaliseError):
    """The note exists but cannot be finalised in its current state."""
