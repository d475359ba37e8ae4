"""Template summary of a finalised meeting."""

import math

from notes_worker.schemas.entities import Decision

NAMED_PARTICIPANTS = 3
# Shorter mid-transcript sentences are filler ("Okay", "Sounds good").
MIN_KEY_POINT_LENGTH = 20
SENTENCES_PER_MINUTE = 10


def synthesize_summary(
    sentences: list[str], people: list[str], decisions: list[Decision]
) -> str:
    """Build the meeting summary text.

    Args:
        sentences: Non-empty transcript sentences in document order
        people: Extracted participant names
        decisions: Extracted decisions

    Returns:
        Summary text
    """
    total_sentences = len(sentences)

    participants = f"{len(people)} participants" if people else "multiple participants"
    summary = f"Meeting summary: This meeting involved {participants}"

    if people:
        summary += f" including {', '.join(people[:NAMED_PARTICIPANTS])}"
        if len(people) > NAMED_PARTICIPANTS:
            summary += f" and {len(people) - NAMED_PARTICIPANTS} others"

    summary += ". "

    if decisions:
        verb = "s were" if len(decisions) > 1 else " was"
        summary += f"{len(decisions)} key decision{verb} made during the discussion. "

    if total_sentences > 2:
        key_sentence = sentences[total_sentences // 2].strip()
        if len(key_sentence) > MIN_KEY_POINT_LENGTH:
            summary += f"Key discussion point: {key_sentence}. "

    minutes = math.ceil(total_sentences / SENTENCES_PER_MINUTE)
    summary += (
        "The meeting covered various topics and lasted for approximately "
        f"{minutes} minutes of discussion."
    )
    return summary
