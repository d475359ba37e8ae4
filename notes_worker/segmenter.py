"""Sentence and word segmentation for meeting transcripts."""

import re
from typing import NamedTuple

# A run of terminators counts as one boundary ("Wait?!" splits once).
SENTENCE_BOUNDARY = re.compile(r"[.!?]+")


class SegmentedText(NamedTuple):
    """Transcript split into trimmed sentences and lower-cased words."""

    sentences: list[str]
    words: list[str]


def split_sentences(text: str) -> list[str]:
    """Split text on sentence terminators, dropping blank pieces.

    Args:
        text: Raw transcript text

    Returns:
        Trimmed, non-empty sentences in document order
    """
    return [piece.strip() for piece in SENTENCE_BOUNDARY.split(text) if piece.strip()]


def split_words(text: str) -> list[str]:
    """Lower-case text and split it on runs of whitespace."""
    return text.lower().split()


def segment(text: str) -> SegmentedText:
    """Segment a transcript into sentences and words.

    Args:
        text: Raw transcript text

    Returns:
        SegmentedText with sentences and words
    """
    return SegmentedText(sentences=split_sentences(text), words=split_words(text))
