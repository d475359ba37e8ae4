"""Keyword and pattern based entity extraction from meeting transcripts.

Each extractor is a pure function of the transcript text. Keyword lists are
checked in order and the first hit wins for a sentence; every result list is
capped so the work stays bounded by sentences x keywords.
"""

import logging
import re

from notes_worker.schemas.entities import (
    MAX_DATES,
    MAX_DECISIONS,
    MAX_PEOPLE,
    MAX_RISKS,
    DateMention,
    Decision,
    Risk,
    Severity,
)
from notes_worker.segmenter import split_sentences

logger = logging.getLogger(__name__)

# ASCII word boundaries and digits; \s matches any Unicode whitespace.
WORD_START = r"(?<![A-Za-z0-9_])"
WORD_END = r"(?![A-Za-z0-9_])"

# Runs of capitalised words ("John Smith") are a single candidate name.
NAME_PATTERN = re.compile(rf"{WORD_START}[A-Z][a-z]+(?:\s[A-Z][a-z]+)*{WORD_END}")
CAPITALISED_WORD = re.compile(r"[A-Z][a-z]+")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
NAME_DENYLIST = frozenset(("The", "This", "That", *WEEKDAYS, *MONTHS))

DECISION_KEYWORDS = (
    "decided",
    "agreed",
    "resolved",
    "concluded",
    "determined",
    "will do",
    "action item",
)

RISK_KEYWORDS = ("risk", "concern", "issue", "problem", "challenge", "blocker", "obstacle")
HIGH_SEVERITY_MARKERS = ("critical", "urgent")
LOW_SEVERITY_MARKERS = ("minor", "small")

DATE_PATTERNS = (
    re.compile(rf"{WORD_START}[0-9]{{1,2}}/[0-9]{{1,2}}/[0-9]{{4}}{WORD_END}"),  # MM/DD/YYYY
    re.compile(rf"{WORD_START}[0-9]{{1,2}}-[0-9]{{1,2}}-[0-9]{{4}}{WORD_END}"),  # MM-DD-YYYY
    re.compile(
        rf"{WORD_START}(?:{'|'.join(MONTHS)})\s+[0-9]{{1,2}},?\s+[0-9]{{4}}{WORD_END}"
    ),
    re.compile(
        rf"{WORD_START}(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
        rf"\s+[0-9]{{1,2}},?\s+[0-9]{{4}}{WORD_END}"
    ),
)


def extract_people(text: str) -> list[str]:
    """Extract candidate participant names.

    Runs of capitalised words are candidates. Weekday, month and
    "The"/"This"/"That" words never count as names.

    Args:
        text: Raw transcript text

    Returns:
        Distinct names in order of first appearance, at most MAX_PEOPLE
    """
    people: list[str] = []
    for match in NAME_PATTERN.finditer(text):
        for name in _split_on_denylist(text, match):
            if name in people:
                continue
            people.append(name)
            if len(people) == MAX_PEOPLE:
                return people
    return people


def _split_on_denylist(text: str, match: re.Match) -> list[str]:
    """Break a run of capitalised words at denylisted words.

    "Monday John Smith" yields "John Smith"; "The Committee" yields
    "Committee". Kept words keep their original separators.
    """
    names = []
    start = end = None
    for word in CAPITALISED_WORD.finditer(text, match.start(), match.end()):
        if word.group() in NAME_DENYLIST:
            if start is not None:
                names.append(text[start:end])
            start = None
            continue
        if start is None:
            start = word.start()
        end = word.end()
    if start is not None:
        names.append(text[start:end])
    return names


def _first_keyword(sentence: str, keywords: tuple[str, ...]) -> str | None:
    lowered = sentence.lower()
    for keyword in keywords:
        if keyword in lowered:
            return keyword
    return None


def extract_decisions(text: str, sentences: list[str] | None = None) -> list[Decision]:
    """Extract sentences that record a decision.

    Args:
        text: Raw transcript text
        sentences: Pre-split sentences of ``text``, to skip re-splitting

    Returns:
        Up to MAX_DECISIONS decisions in document order
    """
    if sentences is None:
        sentences = split_sentences(text)

    decisions: list[Decision] = []
    for sentence in sentences:
        keyword = _first_keyword(sentence, DECISION_KEYWORDS)
        if keyword is None:
            continue
        decisions.append(Decision(decision=sentence.strip(), context=keyword))
        if len(decisions) == MAX_DECISIONS:
            break
    return decisions


def classify_severity(sentence: str) -> Severity:
    """Grade a risk sentence by its wording."""
    lowered = sentence.lower()
    if any(marker in lowered for marker in HIGH_SEVERITY_MARKERS):
        return "high"
    if any(marker in lowered for marker in LOW_SEVERITY_MARKERS):
        return "low"
    return "medium"


def extract_risks(text: str, sentences: list[str] | None = None) -> list[Risk]:
    """Extract sentences that raise a risk, concern or blocker.

    Args:
        text: Raw transcript text
        sentences: Pre-split sentences of ``text``, to skip re-splitting

    Returns:
        Up to MAX_RISKS risks in document order
    """
    if sentences is None:
        sentences = split_sentences(text)

    risks: list[Risk] = []
    for sentence in sentences:
        if _first_keyword(sentence, RISK_KEYWORDS) is None:
            continue
        risks.append(Risk(risk=sentence.strip(), severity=classify_severity(sentence)))
        if len(risks) == MAX_RISKS:
            break
    return risks


def extract_dates(text: str, sentences: list[str] | None = None) -> list[DateMention]:
    """Extract explicit calendar dates.

    Every pattern is applied to every sentence, so a date matching two
    patterns (e.g. "May 5, 2024") is reported once per pattern.

    Args:
        text: Raw transcript text
        sentences: Pre-split sentences of ``text``, to skip re-splitting

    Returns:
        Up to MAX_DATES dates, by sentence then by pattern order
    """
    if sentences is None:
        sentences = split_sentences(text)

    dates: list[DateMention] = []
    for sentence in sentences:
        context = sentence.strip()
        for pattern in DATE_PATTERNS:
            for found in pattern.findall(sentence):
                dates.append(DateMention(date=found, context=context))
                if len(dates) == MAX_DATES:
                    return dates
    return dates
