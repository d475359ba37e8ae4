"""Tests for transcript segmentation."""
from notes_worker.segmenter import segment, split_sentences, split_words


def test_split_sentences_trims_and_drops_blanks():
    """Test sentence splitting on terminators."""
    text = "  Hello there.  How are you?   Fine!  "
    assert split_sentences(text) == ["Hello there", "How are you", "Fine"]


def test_split_sentences_collapses_terminator_runs():
    """Test that runs of terminators count as one boundary."""
    assert split_sentences("Wait?! Really... yes") == ["Wait", "Really", "yes"]


def test_split_sentences_only_punctuation():
    """Test text without any sentence content."""
    assert split_sentences("...!?") == []
    assert split_sentences("   ") == []


def test_split_words_lowercases():
    """Test word splitting on whitespace runs."""
    assert split_words("  Hello   World\nAgain ") == ["hello", "world", "again"]


def test_segment():
    """Test combined segmentation."""
    result = segment("John: Good morning. Sarah: Hi")

    assert result.sentences == ["John: Good morning", "Sarah: Hi"]
    assert result.words == ["john:", "good", "morning.", "sarah:", "hi"]


def test_segment_is_deterministic():
    """Test that segmentation is a pure function."""
    text = "One. Two! Three?"
    assert segment(text) == segment(text)
