"""
Test cases for article text cleaning.
"""

from newsscope.scraper.cleaner import (
    TextCleaner,
    clean_article_text,
    collapse_whitespace,
    split_sentences,
    strip_non_printable,
    unescape_unicode,
)


def test_drops_last_two_sentences():
    """Five sentences keep the first three."""
    text = "One is here. Two is here! Three is here? Four is here. Five is here."
    assert clean_article_text(text) == "One is here. Two is here! Three is here?"


def test_short_text_kept_whole():
    """Two sentences or fewer are left untouched."""
    assert clean_article_text("First sentence. Second sentence.") == "First sentence. Second sentence."
    assert clean_article_text("Only one") == "Only one"


def test_three_sentences_keep_one():
    assert clean_article_text("A b. C d. E f.") == "A b."


def test_empty_text():
    assert clean_article_text("") == ""


def test_newlines_and_whitespace_collapsed():
    """Paragraph breaks become single spaces."""
    text = "First  paragraph.\nSecond\tparagraph."
    assert clean_article_text(text) == "First paragraph. Second paragraph."


def test_cleanup_is_idempotent():
    """Cleaned text passes through the cleanup steps unchanged."""
    raw = "Caf\\u00e9 opens.\n\tNew  menu\x07 today!  Prices rise? Staff hired. Read more. Subscribe now."
    cleaned = clean_article_text(raw)
    assert cleaned == "Café opens. New menu today! Prices rise? Staff hired."
    assert collapse_whitespace(strip_non_printable(cleaned)) == cleaned
    assert clean_article_text(cleaned, trailing_sentences=0) == cleaned


def test_non_printable_removed():
    assert strip_non_printable("abc\x00\x07def") == "abcdef"
    assert collapse_whitespace("  a \n\n b  ") == "a b"


def test_unicode_escapes_decoded():
    assert unescape_unicode("caf\\u00e9") == "café"
    assert unescape_unicode("x\\u003dy") == "x=y"
    assert unescape_unicode("plain") == "plain"


def test_split_sentences():
    assert split_sentences("Hi there. How are you? Fine!") == ["Hi there.", "How are you?", "Fine!"]
    assert split_sentences("") == []


def test_normalize_strips_noise():
    """Lowercases and removes punctuation, digits and stop words."""
    cleaner = TextCleaner()
    assert cleaner.normalize("The 3 Quick, brown foxes!") == "quick brown foxes"
    assert cleaner.normalize("") == ""


def test_tokenize_and_content_words():
    cleaner = TextCleaner()
    assert cleaner.tokenize("It's 2024, OK?") == ["it's", "2024", "ok"]
    assert cleaner.content_words("The market dropped 300 points") == ["market", "dropped", "points"]
