"""
Text cleaning and normalization module.
Cleans scraped article text and prepares it for vector-space analysis.
"""

import re
import logging
from typing import List, Optional, Set

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

logger = logging.getLogger(__name__)

# Number of trailing sentences dropped from scraped text (bylines, newsletter plugs)
TRAILING_SENTENCES_DROPPED = 2

_unicode_escape_pattern = re.compile(r'\\u([0-9a-fA-F]{4})|\\U([0-9a-fA-F]{8})')
_whitespace_pattern = re.compile(r'\s+')
_sentence_boundary_pattern = re.compile(r'(?<=[.!?])\s+')


def unescape_unicode(text: str) -> str:
    """
    Replace literal ``\\uXXXX`` / ``\\UXXXXXXXX`` escape sequences with the characters they encode.

    Args:
        text: Text that may contain escaped sequences left over from JSON encoding

    Returns:
        Text with the escapes decoded
    """
    def _decode(match: re.Match) -> str:
        code = match.group(1) or match.group(2)
        try:
            return chr(int(code, 16))
        except ValueError:
            return match.group(0)

    return _unicode_escape_pattern.sub(_decode, text)


def strip_non_printable(text: str) -> str:
    """Drop control and other non-printable characters, keeping whitespace."""
    return ''.join(ch for ch in text if ch.isprintable() or ch.isspace())


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to a single space."""
    return _whitespace_pattern.sub(' ', text).strip()


def split_sentences(text: str) -> List[str]:
    """
    Split text into sentences at sentence-ending punctuation followed by whitespace.

    Args:
        text: Whitespace-collapsed text

    Returns:
        List of sentences (empty for empty text)
    """
    if not text:
        return []
    return [s for s in _sentence_boundary_pattern.split(text) if s]


def clean_article_text(text: str, trailing_sentences: int = TRAILING_SENTENCES_DROPPED) -> str:
    """
    Clean raw paragraph text extracted from an article page.

    The steps run in a fixed order: decode unicode escapes, turn newlines
    into spaces, strip non-printable characters, collapse whitespace, and
    finally drop the trailing sentences when there are more than
    ``trailing_sentences`` of them.

    Args:
        text: Paragraph text joined with newlines
        trailing_sentences: Number of sentences removed from the end

    Returns:
        Cleaned single-line article text
    """
    if not text:
        return ""

    text = unescape_unicode(text)
    text = text.replace('\n', ' ')
    text = strip_non_printable(text)
    text = collapse_whitespace(text)

    sentences = split_sentences(text)
    if len(sentences) > trailing_sentences:
        text = ' '.join(sentences[:len(sentences) - trailing_sentences])

    return text


class TextCleaner:
    """
    Normalizes article text for bag-of-words similarity.
    """

    def __init__(self, stop_words: Optional[Set[str]] = None):
        """
        Initialize the text cleaner.

        Args:
            stop_words: Words removed during normalization, defaults to the English stop list
        """
        self.stop_words = set(stop_words) if stop_words is not None else set(ENGLISH_STOP_WORDS)

        # Patterns for cleaning
        self.punctuation_pattern = re.compile(r'[^\w\s]|_')
        self.number_pattern = re.compile(r'\d+')
        self.token_pattern = re.compile(r"[a-z0-9]+(?:'[a-z0-9]+)*")

    def normalize(self, text: str) -> str:
        """
        Lowercase text and strip punctuation, numbers and stop words.

        Args:
            text: Article text

        Returns:
            Space-separated normalized words
        """
        if not text:
            return ""

        text = text.lower()
        text = self.punctuation_pattern.sub('', text)
        text = self.number_pattern.sub('', text)

        words = [word for word in text.split() if word not in self.stop_words]
        return ' '.join(words)

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into lowercase word tokens.

        Args:
            text: Any text

        Returns:
            List of tokens
        """
        if not text:
            return []
        return self.token_pattern.findall(text.lower())

    def content_words(self, text: str) -> List[str]:
        """Tokens of ``text`` with stop words and bare numbers removed."""
        return [
            token for token in self.tokenize(text)
            if token not in self.stop_words and not token.isdigit()
        ]
