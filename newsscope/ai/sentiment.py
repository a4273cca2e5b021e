"""
Sentiment analysis for news text.

Scores text as Positive, Negative or Neutral using either a word polarity
lexicon or a language model, and applies it to whole batches of articles
with backoff on rate limits.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from newsscope.ai.llm_client import LLMClient, strip_code_fences
from newsscope.scraper.cleaner import TextCleaner
from newsscope.scraper.news_scraper import NewsArticle, articles_to_frame
from newsscope.utils.errors import LLMError, LLMRateLimitError, ResponseParseError

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05

REQUIRED_FIELDS = ("score", "label", "details")

SENTIMENT_PROMPT = (
    "Analyze the sentiment of the following text and provide a detailed emotional analysis. "
    "Return the result as a valid JSON object with exactly three fields: 'score', 'label', and 'details'. "
    "The 'score' field must be a numeric value between -1 and 1. "
    "The 'label' field must be one of: 'Positive', 'Negative', or 'Neutral'. "
    "The 'details' field must be a detailed description of the nuanced emotions present "
    "(for example: 'joyful', 'anxious', 'melancholic', etc.). "
    "Do not include any additional text or markdown formatting. "
    "Text: {text}\n"
    "Return only the JSON."
)


@dataclass
class SentimentResult:
    """
    Sentiment of one text.
    """
    score: float
    label: str
    details: Optional[str] = None


def label_for_score(score: float) -> str:
    """Map a normalized score to Positive, Negative or Neutral."""
    if score > POSITIVE_THRESHOLD:
        return "Positive"
    if score < NEGATIVE_THRESHOLD:
        return "Negative"
    return "Neutral"


@lru_cache(maxsize=1)
def load_polarity_lexicon() -> Dict[str, int]:
    """
    Load the word polarity lexicon.

    Uses the sign of each VADER valence: +1 for positive words, -1 for
    negative words. Neutral entries are dropped.

    Returns:
        Mapping of lowercase word to +1 or -1
    """
    lexicon = SentimentIntensityAnalyzer().lexicon
    return {
        word.lower(): 1 if valence > 0 else -1
        for word, valence in lexicon.items()
        if valence != 0
    }


class SentimentAnalyzer(ABC):
    """
    Scores the sentiment of a single text.
    """

    method: str

    @abstractmethod
    async def analyze(self, text: str) -> SentimentResult:
        """Return the sentiment of ``text``."""


class LexiconSentimentAnalyzer(SentimentAnalyzer):
    """
    Polarity-lexicon sentiment: summed word polarity over token count.
    """

    method = "lexicon"

    def __init__(self, lexicon: Optional[Dict[str, int]] = None, cleaner: Optional[TextCleaner] = None):
        self.lexicon = lexicon if lexicon is not None else load_polarity_lexicon()
        self.cleaner = cleaner or TextCleaner()

    def score_text(self, text: str) -> SentimentResult:
        tokens = self.cleaner.tokenize(text)
        if not tokens:
            return SentimentResult(score=0.0, label="Neutral")

        total = sum(self.lexicon.get(token, 0) for token in tokens)
        score = total / len(tokens)
        return SentimentResult(score=score, label=label_for_score(score))

    async def analyze(self, text: str) -> SentimentResult:
        return self.score_text(text)


def parse_sentiment_reply(reply: str) -> SentimentResult:
    """
    Parse the JSON sentiment object returned by the model.

    Args:
        reply: Model reply, possibly fenced as ```json

    Returns:
        Parsed SentimentResult

    Raises:
        ResponseParseError: If the JSON is malformed or a required field is missing
    """
    text = strip_code_fences(reply)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Error parsing JSON response: {e}") from e

    if not isinstance(data, dict) or any(name not in data for name in REQUIRED_FIELDS):
        raise ResponseParseError(
            "The JSON response does not contain the required fields: 'score', 'label', and 'details'."
        )

    try:
        score = float(data["score"])
    except (TypeError, ValueError) as e:
        raise ResponseParseError(f"Sentiment score is not numeric: {data['score']!r}") from e

    details = data["details"]
    if isinstance(details, (list, tuple)):
        details = ", ".join(str(item) for item in details)

    return SentimentResult(score=score, label=str(data["label"]), details=str(details))


class LLMSentimentAnalyzer(SentimentAnalyzer):
    """
    Sentiment scored by a language model returning a JSON object.
    """

    method = "openai"

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm_client = llm_client
        self.model = model

    async def analyze(self, text: str) -> SentimentResult:
        reply = await self.llm_client.complete(SENTIMENT_PROMPT.format(text=text), model=self.model)
        return parse_sentiment_reply(reply)


async def get_sentiment(
    text: str,
    method: str = "openai",
    llm_client: Optional[LLMClient] = None
) -> SentimentResult:
    """
    Score one text with the chosen method.

    Args:
        text: Text to analyze
        method: "openai" or "lexicon"
        llm_client: Client for the openai method

    Returns:
        Sentiment result
    """
    if method == "openai":
        if llm_client is None:
            raise ValueError("The openai sentiment method requires an LLM client")
        analyzer = LLMSentimentAnalyzer(llm_client)
    elif method == "lexicon":
        analyzer = LexiconSentimentAnalyzer()
    else:
        raise ValueError(f"Unknown sentiment method: {method}")

    return await analyzer.analyze(text)


async def analyze_sentiment(
    articles: Union[pd.DataFrame, Sequence[NewsArticle]],
    analyzer: SentimentAnalyzer,
    text_column: str = "content",
    delay: float = 2.0,
    max_retries: int = 5
) -> pd.DataFrame:
    """
    Apply sentiment analysis to every article in a batch.

    Articles are processed one at a time with a pause of ``delay`` seconds
    between them. A rate-limited call is retried after ``delay * 2**retry``
    seconds. Any other failure, or running out of retries, aborts the whole
    batch.

    Args:
        articles: Data frame or list of articles
        analyzer: Lexicon or LLM analyzer
        text_column: Column holding the text to analyze
        delay: Base delay in seconds
        max_retries: Attempts allowed per article when rate limited

    Returns:
        Copy of the input frame with sentiment_score and sentiment_label
        columns, plus sentiment_details when the analyzer provides details

    Raises:
        ValueError: If ``text_column`` is not a column of the articles
        LLMRateLimitError: If an article stays rate limited after max_retries attempts
        LLMError: If an analysis call fails for any other reason
    """
    frame = articles_to_frame(list(articles)) if not isinstance(articles, pd.DataFrame) else articles.copy()
    if text_column not in frame.columns:
        raise ValueError(f"Column '{text_column}' not found in articles")

    results: List[SentimentResult] = []
    total = len(frame)

    for position, text in enumerate(frame[text_column].tolist(), start=1):
        logger.info(f"Analyzing article {position} of {total}...")

        sentiment = None
        retries = 0
        while sentiment is None and retries < max_retries:
            try:
                sentiment = await analyzer.analyze(text if isinstance(text, str) else "")
            except LLMRateLimitError:
                wait_time = delay * 2 ** retries
                logger.warning(f"Rate limit hit on article {position}. Retrying in {wait_time} seconds...")
                await asyncio.sleep(wait_time)
                retries += 1
            except LLMError as e:
                raise LLMError(f"Error analyzing article {position}: {e}") from e

        if sentiment is None:
            raise LLMRateLimitError(f"Failed to analyze article {position} after {max_retries} retries.")

        results.append(sentiment)

        if delay and position < total:
            await asyncio.sleep(delay)

    frame["sentiment_score"] = [result.score for result in results]
    frame["sentiment_label"] = [result.label for result in results]
    if any(result.details is not None for result in results):
        frame["sentiment_details"] = [result.details for result in results]

    return frame
