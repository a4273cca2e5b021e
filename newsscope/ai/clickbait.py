"""
Headline clickbait detection.
Labels headlines "Yes"/"No" with a phrase list or a language model.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from newsscope.ai.llm_client import LLMClient, strip_code_fences
from newsscope.utils.errors import LLMError

logger = logging.getLogger(__name__)

CLICKBAIT_PHRASES = [
    # Curiosity and intrigue
    "shocking", "you won't believe", "unbelievable", "must see",
    "sensational", "what happens next", "revealed", "secret",
    "hidden-truth", "little-known",
    # Urgency and fear of missing out
    "act now", "hurry", "before it's too late", "don't miss this", "breaking", "right now",
    # Superlatives
    "top 10", "best ever", "incredible", "craziest", "mind-blowing", "amazing", "epic",
    # Fear and controversy
    "worst", "disaster", "ruined", "banned", "outrage",
]

CLICKBAIT_PROMPT = "Is the following headline clickbait? Respond with 'Yes' or 'No'.\n\n{title}"


@dataclass
class ClickbaitResult:
    """
    Clickbait label for one headline.
    """
    title: str
    clickbait: str


class ClickbaitClassifier(ABC):
    """
    Labels a single headline as clickbait or not.
    """

    @abstractmethod
    async def classify(self, title: str) -> str:
        """
        Classify one headline.

        Returns:
            "Yes" or "No"
        """


class KeywordClickbaitClassifier(ClickbaitClassifier):
    """
    Flags headlines containing any known clickbait phrase.
    """

    def __init__(self, phrases: Optional[Iterable[str]] = None):
        self.phrases = [p.lower() for p in (phrases if phrases is not None else CLICKBAIT_PHRASES)]

    def is_clickbait(self, title: str) -> bool:
        title_lower = (title or "").lower()
        return any(phrase in title_lower for phrase in self.phrases)

    async def classify(self, title: str) -> str:
        return "Yes" if self.is_clickbait(title) else "No"


class LLMClickbaitClassifier(ClickbaitClassifier):
    """
    Asks a language model whether a headline is clickbait.

    Anything other than a clear "Yes" reply, including failed calls, is
    labelled "No".
    """

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None):
        self.llm_client = llm_client
        self.model = model

    async def classify(self, title: str) -> str:
        prompt = CLICKBAIT_PROMPT.format(title=title)
        try:
            reply = await self.llm_client.complete(prompt, model=self.model)
        except LLMError as e:
            logger.warning(f"Clickbait check failed for '{title}': {e}")
            return "No"

        answer = strip_code_fences(reply).strip().strip(".!'\"").lower()
        return "Yes" if answer == "yes" else "No"


async def classify_headlines(
    titles: Iterable[str],
    classifier: ClickbaitClassifier,
    concurrency: int = 4
) -> List[ClickbaitResult]:
    """
    Classify a batch of headlines, keeping their order.

    Args:
        titles: Headlines to classify
        classifier: Keyword or LLM classifier
        concurrency: Maximum simultaneous classifications

    Returns:
        One ClickbaitResult per headline
    """
    titles = list(titles)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _classify(title: str) -> str:
        async with semaphore:
            return await classifier.classify(title)

    labels = await asyncio.gather(*(_classify(title) for title in titles))

    flagged = sum(1 for label in labels if label == "Yes")
    logger.info(f"Flagged {flagged} out of {len(titles)} headlines as clickbait")

    return [ClickbaitResult(title=title, clickbait=label) for title, label in zip(titles, labels)]


def clickbait_to_frame(results: List[ClickbaitResult]) -> pd.DataFrame:
    """Tabulate clickbait results with title and clickbait columns."""
    return pd.DataFrame(
        [{"title": r.title, "clickbait": r.clickbait} for r in results],
        columns=["title", "clickbait"]
    )
