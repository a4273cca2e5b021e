"""
Content similarity analysis for fake-news detection.

Builds a symmetric pairwise similarity matrix over a batch of articles and
derives one score per article plus one score for the whole batch. Two
interchangeable scorers fill the matrix: a language model rating each pair,
or a local bag-of-words cosine model.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from newsscope.ai.llm_client import LLMClient, strip_code_fences
from newsscope.scraper.cleaner import TextCleaner
from newsscope.scraper.news_scraper import NewsArticle
from newsscope.utils.errors import LLMError, ResponseParseError

logger = logging.getLogger(__name__)

# Bounds the number of pairwise LLM calls to C(25, 2) = 300
LLM_MAX_ARTICLES = 25

SIMILARITY_PROMPT = (
    "Compare the following two news articles and rate their similarity from 0 to 1:\n\n"
    "Article 1: {first}\n\n"
    "Article 2: {second}\n\n"
    "Return only a numerical value."
)

ArticleLike = Union[NewsArticle, Mapping[str, Any]]


class SimilarityStrategy(str, Enum):
    """Back-end used to score article pairs."""
    LLM = "openai"
    VECTOR_SPACE = "nlp"


class SimilarityOutcome(str, Enum):
    """
    How an article's score came about.

    ``NO_DATA`` and ``MEASURED_ZERO`` both carry a score of 0.0; the
    outcome keeps them apart for callers that care.
    """
    MEASURED = "measured"
    MEASURED_ZERO = "measured_zero"
    NO_DATA = "no_data"


@dataclass
class SimilarityResult:
    """
    Similarity score for a single article.
    """
    index: int
    title: str
    full_content: str
    similarity_score: float
    valid_comparisons: int
    outcome: SimilarityOutcome


@dataclass
class SimilarityReport:
    """
    Result of one similarity analysis run.
    """
    results: List[SimilarityResult]
    matrix: np.ndarray
    overall_similarity: float
    strategy: SimilarityStrategy
    missing_pairs: int = 0
    notes: List[str] = field(default_factory=list)

    @property
    def similarity_scores(self) -> List[float]:
        return [result.similarity_score for result in self.results]

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate the report with one row per article, in input order.

        Returns:
            DataFrame with title, full_content, similarity_score and overall_similarity columns
        """
        return pd.DataFrame(
            {
                "title": [result.title for result in self.results],
                "full_content": [result.full_content for result in self.results],
                "similarity_score": self.similarity_scores,
                "overall_similarity": [self.overall_similarity] * len(self.results),
            }
        )


def parse_similarity_reply(reply: str) -> float:
    """
    Parse a bare numeric similarity rating.

    Args:
        reply: Model reply, possibly wrapped in a code fence

    Returns:
        Rating in [0, 1]

    Raises:
        ResponseParseError: If the reply is not a number in [0, 1]
    """
    text = strip_code_fences(reply)
    try:
        value = float(text)
    except (TypeError, ValueError) as e:
        raise ResponseParseError(f"Not a numeric similarity: {reply!r}") from e

    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ResponseParseError(f"Similarity out of range: {reply!r}")

    return value


def aggregate_row_scores(matrix: np.ndarray, drop_non_positive: bool) -> Tuple[np.ndarray, np.ndarray]:
    """
    Average each row of a similarity matrix, ignoring the diagonal.

    Missing entries (NaN) are always ignored. With ``drop_non_positive``
    zero and negative entries are ignored as well, since a failed pairwise
    rating cannot be told apart from a rating of zero.

    Args:
        matrix: Square similarity matrix
        drop_non_positive: Whether to ignore entries <= 0

    Returns:
        Tuple of (per-row mean, per-row count of entries used); rows with
        nothing to average get a mean of 0.0
    """
    n = matrix.shape[0]
    scores = np.zeros(n, dtype=float)
    counts = np.zeros(n, dtype=int)
    off_diagonal = ~np.eye(n, dtype=bool)

    for i in range(n):
        row = matrix[i][off_diagonal[i]]
        valid = row[~np.isnan(row)]
        if drop_non_positive:
            valid = valid[valid > 0]
        counts[i] = valid.size
        if valid.size:
            scores[i] = float(valid.mean())

    return scores, counts


def overall_similarity(matrix: np.ndarray) -> float:
    """
    Mean of the strict upper triangle, ignoring missing entries.

    Args:
        matrix: Square similarity matrix

    Returns:
        Batch-wide similarity, 0.0 when there is no pair to average
    """
    n = matrix.shape[0]
    upper = matrix[np.triu_indices(n, k=1)]
    upper = upper[~np.isnan(upper)]
    if upper.size == 0:
        return 0.0
    return float(upper.mean())


class PairScorer(ABC):
    """
    Fills a similarity matrix for a list of article texts.
    """

    strategy: SimilarityStrategy
    # Whether zero entries count as failures when averaging rows
    drop_non_positive: bool = False
    # Maximum number of articles the scorer accepts, None for no limit
    max_articles: Optional[int] = None

    @abstractmethod
    async def score_matrix(self, texts: List[str]) -> np.ndarray:
        """
        Score every unordered pair of texts.

        Args:
            texts: Article texts in batch order

        Returns:
            Symmetric N x N matrix; missing pairs are NaN
        """


class LLMPairScorer(PairScorer):
    """
    Rates each pair of articles by asking a language model.
    """

    strategy = SimilarityStrategy.LLM
    drop_non_positive = True

    def __init__(
        self,
        llm_client: LLMClient,
        model: Optional[str] = None,
        concurrency: int = 8,
        max_articles: int = LLM_MAX_ARTICLES
    ):
        """
        Initialize the scorer.

        Args:
            llm_client: Client used for the pairwise prompts
            model: Model override, defaults to the client's model
            concurrency: Maximum simultaneous pairwise calls
            max_articles: Articles beyond this position are not scored
        """
        self.llm_client = llm_client
        self.model = model
        self.concurrency = max(1, concurrency)
        self.max_articles = max_articles

    async def score_pair(self, first: str, second: str) -> float:
        """
        Rate the similarity of two article texts.

        Returns:
            Rating in [0, 1], or NaN when the call or the parse fails
        """
        prompt = SIMILARITY_PROMPT.format(first=first, second=second)
        try:
            reply = await self.llm_client.complete(prompt, model=self.model)
            return parse_similarity_reply(reply)
        except LLMError as e:
            logger.warning(f"Pairwise similarity unavailable: {e}")
            return float("nan")

    async def score_matrix(self, texts: List[str]) -> np.ndarray:
        n = len(texts)
        matrix = np.full((n, n), np.nan, dtype=float)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _score(i: int, j: int) -> None:
            async with semaphore:
                score = await self.score_pair(texts[i], texts[j])
            # Each task owns cells (i, j) and (j, i) only
            matrix[i, j] = score
            matrix[j, i] = score

        pairs = list(combinations(range(n), 2))
        logger.info(f"Scoring {len(pairs)} article pairs with concurrency {self.concurrency}")
        await asyncio.gather(*(_score(i, j) for i, j in pairs))
        return matrix


class VectorSpacePairScorer(PairScorer):
    """
    Cosine similarity of L2-normalized term-frequency vectors.
    """

    strategy = SimilarityStrategy.VECTOR_SPACE
    drop_non_positive = False

    def __init__(self, cleaner: Optional[TextCleaner] = None):
        self.cleaner = cleaner or TextCleaner()

    def term_document_matrix(self, texts: List[str]):
        """
        Build the sparse term-document matrix over the batch vocabulary.

        Returns:
            Sparse matrix, or None when no document has any term left
        """
        documents = [self.cleaner.normalize(text) for text in texts]
        if not any(documents):
            return None

        vectorizer = CountVectorizer(lowercase=False, token_pattern=r"(?u)\b\w+\b")
        return vectorizer.fit_transform(documents)

    async def score_matrix(self, texts: List[str]) -> np.ndarray:
        n = len(texts)
        dtm = self.term_document_matrix(texts)

        if dtm is None:
            logger.warning("No terms left after normalization; all similarities are zero")
            similarities = np.zeros((n, n), dtype=float)
        else:
            similarities = cosine_similarity(dtm)

        # Keep the strict upper triangle and mirror it
        upper = np.clip(np.triu(similarities, k=1), 0.0, 1.0)
        matrix = upper + upper.T
        np.fill_diagonal(matrix, 1.0)
        return matrix


def _title_and_text(article: ArticleLike) -> Tuple[str, str]:
    if isinstance(article, NewsArticle):
        return article.title, article.full_content or article.content or ""

    title = article.get("title") or ""
    text = article.get("full_content") or article.get("content") or ""
    return title, text


class SimilarityEngine:
    """
    Computes per-article and batch-wide similarity scores.
    """

    def __init__(self, scorer: PairScorer):
        """
        Initialize the engine.

        Args:
            scorer: Pair scorer that fills the similarity matrix
        """
        self.scorer = scorer

    @property
    def strategy(self) -> SimilarityStrategy:
        return self.scorer.strategy

    async def compute_similarity(self, articles: Sequence[ArticleLike]) -> SimilarityReport:
        """
        Score a batch of articles against each other.

        Articles are identified by position. Each article's text is its
        ``full_content``, falling back to the search snippet ``content``
        when the full text could not be fetched.

        Args:
            articles: Articles in caller order

        Returns:
            SimilarityReport with rows in the same order as ``articles``

        Raises:
            ValueError: If ``articles`` is empty
        """
        articles = list(articles)
        if not articles:
            raise ValueError("Similarity analysis needs at least one article")

        notes = []
        cap = self.scorer.max_articles
        if cap is not None and len(articles) > cap:
            note = f"Analysis is restricted to the first {cap} of {len(articles)} articles"
            logger.info(note)
            notes.append(note)
            articles = articles[:cap]

        titles, texts = zip(*(_title_and_text(article) for article in articles))
        texts = list(texts)

        matrix = await self.scorer.score_matrix(texts)

        scores, counts = aggregate_row_scores(matrix, self.scorer.drop_non_positive)
        overall = overall_similarity(matrix)

        n = len(texts)
        missing_pairs = int(np.isnan(matrix[np.triu_indices(n, k=1)]).sum())
        if missing_pairs:
            note = f"{missing_pairs} article pairs could not be scored and were left out"
            logger.warning(note)
            notes.append(note)

        results = []
        for i, (title, text) in enumerate(zip(titles, texts)):
            if counts[i] == 0:
                outcome = SimilarityOutcome.NO_DATA
            elif scores[i] == 0.0:
                outcome = SimilarityOutcome.MEASURED_ZERO
            else:
                outcome = SimilarityOutcome.MEASURED
            results.append(
                SimilarityResult(
                    index=i,
                    title=title,
                    full_content=text,
                    similarity_score=float(scores[i]),
                    valid_comparisons=int(counts[i]),
                    outcome=outcome
                )
            )

        logger.info(f"Similarity analysis complete: {n} articles, overall similarity {overall:.3f}")

        return SimilarityReport(
            results=results,
            matrix=matrix,
            overall_similarity=overall,
            strategy=self.scorer.strategy,
            missing_pairs=missing_pairs,
            notes=notes
        )


def build_scorer(
    strategy: Union[SimilarityStrategy, str],
    llm_client: Optional[LLMClient] = None,
    model: Optional[str] = None,
    concurrency: int = 8,
    max_articles: int = LLM_MAX_ARTICLES
) -> PairScorer:
    """
    Create the pair scorer for a strategy.

    Raises:
        ValueError: If the LLM strategy is requested without a client
    """
    strategy = SimilarityStrategy(strategy)
    if strategy is SimilarityStrategy.LLM:
        if llm_client is None:
            raise ValueError("The LLM similarity strategy requires an LLM client")
        return LLMPairScorer(llm_client, model=model, concurrency=concurrency, max_articles=max_articles)
    return VectorSpacePairScorer()


async def compute_similarity(
    articles: Sequence[ArticleLike],
    strategy: Union[SimilarityStrategy, str] = SimilarityStrategy.VECTOR_SPACE,
    llm_client: Optional[LLMClient] = None,
    model: Optional[str] = None,
    concurrency: int = 8,
    max_articles: int = LLM_MAX_ARTICLES
) -> SimilarityReport:
    """
    Convenience function to run a similarity analysis.

    Args:
        articles: Articles with title and full_content
        strategy: Pair scoring back-end
        llm_client: Client for the LLM strategy
        model: Model override for the LLM strategy
        concurrency: Maximum simultaneous LLM calls
        max_articles: Article cap for the LLM strategy

    Returns:
        Similarity report
    """
    scorer = build_scorer(
        strategy,
        llm_client=llm_client,
        model=model,
        concurrency=concurrency,
        max_articles=max_articles
    )
    engine = SimilarityEngine(scorer)
    return await engine.compute_similarity(articles)
