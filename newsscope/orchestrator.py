"""
Workflow orchestrator for the news analysis client.
Wires settings into the collaborators and runs each analysis end to end:
Search -> Fetch -> Analyze -> Tabulate.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from newsscope.utils.config import (
    Settings,
    settings,
    get_analysis_config,
    get_news_api_config,
    get_openai_config,
    get_scraping_config,
)
from newsscope.utils.errors import InvalidSelectionError, NewsScopeError
from newsscope.scraper.api_connector import NewsAPIConnector
from newsscope.scraper.news_scraper import ArticleFetcher, NewsArticle, articles_to_frame
from newsscope.ai.llm_client import LLMClient
from newsscope.ai.clickbait import (
    KeywordClickbaitClassifier,
    LLMClickbaitClassifier,
    classify_headlines,
    clickbait_to_frame,
)
from newsscope.ai.similarity import (
    LLMPairScorer,
    SimilarityEngine,
    SimilarityReport,
    VectorSpacePairScorer,
)
from newsscope.ai.sentiment import (
    LexiconSentimentAnalyzer,
    LLMSentimentAnalyzer,
    analyze_sentiment,
)
from newsscope.ai.translator import ArticleTranslator

logger = logging.getLogger(__name__)

FAKE_NEWS_ANALYSES = ("clickbait", "similarity")
ANALYSIS_METHODS = ("openai", "nlp")
SENTIMENT_METHODS = ("openai", "lexicon")
SEARCH_METHODS = ("everything", "top-headlines")


@dataclass
class FakeNewsResult:
    """
    Outcome of a clickbait or similarity analysis.
    """
    analysis: str
    method: str
    table: pd.DataFrame
    similarity: Optional[SimilarityReport] = None
    notes: List[str] = field(default_factory=list)


class NewsAnalysisOrchestrator:
    """
    Orchestrates news search and analysis workflows.
    """

    def __init__(self, config: Optional[Settings] = None):
        """
        Initialize the orchestrator.

        Args:
            config: Settings to read credentials and limits from
        """
        self.config = config or settings
        self.analysis_config = get_analysis_config(self.config)
        self.scraping_config = get_scraping_config(self.config)

    def _llm_client(self, model: Optional[str] = None, temperature: Optional[float] = None) -> LLMClient:
        openai_config = get_openai_config(self.config)
        return LLMClient(
            api_key=openai_config["api_key"],
            model=model or openai_config["model"],
            temperature=temperature,
            timeout=openai_config["timeout"]
        )

    def _news_connector(self) -> NewsAPIConnector:
        news_config = get_news_api_config(self.config)
        return NewsAPIConnector(
            api_key=news_config["api_key"],
            base_url=news_config["base_url"],
            timeout=news_config["timeout"],
            country=news_config["country"]
        )

    def _fetcher(self) -> ArticleFetcher:
        return ArticleFetcher(
            timeout=self.scraping_config["timeout"],
            user_agent=self.scraping_config["user_agent"]
        )

    async def search_news(
        self,
        keyword: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        sort_by: Optional[str] = None,
        language: str = "en"
    ) -> List[NewsArticle]:
        """
        Search all articles matching a keyword.
        """
        async with self._news_connector() as connector:
            return await connector.search_everything(
                keyword=keyword,
                from_date=from_date,
                to_date=to_date,
                sort_by=sort_by,
                language=language
            )

    async def top_headlines(self, category: Optional[str] = None) -> List[NewsArticle]:
        """
        Get the current top headlines, optionally for one category.
        """
        async with self._news_connector() as connector:
            return await connector.get_top_headlines(category=category)

    async def detect_fake_news(
        self,
        articles: List[NewsArticle],
        analysis: str,
        method: str
    ) -> FakeNewsResult:
        """
        Run clickbait detection or similarity analysis over search results.

        Args:
            articles: Search results
            analysis: "clickbait" or "similarity"
            method: "openai" for the language model, "nlp" for local analysis

        Returns:
            FakeNewsResult with a table in article order

        Raises:
            InvalidSelectionError: If analysis or method is not recognized
            ConfigurationError: If the openai method is chosen without an API key
        """
        if analysis not in FAKE_NEWS_ANALYSES or method not in ANALYSIS_METHODS:
            raise InvalidSelectionError("Invalid choice. Please enter 1 or 2.")

        if not articles:
            raise NewsScopeError("No articles to analyze.")

        if analysis == "clickbait":
            return await self._detect_clickbait(articles, method)
        return await self._analyze_similarity(articles, method)

    async def _detect_clickbait(self, articles: List[NewsArticle], method: str) -> FakeNewsResult:
        if method == "openai":
            logger.info("Performing clickbait detection using OpenAI...")
            classifier = LLMClickbaitClassifier(self._llm_client())
        else:
            logger.info("Performing clickbait detection using keyword analysis...")
            classifier = KeywordClickbaitClassifier()

        results = await classify_headlines([article.title for article in articles], classifier)
        return FakeNewsResult(analysis="clickbait", method=method, table=clickbait_to_frame(results))

    async def _analyze_similarity(self, articles: List[NewsArticle], method: str) -> FakeNewsResult:
        if method == "openai":
            # Resolve the client first so a missing key fails before any scraping
            scorer = LLMPairScorer(
                self._llm_client(),
                concurrency=self.analysis_config["similarity_concurrency"],
                max_articles=self.analysis_config["similarity_max_articles"]
            )
            articles = articles[:scorer.max_articles]
        else:
            scorer = VectorSpacePairScorer()

        missing = [article for article in articles if not article.full_content]
        if missing:
            logger.info("Retrieving full article content via web scraping. Please wait for the analysis to complete.")
            async with self._fetcher() as fetcher:
                await fetcher.fetch_full_contents(missing, concurrency=self.scraping_config["concurrency"])

        report = await SimilarityEngine(scorer).compute_similarity(articles)
        return FakeNewsResult(
            analysis="similarity",
            method=method,
            table=report.to_frame(),
            similarity=report,
            notes=list(report.notes)
        )

    async def analyze_sentiment(
        self,
        articles: List[NewsArticle],
        method: str = "openai",
        text_column: str = "content"
    ) -> pd.DataFrame:
        """
        Add sentiment columns to a table of articles.

        Args:
            articles: Articles to score
            method: "openai" or "lexicon"
            text_column: Column holding the text to score

        Returns:
            Article table with sentiment_score and sentiment_label columns
        """
        if method not in SENTIMENT_METHODS:
            raise InvalidSelectionError(f"Invalid sentiment method: {method}")

        if method == "openai":
            analyzer = LLMSentimentAnalyzer(self._llm_client())
            delay = self.analysis_config["sentiment_delay"]
        else:
            analyzer = LexiconSentimentAnalyzer()
            delay = 0

        return await analyze_sentiment(
            articles_to_frame(articles),
            analyzer,
            text_column=text_column,
            delay=delay,
            max_retries=self.analysis_config["sentiment_max_retries"]
        )

    async def find_articles(
        self,
        search_method: str = "everything",
        keyword: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        sort_by: Optional[str] = "relevancy",
        category: Optional[str] = None
    ) -> List[NewsArticle]:
        """
        Retrieve candidate articles for translation.

        Raises:
            InvalidSelectionError: If the search method is unknown
            ValueError: If "everything" is used without a keyword
            NewsScopeError: If the search finds nothing
        """
        if search_method not in SEARCH_METHODS:
            raise InvalidSelectionError(f"Invalid search method: {search_method}")

        if search_method == "everything":
            if not keyword:
                raise ValueError("You must provide a 'keyword' when search_method = 'everything'.")
            articles = await self.search_news(keyword, from_date=from_date, to_date=to_date, sort_by=sort_by)
        else:
            articles = await self.top_headlines(category=category)

        if not articles:
            raise NewsScopeError("No articles found.")

        return articles

    async def translate_article(self, article: NewsArticle, target_language: str) -> str:
        """
        Translate one article's title and summarize it in the target language.
        """
        llm_client = self._llm_client(
            model=self.analysis_config["translation_model"],
            temperature=self.analysis_config["translation_temperature"]
        )
        async with self._fetcher() as fetcher:
            translator = ArticleTranslator(
                llm_client,
                fetcher,
                model=self.analysis_config["translation_model"],
                temperature=self.analysis_config["translation_temperature"]
            )
            return await translator.translate_article(article, target_language)

    async def search_and_translate(
        self,
        index: int,
        target_language: str,
        search_method: str = "everything",
        keyword: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        sort_by: Optional[str] = "relevancy",
        category: Optional[str] = None
    ) -> str:
        """
        Search, pick the article at a 1-based position, and translate it.

        Raises:
            InvalidSelectionError: If ``index`` is out of range
        """
        articles = await self.find_articles(
            search_method=search_method,
            keyword=keyword,
            from_date=from_date,
            to_date=to_date,
            sort_by=sort_by,
            category=category
        )
        article = select_article(articles, index)
        return await self.translate_article(article, target_language)


def select_article(articles: List[NewsArticle], index: int) -> NewsArticle:
    """
    Pick an article by its 1-based position.

    Raises:
        InvalidSelectionError: If ``index`` is not a valid position
    """
    if not isinstance(index, int) or index < 1 or index > len(articles):
        raise InvalidSelectionError("Invalid article number.")
    return articles[index - 1]


# Global orchestrator instance
orchestrator: Optional[NewsAnalysisOrchestrator] = None


def get_orchestrator() -> NewsAnalysisOrchestrator:
    """
    Get the global orchestrator instance.

    Returns:
        News analysis orchestrator
    """
    global orchestrator
    if orchestrator is None:
        orchestrator = NewsAnalysisOrchestrator()
    return orchestrator
