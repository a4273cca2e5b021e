"""
API connector for the NewsAPI.org search service.
Wraps the "everything" and "top-headlines" endpoints.
"""

import logging
from datetime import date, datetime
from typing import List, Dict, Any, Optional, Union
from urllib.parse import quote

import aiohttp

from newsscope.scraper.news_scraper import NewsArticle
from newsscope.utils.errors import ConfigurationError, NewsAPIError

logger = logging.getLogger(__name__)

# NewsAPI rejects URL-encoded queries longer than this
MAX_ENCODED_QUERY_LENGTH = 500

DateLike = Union[str, date, datetime]


class NewsAPIConnector:
    """
    Connector for NewsAPI.org service.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://newsapi.org/v2",
        timeout: int = 30,
        country: str = "us"
    ):
        """
        Initialize NewsAPI connector.

        Args:
            api_key: NewsAPI.org API key
            base_url: API root URL
            timeout: Request timeout in seconds
            country: Country code used for top headlines

        Raises:
            ConfigurationError: If no API key is given
        """
        if not api_key:
            raise ConfigurationError("NEWS_API_KEY is not set.")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.country = country
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self.session = aiohttp.ClientSession(
            headers={"X-API-Key": self.api_key},
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()
            self.session = None

    async def search_everything(
        self,
        keyword: str,
        from_date: Optional[DateLike] = None,
        to_date: Optional[DateLike] = None,
        sort_by: Optional[str] = None,
        language: str = "en"
    ) -> List[NewsArticle]:
        """
        Search articles using NewsAPI everything endpoint.

        Args:
            keyword: Search term
            from_date: Oldest article date (YYYY-MM-DD or date)
            to_date: Newest article date (YYYY-MM-DD or date)
            sort_by: Sort order (relevancy, popularity, publishedAt)
            language: Article language

        Returns:
            List of articles

        Raises:
            ValueError: If the keyword is missing or too long once encoded
            NewsAPIError: If the API answers with a non-200 status
        """
        if not keyword or not keyword.strip():
            raise ValueError("A keyword is required for the everything endpoint.")

        if len(quote(keyword, safe="")) > MAX_ENCODED_QUERY_LENGTH:
            raise ValueError(
                f"The URL-encoded query exceeds the maximum length of {MAX_ENCODED_QUERY_LENGTH} characters."
            )

        params = {
            "q": keyword,
            "language": language,
        }

        # Optional parameters are only sent when given
        if from_date:
            params["from"] = _format_date(from_date)

        if to_date:
            params["to"] = _format_date(to_date)

        if sort_by:
            params["sortBy"] = sort_by

        data = await self._get("everything", params)
        return self._parse_articles(data)

    async def get_top_headlines(self, category: Optional[str] = None) -> List[NewsArticle]:
        """
        Get live top headlines using NewsAPI headlines endpoint.

        Args:
            category: Category (business, entertainment, general, health, science, sports, technology)

        Returns:
            List of articles
        """
        params = {"country": self.country}

        if category:
            params["category"] = category

        data = await self._get("top-headlines", params)
        return self._parse_articles(data)

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Issue a GET request against an endpoint and return the decoded JSON body.
        """
        if self.session is None:
            raise RuntimeError("NewsAPIConnector must be used as an async context manager")

        url = f"{self.base_url}/{endpoint}"
        async with self.session.get(url, params=params) as response:
            if response.status != 200:
                logger.error(f"NewsAPI {endpoint} returned status {response.status}")
                raise NewsAPIError(
                    f"Request failed with status: {response.status}",
                    status_code=response.status
                )
            return await response.json()

    def _parse_articles(self, data: Dict[str, Any]) -> List[NewsArticle]:
        articles = []
        for article_data in data.get("articles") or []:
            article = self._parse_newsapi_article(article_data)
            if article:
                articles.append(article)

        logger.info(f"NewsAPI returned {len(articles)} articles")
        return articles

    def _parse_newsapi_article(self, data: Dict[str, Any]) -> Optional[NewsArticle]:
        """
        Parse NewsAPI article data into NewsArticle.

        Args:
            data: Article data from NewsAPI

        Returns:
            NewsArticle or None if the entry has no title or URL
        """
        title = (data.get("title") or "").strip()
        url = (data.get("url") or "").strip()

        if not title or not url:
            logger.debug(f"Skipping NewsAPI entry without title or url: {data}")
            return None

        # Parse published date
        published_at = None
        if data.get("publishedAt"):
            try:
                published_at = datetime.fromisoformat(
                    data["publishedAt"].replace("Z", "+00:00")
                )
            except ValueError:
                logger.debug(f"Unparseable publishedAt: {data['publishedAt']}")

        source_data = data.get("source") or {}

        return NewsArticle(
            title=title,
            content=data.get("content") or "",
            url=url,
            source=source_data.get("name"),
            author=data.get("author"),
            published_at=published_at,
            description=data.get("description")
        )


def _format_date(value: DateLike) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)

