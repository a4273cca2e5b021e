"""
Article scraping module.
Downloads article pages and extracts their paragraph text.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional
from dataclasses import dataclass

import aiohttp
from bs4 import BeautifulSoup
import pandas as pd

from newsscope.scraper.cleaner import clean_article_text
from newsscope.utils.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass
class NewsArticle:
    """
    Represents a news article returned by the search API.

    ``full_content`` starts empty and is filled in place by the fetcher.
    """
    title: str
    content: str
    url: str
    source: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[datetime] = None
    description: Optional[str] = None
    full_content: str = ""


def articles_to_frame(articles: List[NewsArticle]) -> pd.DataFrame:
    """
    Convert articles into a data frame with one row per article.

    Args:
        articles: Articles in result order

    Returns:
        DataFrame with title, content, url, source_name, published_at and full_content columns
    """
    return pd.DataFrame(
        [
            {
                "title": article.title,
                "content": article.content,
                "url": article.url,
                "source_name": article.source,
                "published_at": article.published_at,
                "full_content": article.full_content,
            }
            for article in articles
        ],
        columns=["title", "content", "url", "source_name", "published_at", "full_content"]
    )


def normalize_url(url: str) -> str:
    """
    Undo JSON escaping left in article URLs.

    Args:
        url: URL as received from upstream JSON

    Returns:
        URL with ``\\u003d`` turned back into ``=`` and stray backslashes removed
    """
    fixed_url = url.replace('\\u003d', '=')
    return fixed_url.replace('\\', '')


def extract_article_text(html: str) -> str:
    """
    Extract and clean the paragraph text of an HTML page.

    Args:
        html: Raw page HTML

    Returns:
        Cleaned article text, empty when the page has no paragraphs
    """
    soup = BeautifulSoup(html, 'html.parser')
    paragraphs = [p.get_text() for p in soup.find_all('p')]
    return clean_article_text('\n'.join(paragraphs))


class ArticleFetcher:
    """
    Fetches full article text for news search results.
    """

    def __init__(
        self,
        timeout: int = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Total timeout in seconds for one page download
            user_agent: User agent sent with every request
            session: Optional externally managed session
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent}
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def fetch_article_text(self, url: str) -> str:
        """
        Download an article page and return its cleaned paragraph text.

        Args:
            url: Article URL, possibly still JSON-escaped

        Returns:
            Cleaned article text

        Raises:
            FetchError: If the page cannot be downloaded
        """
        fixed_url = normalize_url(url)
        html = await self._download(fixed_url)
        return extract_article_text(html)

    async def fetch_full_contents(
        self,
        articles: List[NewsArticle],
        concurrency: int = 8
    ) -> List[str]:
        """
        Fetch the full text of every article and store it on the article.

        A failed download leaves an empty string for that article; the rest
        of the batch is unaffected.

        Args:
            articles: Articles to fill in
            concurrency: Maximum number of simultaneous downloads

        Returns:
            Full texts in the same order as ``articles``
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _fetch(article: NewsArticle) -> str:
            async with semaphore:
                return await self.fetch_article_text(article.url)

        results = await asyncio.gather(
            *(_fetch(article) for article in articles),
            return_exceptions=True
        )

        texts = []
        for article, result in zip(articles, results):
            if isinstance(result, Exception):
                logger.warning(f"Article content unavailable for {article.url}: {result}")
                result = ""
            article.full_content = result
            texts.append(result)

        fetched = sum(1 for text in texts if text)
        logger.info(f"Fetched full content for {fetched} out of {len(articles)} articles")
        return texts

    async def _download(self, url: str) -> str:
        """
        Download a page body.

        Args:
            url: Normalized URL

        Returns:
            Response body as text
        """
        if self.session is None:
            raise RuntimeError("ArticleFetcher must be used as an async context manager")

        try:
            async with self.session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise FetchError(url, f"HTTP {response.status}")
                return await response.text(errors='replace')
        except asyncio.TimeoutError as e:
            raise FetchError(url, "request timed out") from e
        except aiohttp.ClientError as e:
            raise FetchError(url, str(e)) from e


async def fetch_article_text(url: str, timeout: int = 30, user_agent: str = DEFAULT_USER_AGENT) -> str:
    """
    Convenience function to fetch one article's text.

    Args:
        url: Article URL
        timeout: Timeout in seconds
        user_agent: User agent header

    Returns:
        Cleaned article text
    """
    async with ArticleFetcher(timeout=timeout, user_agent=user_agent) as fetcher:
        return await fetcher.fetch_article_text(url)

