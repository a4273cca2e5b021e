"""
Test cases for article fetching and paragraph extraction.
"""

import asyncio

import pytest

from newsscope.scraper.news_scraper import (
    ArticleFetcher,
    NewsArticle,
    articles_to_frame,
    extract_article_text,
    fetch_article_text,
    normalize_url,
)
from newsscope.utils.errors import FetchError

PAGE = """
<html><body>
<h1>Headline</h1>
<p>Stocks rose sharply on Monday.</p>
<div>Advertisement</div>
<p>Investors cheered the news. Analysts were cautious.</p>
<p>Subscribe to our newsletter. Follow us online.</p>
</body></html>
"""


def test_normalize_url():
    """JSON escapes are undone."""
    assert normalize_url("https://x.com/a?id\\u003d5") == "https://x.com/a?id=5"
    assert normalize_url("https:\\/\\/x.com\\/a") == "https://x.com/a"


def test_extract_article_text():
    """Only paragraph text is kept, without the trailing two sentences."""
    text = extract_article_text(PAGE)
    assert text == "Stocks rose sharply on Monday. Investors cheered the news. Analysts were cautious."
    assert "Advertisement" not in text


def test_extract_article_text_without_paragraphs():
    assert extract_article_text("<html><body><div>No paragraphs</div></body></html>") == ""


def test_fetch_article_text(monkeypatch):
    """Fetching normalizes the URL before downloading."""
    requested = []

    async def fake_download(self, url):
        requested.append(url)
        return PAGE

    monkeypatch.setattr(ArticleFetcher, "_download", fake_download)

    async def run():
        async with ArticleFetcher() as fetcher:
            return await fetcher.fetch_article_text("https://x.com/a?id\\u003d5")

    text = asyncio.run(run())
    assert requested == ["https://x.com/a?id=5"]
    assert text.startswith("Stocks rose sharply")


def test_fetch_full_contents_isolates_failures(monkeypatch):
    """One failed download leaves an empty string and does not affect the rest."""
    async def fake_download(self, url):
        if "bad" in url:
            raise FetchError(url, "HTTP 404")
        await asyncio.sleep(0.01 if "slow" in url else 0)
        return f"<p>Body of {url}</p>"

    monkeypatch.setattr(ArticleFetcher, "_download", fake_download)

    articles = [
        NewsArticle(title="a", content="", url="https://slow.example/a"),
        NewsArticle(title="b", content="", url="https://bad.example/b"),
        NewsArticle(title="c", content="", url="https://ok.example/c"),
    ]

    async def run():
        async with ArticleFetcher() as fetcher:
            return await fetcher.fetch_full_contents(articles, concurrency=2)

    texts = asyncio.run(run())
    assert texts == ["Body of https://slow.example/a", "", "Body of https://ok.example/c"]
    assert [a.full_content for a in articles] == texts


def test_download_requires_context_manager():
    fetcher = ArticleFetcher()
    with pytest.raises(RuntimeError, match="async context manager"):
        asyncio.run(fetcher._download("https://example.com"))


def test_fetch_error_message():
    error = FetchError("https://example.com", "HTTP 500")
    assert str(error) == "Failed to fetch https://example.com: HTTP 500"


def test_module_fetch_article_text(monkeypatch):
    """The module-level helper opens its own fetcher and returns cleaned text."""
    async def fake_download(self, url):
        assert self.session is not None
        return PAGE

    monkeypatch.setattr(ArticleFetcher, "_download", fake_download)

    text = asyncio.run(fetch_article_text("https://example.com/story", timeout=5))
    assert text == "Stocks rose sharply on Monday. Investors cheered the news. Analysts were cautious."


def test_articles_to_frame():
    frame = articles_to_frame([
        NewsArticle(title="t", content="c", url="u", source="s", full_content="full"),
    ])
    assert list(frame.columns) == ["title", "content", "url", "source_name", "published_at", "full_content"]
    assert frame.iloc[0]["source_name"] == "s"
    assert frame.iloc[0]["full_content"] == "full"

    empty = articles_to_frame([])
    assert len(empty) == 0
    assert "title" in empty.columns
