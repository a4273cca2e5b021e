"""
Test cases for the NewsAPI connector.
"""

import asyncio
from datetime import date, datetime, timezone

import pytest

from newsscope.scraper.api_connector import (
    MAX_ENCODED_QUERY_LENGTH,
    NewsAPIConnector,
)
from newsscope.utils.errors import ConfigurationError

RESPONSE = {
    "status": "ok",
    "totalResults": 3,
    "articles": [
        {
            "source": {"id": None, "name": "Example Times"},
            "author": "Jane Doe",
            "title": "Markets rally on earnings",
            "description": "Stocks climbed.",
            "url": "https://example.com/rally",
            "publishedAt": "2025-03-05T14:30:00Z",
            "content": "Stocks climbed on Wednesday [+1200 chars]",
        },
        {"title": None, "url": "https://example.com/untitled"},
        {
            "source": {"name": "Daily"},
            "title": "Rain expected",
            "url": "https://example.com/rain",
            "publishedAt": "not a date",
            "content": None,
        },
    ],
}


def _connector_recording(monkeypatch, response=RESPONSE):
    calls = []

    async def fake_get(self, endpoint, params):
        calls.append((endpoint, params))
        return response

    monkeypatch.setattr(NewsAPIConnector, "_get", fake_get)
    return NewsAPIConnector(api_key="test-key"), calls


def test_missing_key():
    with pytest.raises(ConfigurationError, match="NEWS_API_KEY is not set."):
        NewsAPIConnector(api_key=None)


def test_search_everything_params(monkeypatch):
    """Only provided optional parameters are sent."""
    connector, calls = _connector_recording(monkeypatch)

    asyncio.run(connector.search_everything("Apple"))
    asyncio.run(connector.search_everything(
        "Apple", from_date=date(2025, 3, 1), to_date="2025-03-11", sort_by="popularity"
    ))

    assert calls[0] == ("everything", {"q": "Apple", "language": "en"})
    assert calls[1] == ("everything", {
        "q": "Apple",
        "language": "en",
        "from": "2025-03-01",
        "to": "2025-03-11",
        "sortBy": "popularity",
    })


def test_search_everything_parses_articles(monkeypatch):
    connector, _ = _connector_recording(monkeypatch)
    articles = asyncio.run(connector.search_everything("markets"))

    assert [a.title for a in articles] == ["Markets rally on earnings", "Rain expected"]
    first = articles[0]
    assert first.source == "Example Times"
    assert first.author == "Jane Doe"
    assert first.published_at == datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc)
    assert first.full_content == ""
    assert articles[1].published_at is None
    assert articles[1].content == ""


def test_keyword_validation(monkeypatch):
    connector, calls = _connector_recording(monkeypatch)

    with pytest.raises(ValueError):
        asyncio.run(connector.search_everything("  "))

    # Spaces encode to three characters each
    long_keyword = " " * (MAX_ENCODED_QUERY_LENGTH // 3 + 1)
    with pytest.raises(ValueError, match="maximum length"):
        asyncio.run(connector.search_everything("a" + long_keyword))

    assert calls == []


def test_top_headlines_params(monkeypatch):
    connector, calls = _connector_recording(monkeypatch, response={"articles": []})

    assert asyncio.run(connector.get_top_headlines()) == []
    asyncio.run(connector.get_top_headlines(category="business"))

    assert calls == [
        ("top-headlines", {"country": "us"}),
        ("top-headlines", {"country": "us", "category": "business"}),
    ]


def test_get_requires_context_manager():
    connector = NewsAPIConnector(api_key="test-key")
    with pytest.raises(RuntimeError):
        asyncio.run(connector._get("everything", {}))

