"""
FastAPI main application for the news analysis client.
Provides REST API endpoints for news search, fake-news signals, sentiment and translation.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from newsscope import __version__
from newsscope.utils.config import settings
from newsscope.utils.errors import (
    ConfigurationError,
    InvalidSelectionError,
    NewsAPIError,
    NewsScopeError,
)
from newsscope.scraper.news_scraper import NewsArticle
from newsscope.orchestrator import NewsAnalysisOrchestrator, get_orchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Pydantic models for API requests and responses
class ArticleModel(BaseModel):
    """A news article as exchanged over the API."""
    title: str = Field(..., description="Headline")
    url: str = Field(default="", description="Article URL")
    content: str = Field(default="", description="Snippet returned by the search API")
    source_name: Optional[str] = Field(default=None, description="Publisher name")
    published_at: Optional[datetime] = Field(default=None, description="Publication time")
    full_content: str = Field(default="", description="Scraped full text, if already known")

    def to_article(self) -> NewsArticle:
        return NewsArticle(
            title=self.title,
            content=self.content,
            url=self.url,
            source=self.source_name,
            published_at=self.published_at,
            full_content=self.full_content
        )

    @classmethod
    def from_article(cls, article: NewsArticle) -> "ArticleModel":
        return cls(
            title=article.title,
            url=article.url,
            content=article.content,
            source_name=article.source,
            published_at=article.published_at,
            full_content=article.full_content
        )


class ArticleListResponse(BaseModel):
    """Response model for search results."""
    total_results: int
    articles: List[ArticleModel]


class FakeNewsRequestModel(BaseModel):
    """Request model for clickbait and similarity analysis."""
    articles: List[ArticleModel] = Field(..., description="Articles to analyze, in order")
    method: str = Field(default="nlp", description="Analysis method: openai or nlp")


class FakeNewsResponseModel(BaseModel):
    """Response model for clickbait and similarity analysis."""
    analysis: str
    method: str
    rows: List[Dict[str, Any]]
    overall_similarity: Optional[float] = None
    notes: List[str] = Field(default_factory=list)


class SentimentRequestModel(BaseModel):
    """Request model for batch sentiment analysis."""
    articles: List[ArticleModel] = Field(..., description="Articles to score")
    method: str = Field(default="lexicon", description="Sentiment method: openai or lexicon")
    text_column: str = Field(default="content", description="Article field to score")


class TranslateRequestModel(BaseModel):
    """Request model for search-and-translate."""
    search_method: str = Field(default="everything", description="everything or top-headlines")
    keyword: Optional[str] = Field(default=None, description="Keyword for the everything search")
    from_date: Optional[str] = Field(default=None, description="Oldest article date (YYYY-MM-DD)")
    to_date: Optional[str] = Field(default=None, description="Newest article date (YYYY-MM-DD)")
    sort_by: Optional[str] = Field(default="relevancy", description="Sort order")
    category: Optional[str] = Field(default=None, description="Category for top headlines")
    index: int = Field(..., description="1-based position of the article to translate")
    target_language: str = Field(..., description="Language to translate into")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    news_api_configured: bool
    openai_configured: bool
    timestamp: datetime


# Application lifecycle
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting news analysis API...")
    if not settings.NEWS_API_KEY:
        logger.warning("NEWS_API_KEY is not set; search endpoints will fail")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; only local analysis methods are available")

    yield

    logger.info("Shutting down news analysis API...")


# Create FastAPI application
app = FastAPI(
    title="News Scope API",
    description="News search with sentiment, clickbait and similarity analysis",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "News Scope API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> HealthResponse:
    """Report which external services are configured."""
    news_configured = bool(orchestrator.config.NEWS_API_KEY)
    openai_configured = bool(orchestrator.config.OPENAI_API_KEY)

    return HealthResponse(
        status="healthy" if news_configured else "degraded",
        news_api_configured=news_configured,
        openai_configured=openai_configured,
        timestamp=datetime.now()
    )


@app.get("/search", response_model=ArticleListResponse)
async def search_articles(
    keyword: str = Query(..., description="Search term"),
    from_date: Optional[str] = Query(default=None, description="Oldest article date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(default=None, description="Newest article date (YYYY-MM-DD)"),
    sort_by: Optional[str] = Query(default=None, description="relevancy, popularity or publishedAt"),
    language: str = Query(default="en", description="Article language"),
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> ArticleListResponse:
    """
    Search all articles matching a keyword.
    """
    if not keyword.strip():
        raise HTTPException(status_code=400, detail="Keyword cannot be empty")

    articles = await orchestrator.search_news(
        keyword.strip(),
        from_date=from_date,
        to_date=to_date,
        sort_by=sort_by,
        language=language
    )
    return ArticleListResponse(
        total_results=len(articles),
        articles=[ArticleModel.from_article(article) for article in articles]
    )


@app.get("/headlines", response_model=ArticleListResponse)
async def get_headlines(
    category: Optional[str] = Query(default=None, description="Headline category"),
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> ArticleListResponse:
    """
    Get live top headlines.
    """
    articles = await orchestrator.top_headlines(category=category)
    return ArticleListResponse(
        total_results=len(articles),
        articles=[ArticleModel.from_article(article) for article in articles]
    )


async def _run_fake_news(
    analysis: str,
    request: FakeNewsRequestModel,
    orchestrator: NewsAnalysisOrchestrator
) -> FakeNewsResponseModel:
    if not request.articles:
        raise HTTPException(status_code=400, detail="At least one article is required")

    result = await orchestrator.detect_fake_news(
        [article.to_article() for article in request.articles],
        analysis=analysis,
        method=request.method
    )
    return FakeNewsResponseModel(
        analysis=result.analysis,
        method=result.method,
        rows=result.table.to_dict(orient="records"),
        overall_similarity=result.similarity.overall_similarity if result.similarity else None,
        notes=result.notes
    )


@app.post("/clickbait", response_model=FakeNewsResponseModel)
async def detect_clickbait(
    request: FakeNewsRequestModel,
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> FakeNewsResponseModel:
    """
    Label each headline as clickbait or not.
    """
    return await _run_fake_news("clickbait", request, orchestrator)


@app.post("/similarity", response_model=FakeNewsResponseModel)
async def analyze_similarity(
    request: FakeNewsRequestModel,
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> FakeNewsResponseModel:
    """
    Score how similar each article is to the rest of the batch.
    """
    return await _run_fake_news("similarity", request, orchestrator)


@app.post("/sentiment", response_model=Dict[str, Any])
async def analyze_sentiment(
    request: SentimentRequestModel,
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """
    Score the sentiment of each article.
    """
    if not request.articles:
        raise HTTPException(status_code=400, detail="At least one article is required")

    table = await orchestrator.analyze_sentiment(
        [article.to_article() for article in request.articles],
        method=request.method,
        text_column=request.text_column
    )
    columns = [c for c in ("title", "sentiment_score", "sentiment_label", "sentiment_details") if c in table.columns]
    return {
        "method": request.method,
        "rows": table[columns].to_dict(orient="records")
    }


@app.post("/translate", response_model=Dict[str, Any])
async def translate_article(
    request: TranslateRequestModel,
    orchestrator: NewsAnalysisOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """
    Search for articles, pick one by position and translate it.
    """
    translation = await orchestrator.search_and_translate(
        index=request.index,
        target_language=request.target_language,
        search_method=request.search_method,
        keyword=request.keyword,
        from_date=request.from_date,
        to_date=request.to_date,
        sort_by=request.sort_by,
        category=request.category
    )
    return {
        "target_language": request.target_language,
        "translation": translation
    }


def _error_response(status_code: int, detail: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": detail,
            "status_code": status_code,
            "timestamp": datetime.now().isoformat()
        }
    )


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions."""
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request, exc):
    """Missing credentials are reported by name."""
    logger.error(f"Configuration error: {exc}")
    return _error_response(500, str(exc))


@app.exception_handler(InvalidSelectionError)
async def selection_exception_handler(request, exc):
    """Handle out-of-range choices."""
    return _error_response(400, str(exc))


@app.exception_handler(ValueError)
async def value_exception_handler(request, exc):
    """Handle invalid arguments."""
    return _error_response(400, str(exc))


@app.exception_handler(NewsAPIError)
async def news_api_exception_handler(request, exc):
    """Upstream news API failures."""
    logger.error(f"News API error: {exc}")
    return _error_response(502, str(exc))


@app.exception_handler(NewsScopeError)
async def newsscope_exception_handler(request, exc):
    """Other analysis failures."""
    logger.error(f"Analysis failed: {exc}")
    return _error_response(500, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    return _error_response(500, "Internal server error")


if __name__ == "__main__":
    uvicorn.run(
        "newsscope.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
