"""
Configuration management for the news analysis client.
Handles environment variables, API credentials, and analysis limits.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # News API Configuration
    NEWS_API_KEY: Optional[str] = Field(default=None, description="News API key")
    NEWS_API_BASE_URL: str = Field(default="https://newsapi.org/v2", description="News API base URL")
    NEWS_API_COUNTRY: str = Field(default="us", description="Country used for top headlines")

    # AI Model Configuration
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini", description="Model for similarity, clickbait and sentiment")
    TRANSLATION_MODEL: str = Field(default="gpt-3.5-turbo", description="Model used for translations")
    TRANSLATION_TEMPERATURE: float = Field(default=0.2, description="Sampling temperature for translations")

    # Scraping Configuration
    REQUEST_TIMEOUT: int = Field(default=30, description="Timeout in seconds for a single HTTP or LLM call")
    FETCH_CONCURRENCY: int = Field(default=8, description="Concurrent article downloads")
    USER_AGENT: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        description="User agent for web scraping"
    )

    # Analysis Configuration
    SIMILARITY_MAX_ARTICLES: int = Field(default=25, description="Article cap for LLM similarity scoring")
    SIMILARITY_CONCURRENCY: int = Field(default=8, description="Concurrent pairwise LLM calls")
    SENTIMENT_DELAY: float = Field(default=2.0, description="Base delay in seconds between sentiment calls")
    SENTIMENT_MAX_RETRIES: int = Field(default=5, description="Retries for rate-limited sentiment calls")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def get_openai_config(config: Optional[Settings] = None) -> dict:
    """Get OpenAI configuration."""
    config = config or settings
    return {
        "api_key": config.OPENAI_API_KEY,
        "model": config.OPENAI_MODEL,
        "timeout": config.REQUEST_TIMEOUT,
    }


def get_news_api_config(config: Optional[Settings] = None) -> dict:
    """Get NewsAPI configuration."""
    config = config or settings
    return {
        "api_key": config.NEWS_API_KEY,
        "base_url": config.NEWS_API_BASE_URL,
        "country": config.NEWS_API_COUNTRY,
        "timeout": config.REQUEST_TIMEOUT,
    }


def get_scraping_config(config: Optional[Settings] = None) -> dict:
    """Get web scraping configuration."""
    config = config or settings
    return {
        "timeout": config.REQUEST_TIMEOUT,
        "user_agent": config.USER_AGENT,
        "concurrency": config.FETCH_CONCURRENCY,
    }


def get_analysis_config(config: Optional[Settings] = None) -> dict:
    """Get similarity and sentiment analysis limits."""
    config = config or settings
    return {
        "similarity_max_articles": config.SIMILARITY_MAX_ARTICLES,
        "similarity_concurrency": config.SIMILARITY_CONCURRENCY,
        "sentiment_delay": config.SENTIMENT_DELAY,
        "sentiment_max_retries": config.SENTIMENT_MAX_RETRIES,
        "translation_model": config.TRANSLATION_MODEL,
        "translation_temperature": config.TRANSLATION_TEMPERATURE,
    }
