"""
Article translation using OpenAI chat models.
Translates a headline and summarizes the full article in a target language.
"""

import logging
from typing import Optional

from newsscope.ai.llm_client import LLMClient
from newsscope.scraper.cleaner import unescape_unicode
from newsscope.scraper.news_scraper import ArticleFetcher, NewsArticle

logger = logging.getLogger(__name__)


class ArticleTranslator:
    """
    Translates news articles with a language model.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        fetcher: ArticleFetcher,
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.2
    ):
        """
        Initialize the translator.

        Args:
            llm_client: Client used for the translation prompt
            fetcher: Open fetcher used to retrieve the article body
            model: Translation model
            temperature: Sampling temperature
        """
        self.llm_client = llm_client
        self.fetcher = fetcher
        self.model = model
        self.temperature = temperature

    async def translate_article(self, article: NewsArticle, target_language: str) -> str:
        """
        Translate the title and summarize the body of an article.

        Args:
            article: Article to translate; its full text is fetched if missing
            target_language: Language name or code, e.g. "ko" or "French"

        Returns:
            Translated title and summary as returned by the model
        """
        if not target_language or not target_language.strip():
            raise ValueError("A target language is required")

        content = article.full_content
        if not content and article.url:
            content = await self.fetcher.fetch_article_text(article.url)
            article.full_content = content

        logger.info(f"Translating '{article.title[:60]}' into {target_language}")

        translation = await self.llm_client.complete(
            self._get_user_prompt(article.title, content, target_language),
            system_prompt=self._get_system_prompt(target_language),
            model=self.model,
            temperature=self.temperature
        )

        return unescape_unicode(translation)

    def _get_system_prompt(self, target_language: str) -> str:
        return (
            "You are a professional news translation assistant. Your task is to: "
            f"1) Translate the article title accurately into {target_language}. "
            "2) Read the full content of the article. "
            f"3) Create a concise summary (maximum 250 words) of the article in {target_language} "
            "that captures the main points and key information. "
            "The summary should maintain the professional tone of news reporting "
            "while omitting unnecessary details."
        )

    def _get_user_prompt(self, title: Optional[str], content: Optional[str], target_language: str) -> str:
        return (
            f"Translate the following news article's title and content into {target_language}:\n\n"
            f"Title: {title or ''}\n\n"
            f"Content: {content or ''}\n"
        )
