"""
News Scope

A news-aggregation client that searches NewsAPI, scrapes full article
text, and scores the results for sentiment, clickbait and cross-article
similarity using either local NLP or an OpenAI language model.
"""

__version__ = "1.0.0"
__author__ = "News Scope Team"
__description__ = "News search, sentiment, clickbait and similarity analysis"
