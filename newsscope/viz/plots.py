"""
Charts for sentiment-annotated article tables.
Each function returns a matplotlib Figure and never calls show().
"""

import logging
from collections import Counter
from typing import Optional

import pandas as pd
from matplotlib.figure import Figure
from wordcloud import WordCloud

from newsscope.scraper.cleaner import TextCleaner

logger = logging.getLogger(__name__)

LABEL_ORDER = ["Positive", "Neutral", "Negative"]


def plot_sentiment_distribution(articles: pd.DataFrame, label_column: str = "sentiment_label") -> Figure:
    """
    Bar chart of how many articles carry each sentiment label.

    Args:
        articles: Table with a sentiment label column
        label_column: Name of that column

    Returns:
        The figure
    """
    counts = articles[label_column].value_counts()
    labels = [label for label in LABEL_ORDER if label in counts.index]
    labels += [label for label in counts.index if label not in LABEL_ORDER]

    figure = Figure(figsize=(6, 4))
    ax = figure.subplots()
    ax.bar(labels, [int(counts[label]) for label in labels], color="skyblue")
    ax.set_title("Sentiment Distribution")
    ax.set_xlabel("Sentiment Label")
    ax.set_ylabel("Count")
    return figure


def plot_sentiment_over_time(
    articles: pd.DataFrame,
    date_column: str = "published_at",
    score_column: str = "sentiment_score"
) -> Optional[Figure]:
    """
    Line chart of the average sentiment score per publication day.

    Args:
        articles: Table with date and score columns
        date_column: Publication timestamp column
        score_column: Sentiment score column

    Returns:
        The figure, or None when no date in the column can be parsed
    """
    dates = pd.to_datetime(articles[date_column], errors="coerce", utc=True)
    if dates.isna().all():
        logger.warning("No valid dates found in the provided date column.")
        return None

    daily = (
        pd.DataFrame({"date": dates.dt.date, "score": articles[score_column]})
        .dropna(subset=["date"])
        .groupby("date")["score"]
        .mean()
    )

    figure = Figure(figsize=(8, 4))
    ax = figure.subplots()
    ax.plot(daily.index, daily.values, color="steelblue")
    ax.scatter(daily.index, daily.values, color="red")
    ax.set_title("Sentiment Evolution Over Time")
    ax.set_xlabel("Date")
    ax.set_ylabel("Average Sentiment Score")
    figure.autofmt_xdate()
    return figure


def word_frequencies(articles: pd.DataFrame, text_column: str = "content", max_words: int = 100) -> Counter:
    """Count non-stopword tokens across a text column."""
    cleaner = TextCleaner()
    counts = Counter()
    for text in articles[text_column].dropna():
        counts.update(cleaner.content_words(str(text)))
    return Counter(dict(counts.most_common(max_words)))




def plot_word_cloud(
    articles: pd.DataFrame,
    text_column: str = "content",
    max_words: int = 100
) -> Optional[Figure]:
    """
    Word cloud of the most frequent words in the text column.

    Args:
        articles: Table with a text column
        text_column: Column to count words in
        max_words: Maximum number of words drawn

    Returns:
        The figure, or None when the column has no words left after stop word removal
    """
    frequencies = word_frequencies(articles, text_column, max_words)
    if not frequencies:
        logger.warning("No words available for the word cloud.")
        return None

    cloud = WordCloud(
        width=800,
        height=400,
        background_color="white",
        max_words=max_words,
        colormap="Dark2"
    ).generate_from_frequencies(frequencies)

    figure = Figure(figsize=(8, 4))
    ax = figure.subplots()
    ax.imshow(cloud.to_array(), interpolation="bilinear")
    ax.axis("off")
    ax.set_title("Word Cloud")
    return figure
