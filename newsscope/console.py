"""
Interactive console entry point.

Each subcommand runs a search, then asks which analysis to perform:

    newsscope fake-news --keyword Apple --from 2025-03-01 --to 2025-03-11
    newsscope translate --search-method top-headlines --category business
    newsscope sentiment --keyword climate --method lexicon --output-dir plots
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from newsscope.utils.errors import InvalidSelectionError, NewsScopeError
from newsscope.scraper.news_scraper import NewsArticle
from newsscope.orchestrator import NewsAnalysisOrchestrator, get_orchestrator, select_article
from newsscope.viz.plots import (
    plot_sentiment_distribution,
    plot_sentiment_over_time,
    plot_word_cloud,
)

logger = logging.getLogger(__name__)

# Number of search results listed before asking which one to translate
MAX_LISTED_ARTICLES = 20


def prompt_choice(prompt: str, count: int) -> int:
    """
    Ask for a numbered menu choice.

    Args:
        prompt: Prompt text
        count: Number of options, numbered from 1

    Returns:
        The chosen option number

    Raises:
        InvalidSelectionError: If the answer is not a listed number
    """
    answer = input(prompt).strip()
    try:
        choice = int(answer)
    except ValueError:
        choice = 0
    if not 1 <= choice <= count:
        options = ", ".join(str(i) for i in range(1, count)) + f" or {count}"
        raise InvalidSelectionError(f"Invalid choice. Please enter {options}.")
    return choice


def add_search_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--search-method", choices=["everything", "top-headlines"], default="everything")
    parser.add_argument("--keyword", help="Search term for the everything endpoint")
    parser.add_argument("--from", dest="from_date", help="Oldest article date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="to_date", help="Newest article date (YYYY-MM-DD)")
    parser.add_argument("--sort-by", default="relevancy", help="relevancy, popularity or publishedAt")
    parser.add_argument("--category", help="Category for top headlines")


async def fetch_articles(orchestrator: NewsAnalysisOrchestrator, args: argparse.Namespace) -> List[NewsArticle]:
    return await orchestrator.find_articles(
        search_method=args.search_method,
        keyword=args.keyword,
        from_date=args.from_date,
        to_date=args.to_date,
        sort_by=args.sort_by,
        category=args.category
    )


async def run_fake_news(orchestrator: NewsAnalysisOrchestrator, args: argparse.Namespace) -> pd.DataFrame:
    """Prompt for the analysis and method, then run it."""
    articles = await fetch_articles(orchestrator, args)

    print("Choose the type of fake news detection analysis:")
    print("1: Clickbait Detection")
    print("2: Similarity Analysis")
    analysis = ("clickbait", "similarity")[prompt_choice("Enter 1 or 2: ", 2) - 1]

    print("\nChoose a Text Analysis Method:")
    print("1: OpenAI Advanced Language Model")
    print("2: Local NLP-based Analysis")
    method = ("openai", "nlp")[prompt_choice("Enter 1 or 2: ", 2) - 1]

    result = await orchestrator.detect_fake_news(articles, analysis, method)
    for note in result.notes:
        print(f"Note: {note}")

    columns = [c for c in result.table.columns if c != "full_content"]
    print(result.table[columns].to_string())
    if result.similarity is not None:
        print(f"\nOverall similarity: {result.similarity.overall_similarity:.3f}")
    return result.table


def list_articles(articles: List[NewsArticle]) -> None:
    print("==== Retrieved Articles ====")
    for position, article in enumerate(articles[:MAX_LISTED_ARTICLES], start=1):
        print(f"[{position}] {article.title or '(No title)'}")
        print(f"    Source: {article.source or '(No source)'}")
        print(f"    PublishedAt: {article.published_at or ''}\n")


async def run_translate(orchestrator: NewsAnalysisOrchestrator, args: argparse.Namespace) -> str:
    """List search results, ask for one and a language, and translate it."""
    articles = await fetch_articles(orchestrator, args)
    list_articles(articles)

    answer = input("Enter the article number to translate: ").strip()
    try:
        index = int(answer)
    except ValueError:
        raise InvalidSelectionError("Invalid article number.") from None
    # Only the listed articles can be chosen
    article = select_article(articles[:MAX_LISTED_ARTICLES], index)

    target_language = input("Enter the preferred language: ").strip()
    print("\nTranslating the article using OpenAI...")
    translation = await orchestrator.translate_article(article, target_language)

    print("\n==== Translation Result ====")
    print(translation)
    return translation


def save_plots(table: pd.DataFrame, output_dir: Path, text_column: str) -> List[Path]:
    """Ask which plot to render and save the chosen figures as PNG files."""
    print("Select which plot to display:")
    print("1: Sentiment Distribution (bar plot for sentiment labels)")
    print("2: Sentiment Evolution Over Time (line plot)")
    print("3: Word Cloud")
    print("4: All Plots")
    answer = input("Enter your choice (1-4): ").strip()

    builders = {
        "1": [("sentiment_distribution", lambda: plot_sentiment_distribution(table))],
        "2": [("sentiment_over_time", lambda: plot_sentiment_over_time(table))],
        "3": [("word_cloud", lambda: plot_word_cloud(table, text_column=text_column))],
    }
    builders["4"] = builders["1"] + builders["2"] + builders["3"]

    if answer not in builders:
        print("Invalid choice. No plot will be displayed.")
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    for name, build in builders[answer]:
        figure = build()
        if figure is None:
            continue
        path = output_dir / f"{name}.png"
        figure.savefig(path)
        saved.append(path)
        print(f"Saved {path}")
    return saved


async def run_sentiment(orchestrator: NewsAnalysisOrchestrator, args: argparse.Namespace) -> pd.DataFrame:
    """Score search results for sentiment and optionally save plots."""
    articles = await fetch_articles(orchestrator, args)
    table = await orchestrator.analyze_sentiment(articles, method=args.method, text_column=args.text_column)

    print(table[["title", "sentiment_score", "sentiment_label"]].to_string())
    if args.output_dir:
        save_plots(table, Path(args.output_dir), args.text_column)
    return table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search news and analyze sentiment, clickbait and similarity")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fake_news = subparsers.add_parser("fake-news", help="Clickbait detection or similarity analysis")
    add_search_arguments(fake_news)

    translate = subparsers.add_parser("translate", help="Translate and summarize one article")
    add_search_arguments(translate)

    sentiment = subparsers.add_parser("sentiment", help="Sentiment analysis of search results")
    add_search_arguments(sentiment)
    sentiment.add_argument("--method", choices=["openai", "lexicon"], default="openai")
    sentiment.add_argument("--text-column", default="content", help="Article field to score")
    sentiment.add_argument("--output-dir", help="Directory to save plots in; prompts for which plot")

    return parser


COMMANDS = {
    "fake-news": run_fake_news,
    "translate": run_translate,
    "sentiment": run_sentiment,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        asyncio.run(COMMANDS[args.command](get_orchestrator(), args))
    except (NewsScopeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
