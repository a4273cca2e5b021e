"""
Test cases for pairwise similarity analysis.
"""

import asyncio
import re

import numpy as np
import pytest

from newsscope.ai.similarity import (
    LLMPairScorer,
    SimilarityEngine,
    SimilarityOutcome,
    SimilarityStrategy,
    VectorSpacePairScorer,
    aggregate_row_scores,
    build_scorer,
    compute_similarity,
    overall_similarity,
    parse_similarity_reply,
)
from newsscope.scraper.news_scraper import NewsArticle
from newsscope.utils.errors import LLMError, ResponseParseError

RATES_A = "The central bank raised interest rates by half a point to fight inflation."
RATES_B = "Interest rates were raised by the central bank to fight persistent inflation."
GARDEN = "Gardeners shared tips for growing tomatoes during a rainy summer."


def _articles(texts):
    return [
        NewsArticle(title=f"Article {i}", content="", url=f"https://example.com/{i}", full_content=text)
        for i, text in enumerate(texts)
    ]


def _article_id(text):
    return int(re.search(r"ID(\d+)", text).group(1))


def test_vector_space_ranks_related_articles_higher():
    """Two articles on the same story outscore an unrelated one."""
    report = asyncio.run(compute_similarity(_articles([RATES_A, RATES_B, GARDEN])))

    scores = report.similarity_scores
    assert report.strategy is SimilarityStrategy.VECTOR_SPACE
    assert scores[0] > scores[2]
    assert scores[1] > scores[2]
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_vector_space_matrix_shape():
    """The matrix is symmetric with a unit diagonal and values in [0, 1]."""
    report = asyncio.run(compute_similarity(_articles([RATES_A, RATES_B, GARDEN])))
    matrix = report.matrix

    assert matrix.shape == (3, 3)
    assert np.allclose(matrix, matrix.T)
    assert np.allclose(np.diag(matrix), 1.0)
    assert matrix.min() >= 0.0 and matrix.max() <= 1.0


def test_overall_is_mean_of_upper_triangle():
    report = asyncio.run(compute_similarity(_articles([RATES_A, RATES_B, GARDEN])))
    m = report.matrix
    expected = (m[0, 1] + m[0, 2] + m[1, 2]) / 3
    assert report.overall_similarity == pytest.approx(expected)
    assert list(report.to_frame()["overall_similarity"]) == [report.overall_similarity] * 3


def test_identical_articles_score_one():
    report = asyncio.run(compute_similarity(_articles([RATES_A, RATES_A])))
    assert report.similarity_scores == pytest.approx([1.0, 1.0])
    assert report.overall_similarity == pytest.approx(1.0)


def test_vector_space_keeps_zero_similarities():
    """Unrelated articles measure zero rather than missing."""
    report = asyncio.run(compute_similarity(_articles(["apples oranges", "trucks engines"])))
    assert report.similarity_scores == [0.0, 0.0]
    assert all(r.outcome is SimilarityOutcome.MEASURED_ZERO for r in report.results)
    assert all(r.valid_comparisons == 1 for r in report.results)


def test_vector_space_empty_texts():
    """Texts with nothing left after cleaning score zero."""
    report = asyncio.run(compute_similarity(_articles(["", "the and of"])))
    assert report.similarity_scores == [0.0, 0.0]
    assert report.overall_similarity == 0.0


def test_single_article():
    report = asyncio.run(compute_similarity(_articles([RATES_A])))
    assert report.similarity_scores == [0.0]
    assert report.overall_similarity == 0.0
    assert report.results[0].outcome is SimilarityOutcome.NO_DATA


def test_empty_batch_rejected():
    with pytest.raises(ValueError):
        asyncio.run(compute_similarity([]))


def test_falls_back_to_snippet_content():
    """Articles without full text are compared on their snippet."""
    articles = [
        {"title": "a", "content": RATES_A, "full_content": ""},
        {"title": "b", "content": RATES_B},
    ]
    report = asyncio.run(compute_similarity(articles))
    assert report.similarity_scores[0] > 0
    assert report.to_frame()["full_content"].tolist() == [RATES_A, RATES_B]


def test_rows_follow_input_order():
    report = asyncio.run(compute_similarity(_articles([GARDEN, RATES_A, RATES_B])))
    assert [r.title for r in report.results] == ["Article 0", "Article 1", "Article 2"]
    assert list(report.to_frame().columns) == ["title", "full_content", "similarity_score", "overall_similarity"]


def test_llm_scorer_caps_batch_and_counts_calls(fake_llm):
    """Only the first 25 articles are compared, once per unordered pair."""
    client = fake_llm(reply="0.5")
    texts = [f"Story ID{i}" for i in range(30)]
    engine = SimilarityEngine(LLMPairScorer(client))

    report = asyncio.run(engine.compute_similarity(_articles(texts)))

    assert len(report.results) == 25
    assert len(client.calls) == 300
    assert report.similarity_scores == pytest.approx([0.5] * 25)
    assert report.overall_similarity == pytest.approx(0.5)
    assert any("first 25 of 30" in note for note in report.notes)


def test_llm_prompt_wording(fake_llm):
    client = fake_llm(reply="0.9")
    asyncio.run(SimilarityEngine(LLMPairScorer(client)).compute_similarity(_articles(["first text", "second text"])))

    prompt = client.calls[0]["user_prompt"]
    assert prompt.startswith("Compare the following two news articles and rate their similarity from 0 to 1:")
    assert "Article 1: first text" in prompt
    assert "Article 2: second text" in prompt
    assert prompt.endswith("Return only a numerical value.")


def test_llm_failed_article_gets_no_data(fake_llm):
    """Every comparison involving one article fails; it scores 0 and the rest are unaffected."""
    def respond(prompt):
        if "ID2" in prompt:
            return LLMError("timeout")
        return "0.8"

    client = fake_llm(respond)
    report = asyncio.run(SimilarityEngine(LLMPairScorer(client)).compute_similarity(
        _articles([f"Story ID{i}" for i in range(4)])
    ))

    assert report.results[2].similarity_score == 0.0
    assert report.results[2].outcome is SimilarityOutcome.NO_DATA
    assert report.results[2].valid_comparisons == 0
    for i in (0, 1, 3):
        assert report.results[i].similarity_score == pytest.approx(0.8)
        assert report.results[i].valid_comparisons == 2
    assert report.missing_pairs == 3
    assert report.overall_similarity == pytest.approx(0.8)


def test_llm_zero_ratings_are_excluded_from_row_mean(fake_llm):
    """A rating of zero is treated like a failure when averaging."""
    def respond(prompt):
        ids = sorted(_article_id(part) for part in prompt.split("Article ")[1:])
        return "0" if ids == [0, 1] else "0.6"

    client = fake_llm(respond)
    report = asyncio.run(SimilarityEngine(LLMPairScorer(client)).compute_similarity(
        _articles([f"Story ID{i}" for i in range(3)])
    ))

    assert report.similarity_scores == pytest.approx([0.6, 0.6, 0.6])
    # The overall score still counts the zero
    assert report.overall_similarity == pytest.approx((0.0 + 0.6 + 0.6) / 3)


def test_llm_unparseable_reply_is_missing(fake_llm):
    client = fake_llm(reply="fairly similar")
    report = asyncio.run(SimilarityEngine(LLMPairScorer(client)).compute_similarity(
        _articles(["one", "two"])
    ))
    assert np.isnan(report.matrix[0, 1])
    assert report.similarity_scores == [0.0, 0.0]
    assert report.overall_similarity == 0.0


def test_llm_scorer_respects_concurrency():
    """No more than ``concurrency`` pairwise calls run at once."""
    state = {"active": 0, "peak": 0}

    class SlowClient:
        async def complete(self, prompt, model=None):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.001)
            state["active"] -= 1
            return "0.4"

    scorer = LLMPairScorer(SlowClient(), concurrency=3)
    matrix = asyncio.run(scorer.score_matrix([f"t{i}" for i in range(6)]))

    assert state["peak"] <= 3
    assert not np.isnan(matrix[np.triu_indices(6, k=1)]).any()
    assert np.allclose(matrix[np.triu_indices(6, k=1)], 0.4)


def test_parse_similarity_reply():
    assert parse_similarity_reply("0.75") == 0.75
    assert parse_similarity_reply(" 1 ") == 1.0
    assert parse_similarity_reply("```\n0.3\n```") == 0.3
    for bad in ("", "high", "1.5", "-0.2", "nan"):
        with pytest.raises(ResponseParseError):
            parse_similarity_reply(bad)


def test_aggregate_row_scores():
    nan = float("nan")
    matrix = np.array([
        [nan, 0.0, 0.4],
        [0.0, nan, nan],
        [0.4, nan, nan],
    ])

    scores, counts = aggregate_row_scores(matrix, drop_non_positive=True)
    assert scores.tolist() == pytest.approx([0.4, 0.0, 0.4])
    assert counts.tolist() == [1, 0, 1]

    scores, counts = aggregate_row_scores(matrix, drop_non_positive=False)
    assert scores.tolist() == pytest.approx([0.2, 0.0, 0.4])
    assert counts.tolist() == [2, 1, 1]


def test_overall_similarity_ignores_missing():
    nan = float("nan")
    matrix = np.array([
        [1.0, 0.2, nan],
        [0.2, 1.0, 0.6],
        [nan, 0.6, 1.0],
    ])
    assert overall_similarity(matrix) == pytest.approx(0.4)
    assert overall_similarity(np.ones((1, 1))) == 0.0


def test_build_scorer():
    assert isinstance(build_scorer("nlp"), VectorSpacePairScorer)
    with pytest.raises(ValueError):
        build_scorer("openai")
    with pytest.raises(ValueError):
        build_scorer("telepathy")
