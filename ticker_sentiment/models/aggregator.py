"""Reduce classified posts to counts, a mean score and one label."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from ticker_sentiment.errors import EmptyInputError
from ticker_sentiment.schemas.sentiment import ClassifiedPost, SentimentAggregate, SentimentLabel


def majority_label(bullish: int, neutral: int, bearish: int) -> SentimentLabel:
    """Strict-majority label.

    A side wins only when its count exceeds both other counts. Ties of any
    kind, and neutral dominance, resolve to ``neutral``.
    """
    if bullish > bearish and bullish > neutral:
        return "bullish"
    if bearish > bullish and bearish > neutral:
        return "bearish"
    return "neutral"


def aggregate(posts: Sequence[ClassifiedPost], *, include_score: bool = True) -> SentimentAggregate:
    """Aggregate classified posts.

    Args:
        posts: Classified posts for a single ticker.
        include_score: When False, ``overallScore`` is left null.

    Raises:
        EmptyInputError: if ``posts`` is empty.
    """
    if not posts:
        raise EmptyInputError("No posts to aggregate.")

    counts = Counter(post.label for post in posts)
    bullish = counts["bullish"]
    neutral = counts["neutral"]
    bearish = counts["bearish"]

    overall_score = None
    if include_score:
        overall_score = sum(post.score for post in posts) / len(posts)

    return SentimentAggregate(
        tweetCount=bullish + neutral + bearish,
        bullishCount=bullish,
        neutralCount=neutral,
        bearishCount=bearish,
        overallScore=overall_score,
        label=majority_label(bullish, neutral, bearish),
    )
