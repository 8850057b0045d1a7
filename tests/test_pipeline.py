"""End-to-end pipeline: ingest, classify, aggregate, build."""

from __future__ import annotations

import pytest

from ticker_sentiment.config import Settings
from ticker_sentiment.errors import (
    EmptyInputError,
    NotFoundError,
    RequestCancelledError,
    UpstreamError,
    ValidationError,
)
from ticker_sentiment.models.aggregator import aggregate
from ticker_sentiment.models.lexicon import Lexicon
from ticker_sentiment.schemas.sentiment import ClassifiedPost, RawPost
from ticker_sentiment.services.pipeline import SentimentPipeline, build_result
from ticker_sentiment.services.stocktwits import StaticIngestor

LEXICON = Lexicon(overrides={"beats": 3, "rally": 3, "crash": -3, "fraud": -4})


def _tagged_posts() -> list[RawPost]:
    tags = ["bullish"] * 6 + ["bearish"] * 1 + [None] * 3
    return [RawPost(id=f"p{i}", text=f"post {i}", author=f"user{i}", platformTag=tag) for i, tag in enumerate(tags)]


class RecordingSource:
    """Post source that records calls and can fail on demand."""

    def __init__(self, posts: list[RawPost] | None = None, error: Exception | None = None) -> None:
        self.posts = posts or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def fetch_posts(self, ticker: str, limit: int) -> list[RawPost]:
        self.calls.append((ticker, limit))
        if self.error is not None:
            raise self.error
        return self.posts[:limit]


@pytest.mark.asyncio
async def test_tag_strategy_end_to_end() -> None:
    settings = Settings(classifier_strategy="platform_tag", tag_overall_score=False)
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts()}), LEXICON, settings)

    result = await pipeline.aggregate("$aapl", limit=10)

    assert result.ticker == "AAPL"
    assert result.strategy == "platform_tag"
    assert result.tweetCount == 10
    assert (result.bullishCount, result.bearishCount, result.neutralCount) == (6, 1, 3)
    assert result.label == "bullish"
    assert result.overallScore is None
    assert (result.bullishPct, result.neutralPct, result.bearishPct) == (60, 30, 10)
    assert [post.id for post in result.posts] == [f"p{i}" for i in range(10)]


@pytest.mark.asyncio
async def test_tag_strategy_can_report_sentinel_mean() -> None:
    settings = Settings(classifier_strategy="platform_tag", tag_overall_score=True)
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts()}), LEXICON, settings)

    result = await pipeline.aggregate("AAPL")

    assert result.overallScore == pytest.approx((6 - 1) / 10)


@pytest.mark.asyncio
async def test_lexicon_strategy_scores_text() -> None:
    posts = [
        RawPost(id="1", text="beats", author="a"),
        RawPost(id="2", text="rally", author="b", platformTag="bearish"),
        RawPost(id="3", text="fraud", author="c", platformTag="bullish"),
        RawPost(id="4", text="beats estimates but guidance for the next quarter looks soft", author="d"),
    ]
    pipeline = SentimentPipeline(StaticIngestor({"NVDA": posts}), LEXICON, Settings(classifier_strategy="lexicon"))

    result = await pipeline.aggregate("nvda")

    assert [post.label for post in result.posts] == ["bullish", "bullish", "bearish", "neutral"]
    assert (result.bullishCount, result.neutralCount, result.bearishCount) == (2, 1, 1)
    assert result.label == "bullish"
    assert result.overallScore == pytest.approx((3 + 3 - 4 + 0.3) / 4)


@pytest.mark.asyncio
async def test_strategy_argument_overrides_settings() -> None:
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts()}), LEXICON, Settings(classifier_strategy="lexicon"))

    result = await pipeline.aggregate("AAPL", strategy="platform_tag")

    assert result.strategy == "platform_tag"
    assert result.label == "bullish"


@pytest.mark.asyncio
async def test_hybrid_strategy_scores_only_untagged_posts() -> None:
    posts = [
        RawPost(id="1", text="crash", platformTag="bullish"),
        RawPost(id="2", text="crash"),
        RawPost(id="3", text="fraud"),
    ]
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": posts}), LEXICON, Settings(classifier_strategy="hybrid"))

    result = await pipeline.aggregate("AAPL")

    assert [post.score for post in result.posts] == [1.0, -3.0, -4.0]
    assert result.label == "bearish"
    assert result.overallScore is not None


@pytest.mark.asyncio
async def test_representative_posts_are_capped_in_source_order() -> None:
    posts = [RawPost(id=f"p{i:02d}", text="beats" if i % 2 else "crash") for i in range(25)]
    settings = Settings(classifier_strategy="lexicon", display_cap=20, max_post_limit=100)
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": posts}), LEXICON, settings)

    result = await pipeline.aggregate("AAPL", limit=25)

    assert result.tweetCount == 25
    assert len(result.posts) == 20
    assert [post.id for post in result.posts] == [f"p{i:02d}" for i in range(20)]


@pytest.mark.asyncio
async def test_parallel_classification_gives_same_result() -> None:
    posts = [RawPost(id=str(i), text=["beats", "crash", "flat"][i % 3]) for i in range(30)]
    sequential = SentimentPipeline(StaticIngestor({"AAPL": posts}), LEXICON, Settings(classifier_strategy="lexicon"))
    parallel = SentimentPipeline(
        StaticIngestor({"AAPL": posts}),
        LEXICON,
        Settings(classifier_strategy="lexicon", classify_workers=4),
    )

    assert (await parallel.aggregate("AAPL")).model_dump() == (await sequential.aggregate("AAPL")).model_dump()


@pytest.mark.asyncio
async def test_empty_fetch_raises_empty_input() -> None:
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": []}), LEXICON, Settings())

    with pytest.raises(EmptyInputError):
        await pipeline.aggregate("AAPL")


@pytest.mark.asyncio
async def test_bad_ticker_fails_before_fetch() -> None:
    source = RecordingSource(_tagged_posts())
    pipeline = SentimentPipeline(source, LEXICON, Settings())

    with pytest.raises(ValidationError):
        await pipeline.aggregate("")
    with pytest.raises(ValidationError):
        await pipeline.aggregate("NOT-A-TICKER")
    assert source.calls == []


@pytest.mark.asyncio
async def test_limit_is_bounded() -> None:
    source = RecordingSource(_tagged_posts())
    pipeline = SentimentPipeline(source, LEXICON, Settings(default_post_limit=30, max_post_limit=50))

    with pytest.raises(ValidationError):
        await pipeline.aggregate("AAPL", limit=0)
    with pytest.raises(ValidationError):
        await pipeline.aggregate("AAPL", limit=51)
    assert source.calls == []

    await pipeline.aggregate("AAPL")
    assert source.calls == [("AAPL", 30)]


@pytest.mark.parametrize("error", [NotFoundError("no data"), UpstreamError("transport failed")])
@pytest.mark.asyncio
async def test_ingestion_errors_propagate_unchanged(error: Exception) -> None:
    pipeline = SentimentPipeline(RecordingSource(error=error), LEXICON, Settings())

    with pytest.raises(type(error)) as exc_info:
        await pipeline.aggregate("AAPL")
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_cancellation_aborts_before_classification() -> None:
    checks: list[bool] = []

    async def cancelled() -> bool:
        checks.append(True)
        return True

    source = RecordingSource(_tagged_posts())
    pipeline = SentimentPipeline(source, LEXICON, Settings())

    with pytest.raises(RequestCancelledError) as exc_info:
        await pipeline.aggregate("AAPL", should_cancel=cancelled)
    assert exc_info.value.code == "REQUEST_CANCELLED"
    assert checks == [True]
    assert len(source.calls) == 1


@pytest.mark.asyncio
async def test_not_cancelled_runs_normally() -> None:
    async def not_cancelled() -> bool:
        return False

    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts()}), LEXICON, Settings())

    assert (await pipeline.aggregate("AAPL", should_cancel=not_cancelled)).label == "bullish"


@pytest.mark.asyncio
async def test_aggregate_many_isolates_failures() -> None:
    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts(), "MSFT": []}), LEXICON, Settings())

    entries = await pipeline.aggregate_many(["AAPL", "ZZZZ", "MSFT", "BRK.B"])

    assert [entry.ticker for entry in entries] == ["AAPL", "ZZZZ", "MSFT", "BRK.B"]
    assert entries[0].result is not None and entries[0].result.label == "bullish"
    assert [entry.error.code for entry in entries[1:] if entry.error] == ["NOT_FOUND", "EMPTY_INPUT", "VALIDATION_ERROR"]


@pytest.mark.asyncio
async def test_aggregate_many_stops_on_cancellation() -> None:
    async def cancelled() -> bool:
        return True

    pipeline = SentimentPipeline(StaticIngestor({"AAPL": _tagged_posts()}), LEXICON, Settings())

    with pytest.raises(RequestCancelledError):
        await pipeline.aggregate_many(["AAPL"], should_cancel=cancelled)


def test_build_result_percentages_sum_to_100() -> None:
    posts = [
        ClassifiedPost(id=str(i), score=0.0, label=label)
        for i, label in enumerate(["bullish", "neutral", "bearish"])
    ]
    result = build_result(
        ticker="AAPL",
        strategy="lexicon",
        summary=aggregate(posts),
        posts=posts,
        display_cap=20,
    )
    assert (result.bullishPct, result.neutralPct, result.bearishPct) == (33, 33, 34)
    assert result.label == "neutral"


def test_build_result_percentages_never_overflow() -> None:
    # 12.5% and 87.5% both round up.
    labels = ["bullish"] + ["neutral"] * 7
    posts = [ClassifiedPost(id=str(i), score=0.0, label=label) for i, label in enumerate(labels)]
    result = build_result(
        ticker="AAPL",
        strategy="lexicon",
        summary=aggregate(posts),
        posts=posts,
        display_cap=20,
    )
    assert (result.bullishPct, result.neutralPct, result.bearishPct) == (13, 87, 0)
    assert result.bullishPct + result.neutralPct + result.bearishPct == 100
