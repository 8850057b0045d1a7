"""Sentiment aggregation pipeline: fetch, classify, aggregate, build."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence

from ticker_sentiment.config import ClassifierStrategy, Settings, get_settings
from ticker_sentiment.errors import RequestCancelledError, SentimentAPIError, ValidationError
from ticker_sentiment.models.aggregator import aggregate
from ticker_sentiment.models.classifier import build_classifier, classify_posts
from ticker_sentiment.models.lexicon import Lexicon
from ticker_sentiment.models.ticker import normalize_ticker
from ticker_sentiment.observability import log_pipeline_event
from ticker_sentiment.schemas.sentiment import (
    AggregateResult,
    ClassifiedPost,
    ErrorBody,
    PortfolioEntry,
    SentimentAggregate,
)
from ticker_sentiment.services.stocktwits import PostSource

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], Awaitable[bool]]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percentages(summary: SentimentAggregate) -> tuple[int, int, int]:
    total = summary.tweetCount
    if not total:
        return 0, 0, 0
    bullish = _round_half_up(summary.bullishCount * 100 / total)
    neutral = _round_half_up(summary.neutralCount * 100 / total)
    overflow = bullish + neutral - 100
    if overflow > 0:
        if bullish >= neutral:
            bullish -= overflow
        else:
            neutral -= overflow
    return bullish, neutral, 100 - bullish - neutral


def build_result(
    *,
    ticker: str,
    strategy: ClassifierStrategy,
    summary: SentimentAggregate,
    posts: Sequence[ClassifiedPost],
    display_cap: int,
) -> AggregateResult:
    """Assemble the response for one ticker.

    Posts keep source order and are cut to ``display_cap``. Bullish and
    neutral percentages are rounded; bearish takes the remainder. When both
    round up past 100 the overflow comes off the larger of the two, so the
    three always sum to 100.
    """
    bullish_pct, neutral_pct, bearish_pct = _percentages(summary)
    return AggregateResult(
        **summary.model_dump(),
        ticker=ticker,
        strategy=strategy,
        bullishPct=bullish_pct,
        neutralPct=neutral_pct,
        bearishPct=bearish_pct,
        posts=list(posts[: max(0, display_cap)]),
    )


class SentimentPipeline:
    """Runs one ticker through ingestion, classification and aggregation.

    The lexicon is built once by the caller and shared across requests.
    """

    def __init__(
        self,
        source: PostSource,
        lexicon: Lexicon,
        settings: Settings | None = None,
    ) -> None:
        self._source = source
        self._lexicon = lexicon
        self._settings = settings or get_settings()

    def _resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self._settings.default_post_limit
        if limit < 1 or limit > self._settings.max_post_limit:
            raise ValidationError(
                f"limit must be between 1 and {self._settings.max_post_limit}",
                details={"limit": limit},
            )
        return limit

    async def aggregate(
        self,
        ticker: str,
        limit: int | None = None,
        *,
        strategy: ClassifierStrategy | None = None,
        should_cancel: CancelCheck | None = None,
        request_id: str | None = None,
    ) -> AggregateResult:
        """Aggregate social sentiment for ``ticker``.

        Raises:
            ValidationError: bad ticker or limit, before any fetch.
            NotFoundError, UpstreamError: propagated from the post source.
            RequestCancelledError: ``should_cancel`` fired before classification.
            EmptyInputError: the source returned no posts.
        """
        symbol = normalize_ticker(ticker)
        resolved_limit = self._resolve_limit(limit)
        classifier = build_classifier(strategy or self._settings.classifier_strategy, self._lexicon)

        try:
            posts = await self._source.fetch_posts(symbol, resolved_limit)
        except SentimentAPIError as exc:
            log_pipeline_event(
                logger,
                level=logging.WARNING,
                message="Post ingestion failed.",
                request_id=request_id,
                component="pipeline",
                operation="fetch_failed",
                ticker=symbol,
                status_code=exc.status_code,
                errorCode=exc.code,
            )
            raise
        log_pipeline_event(
            logger,
            level=logging.INFO,
            message="Fetched posts.",
            request_id=request_id,
            component="pipeline",
            operation="fetch_completed",
            ticker=symbol,
            postCount=len(posts),
        )

        if should_cancel is not None and await should_cancel():
            log_pipeline_event(
                logger,
                level=logging.INFO,
                message="Request cancelled before classification.",
                request_id=request_id,
                component="pipeline",
                operation="cancelled",
                ticker=symbol,
            )
            raise RequestCancelledError(f"Request for ${symbol} was cancelled.", request_id=request_id)

        workers = self._settings.classify_workers
        if workers > 1:
            classified = await asyncio.to_thread(classify_posts, classifier, posts, workers=workers)
        else:
            classified = classify_posts(classifier, posts)

        summary = aggregate(
            classified,
            include_score=classifier.produces_scores or self._settings.tag_overall_score,
        )
        log_pipeline_event(
            logger,
            level=logging.INFO,
            message="Aggregated sentiment.",
            request_id=request_id,
            component="pipeline",
            operation="aggregate_completed",
            ticker=symbol,
            strategy=classifier.name,
            label=summary.label,
            bullishCount=summary.bullishCount,
            neutralCount=summary.neutralCount,
            bearishCount=summary.bearishCount,
        )
        return build_result(
            ticker=symbol,
            strategy=classifier.name,
            summary=summary,
            posts=classified,
            display_cap=self._settings.display_cap,
        )

    async def aggregate_many(
        self,
        tickers: Sequence[str],
        limit: int | None = None,
        *,
        strategy: ClassifierStrategy | None = None,
        should_cancel: CancelCheck | None = None,
        request_id: str | None = None,
    ) -> list[PortfolioEntry]:
        """Aggregate each ticker in turn; per-ticker failures become error entries.

        Cancellation aborts the whole batch.
        """
        entries: list[PortfolioEntry] = []
        for ticker in tickers:
            try:
                result = await self.aggregate(
                    ticker,
                    limit,
                    strategy=strategy,
                    should_cancel=should_cancel,
                    request_id=request_id,
                )
            except RequestCancelledError:
                raise
            except SentimentAPIError as exc:
                entries.append(PortfolioEntry(ticker=ticker, error=ErrorBody(**exc.to_error())))
                continue
            entries.append(PortfolioEntry(ticker=result.ticker, result=result))
        return entries
