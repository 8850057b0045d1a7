"""Pydantic schemas."""

from ticker_sentiment.schemas.sentiment import (
    AggregateResult,
    ClassifiedPost,
    ClassifyRequest,
    ErrorBody,
    PlatformTag,
    PortfolioEntry,
    PortfolioSentimentResponse,
    RawPost,
    SentimentAggregate,
    SentimentLabel,
    TickerParseRequest,
    TickerParseResponse,
)

__all__ = [
    "AggregateResult",
    "ClassifiedPost",
    "ClassifyRequest",
    "ErrorBody",
    "PlatformTag",
    "PortfolioEntry",
    "PortfolioSentimentResponse",
    "RawPost",
    "SentimentAggregate",
    "SentimentLabel",
    "TickerParseRequest",
    "TickerParseResponse",
]
