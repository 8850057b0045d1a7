"""Sentiment pipeline schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ticker_sentiment.config import ClassifierStrategy

SentimentLabel = Literal["bullish", "neutral", "bearish"]
PlatformTag = Literal["bullish", "bearish"]


class RawPost(BaseModel):
    """A short-form post as delivered by the post source."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = ""
    author: str = ""
    platformTag: PlatformTag | None = None


class ClassifiedPost(RawPost):
    """A RawPost with the polarity assigned by a classifier."""

    score: float
    label: SentimentLabel


class SentimentAggregate(BaseModel):
    """Counts, mean score and strict-majority label over classified posts."""

    model_config = ConfigDict(frozen=True)

    tweetCount: int = Field(..., ge=0)
    bullishCount: int = Field(..., ge=0)
    neutralCount: int = Field(..., ge=0)
    bearishCount: int = Field(..., ge=0)
    overallScore: float | None = Field(
        default=None,
        description="Mean per-post score. Null for platform_tag runs unless tag_overall_score is enabled.",
    )
    label: SentimentLabel


class AggregateResult(SentimentAggregate):
    """Response body for a single ticker."""

    ticker: str
    strategy: ClassifierStrategy
    bullishPct: int = Field(..., ge=0, le=100)
    neutralPct: int = Field(..., ge=0, le=100)
    bearishPct: int = Field(..., ge=0, le=100)
    posts: list[ClassifiedPost] = Field(
        default_factory=list, description="Representative posts in source order, truncated to the display cap"
    )


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, object] | None = None


class PortfolioEntry(BaseModel):
    """Outcome for one ticker of a portfolio request."""

    ticker: str
    result: AggregateResult | None = None
    error: ErrorBody | None = None


class PortfolioSentimentResponse(BaseModel):
    tickers: list[str]
    entries: list[PortfolioEntry]


class ClassifyRequest(BaseModel):
    """Ad-hoc classification of one post body."""

    text: str = Field(default="", max_length=10_000)
    platformTag: str | None = Field(default=None, description="Raw platform tag, e.g. Bullish/Bearish")
    strategy: ClassifierStrategy | None = None


class TickerParseRequest(BaseModel):
    raw: str = Field(..., description="Free-form ticker list, e.g. '$aapl, msft; NVDA'")


class TickerParseResponse(BaseModel):
    tickers: list[str]
    rejected: list[str] = Field(default_factory=list)
