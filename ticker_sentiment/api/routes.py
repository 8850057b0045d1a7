"""API routes."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from ticker_sentiment.api.deps import LexiconDep, PipelineDep
from ticker_sentiment.config import ClassifierStrategy
from ticker_sentiment.errors import ValidationError
from ticker_sentiment.models.classifier import build_classifier, parse_platform_tag
from ticker_sentiment.models.ticker import is_valid_ticker, parse_tickers
from ticker_sentiment.schemas.sentiment import (
    AggregateResult,
    ClassifiedPost,
    ClassifyRequest,
    PortfolioSentimentResponse,
    RawPost,
    TickerParseRequest,
    TickerParseResponse,
)

router = APIRouter()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/sentiment", response_model=AggregateResult)
async def ticker_sentiment(
    request: Request,
    pipeline: PipelineDep,
    ticker: Annotated[str | None, Query(description="Ticker symbol, e.g. AAPL or $aapl")] = None,
    limit: Annotated[int | None, Query(description="Maximum number of posts to fetch")] = None,
    strategy: Annotated[ClassifierStrategy | None, Query(description="Classifier strategy")] = None,
) -> AggregateResult:
    """Aggregate social sentiment for one ticker."""
    return await pipeline.aggregate(
        ticker or "",
        limit,
        strategy=strategy,
        should_cancel=request.is_disconnected,
        request_id=_request_id(request),
    )


@router.get("/portfolio/sentiment", response_model=PortfolioSentimentResponse)
async def portfolio_sentiment(
    request: Request,
    pipeline: PipelineDep,
    tickers: Annotated[str, Query(description="Ticker list separated by spaces, commas, semicolons or pipes")] = "",
    limit: Annotated[int | None, Query()] = None,
    strategy: Annotated[ClassifierStrategy | None, Query()] = None,
) -> PortfolioSentimentResponse:
    """Aggregate sentiment for every ticker of a portfolio list."""
    symbols = parse_tickers(tickers)
    if not symbols:
        raise ValidationError("tickers is required", request_id=_request_id(request))
    entries = await pipeline.aggregate_many(
        symbols,
        limit,
        strategy=strategy,
        should_cancel=request.is_disconnected,
        request_id=_request_id(request),
    )
    return PortfolioSentimentResponse(tickers=symbols, entries=entries)


@router.post("/classify", response_model=ClassifiedPost)
async def classify_text(body: ClassifyRequest, lexicon: LexiconDep) -> ClassifiedPost:
    """Classify a single post body."""
    classifier = build_classifier(body.strategy or "lexicon", lexicon)
    post = RawPost(id="adhoc", text=body.text, platformTag=parse_platform_tag(body.platformTag))
    return classifier.classify(post)


@router.post("/tickers/parse", response_model=TickerParseResponse)
async def parse_ticker_list(body: TickerParseRequest) -> TickerParseResponse:
    """Split a free-form portfolio list into normalized tickers."""
    tickers = parse_tickers(body.raw)
    return TickerParseResponse(
        tickers=[symbol for symbol in tickers if is_valid_ticker(symbol)],
        rejected=[symbol for symbol in tickers if not is_valid_ticker(symbol)],
    )


@router.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "ticker-sentiment"}
