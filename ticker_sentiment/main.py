"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from ticker_sentiment.api.deps import get_lexicon
from ticker_sentiment.api.routes import router as sentiment_router
from ticker_sentiment.config import get_settings
from ticker_sentiment.errors import (
    SentimentAPIError,
    request_validation_error_handler,
    sentiment_api_error_handler,
    unhandled_error_handler,
)
from ticker_sentiment.observability import log_request_event, request_log_fields

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Build the shared lexicon before the first request is served.
    lexicon = get_lexicon()
    logger.info("Lexicon ready with %d entries", len(lexicon))
    yield


app = FastAPI(
    title="Ticker Sentiment API",
    description="Social-sentiment aggregation for stock tickers",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "https://*.vercel.app"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _is_api_request(path: str) -> bool:
    return path.startswith("/api/")


@app.middleware("http")
async def observability_context_middleware(request: Request, call_next):
    """Attach a request correlation id and emit structured request logs."""
    request.state.request_id = request.headers.get("X-Request-Id") or f"req-{uuid4()}"
    if _is_api_request(request.url.path):
        log_request_event(
            logger,
            level=logging.INFO,
            message="API request started.",
            request=request,
            component="api",
            operation="request_started",
            method=request.method,
        )

    response = await call_next(request)
    response.headers["X-Request-Id"] = request.state.request_id

    if _is_api_request(request.url.path):
        log_request_event(
            logger,
            level=logging.INFO,
            message="API request completed.",
            request=request,
            component="api",
            operation="request_completed",
            status_code=response.status_code,
            method=request.method,
        )
    return response


@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next):
    """Apply the error envelope to unexpected failures on API routes."""
    try:
        return await call_next(request)
    except Exception as exc:
        if _is_api_request(request.url.path):
            logger.exception(
                "Unhandled exception for API request %s",
                request.url.path,
                extra=request_log_fields(
                    request=request,
                    component="api",
                    operation="request_failed_unhandled",
                ),
            )
            return await unhandled_error_handler(request, exc)
        raise


app.include_router(sentiment_router, prefix="/api")

app.add_exception_handler(SentimentAPIError, sentiment_api_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Ticker Sentiment API", "status": "running"}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ticker_sentiment.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
