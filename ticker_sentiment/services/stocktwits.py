"""Post sources: the Stocktwits symbol stream and an in-memory source."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import Any, Protocol
from uuid import uuid4

import httpx

from ticker_sentiment.config import Settings, get_settings
from ticker_sentiment.errors import NotFoundError, UpstreamError, ValidationError
from ticker_sentiment.models.classifier import parse_platform_tag
from ticker_sentiment.models.ticker import normalize_ticker
from ticker_sentiment.schemas.sentiment import RawPost

logger = logging.getLogger(__name__)


class PostSource(Protocol):
    """Anything that can produce raw posts for a normalized ticker."""

    async def fetch_posts(self, ticker: str, limit: int) -> list[RawPost]: ...


def _check_request(ticker: str, limit: int) -> str:
    symbol = normalize_ticker(ticker)
    if limit < 1:
        raise ValidationError("limit must be a positive integer", details={"limit": limit})
    return symbol


class StocktwitsIngestor:
    """Fetch recent messages from the Stocktwits symbol stream.

    GET {base_url}/streams/symbol/{TICKER}.json

    The stream returns ``{"messages": [...], "response": {"status": 200}}``.
    Each message carries ``id``, ``body``, ``user.username`` and, when the
    author tagged it, ``entities.sentiment.basic`` (``Bullish``/``Bearish``).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.stocktwits_base_url,
            timeout=httpx.Timeout(self._settings.stocktwits_timeout_seconds),
        )

    async def __aenter__(self) -> "StocktwitsIngestor":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

    async def fetch_posts(self, ticker: str, limit: int) -> list[RawPost]:
        """Return up to ``limit`` posts for ``ticker`` in stream order.

        Raises:
            ValidationError: bad ticker or limit; no request is made.
            NotFoundError: the stream has no data for the symbol.
            UpstreamError: transport failure or an unusable payload.
        """
        symbol = _check_request(ticker, limit)
        try:
            response = await self._client.get(f"/streams/symbol/{symbol}.json")
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Stocktwits request failed: {exc}",
                details={"ticker": symbol},
            ) from exc
        payload = self._parse_response(response, symbol)
        return self._to_posts(payload["messages"], symbol)[:limit]

    def _parse_response(self, response: httpx.Response, symbol: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            if response.status_code == 404:
                raise NotFoundError(f"No Stocktwits data found for ${symbol}") from exc
            raise UpstreamError(
                "Stocktwits returned a non-JSON payload.",
                details={"ticker": symbol, "statusCode": response.status_code},
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Stocktwits response must be an object.", details={"ticker": symbol})

        envelope = payload.get("response")
        envelope_status = envelope.get("status") if isinstance(envelope, dict) else None
        if response.status_code == 404 or envelope_status == 404:
            raise NotFoundError(f"No Stocktwits data found for ${symbol}", details={"ticker": symbol})

        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            message = first.get("message") if isinstance(first, dict) else None
            raise UpstreamError(
                str(message or "Stocktwits reported an error."),
                details={"ticker": symbol, "statusCode": response.status_code},
            )
        if response.status_code >= 400:
            raise UpstreamError(
                f"Stocktwits request failed with HTTP {response.status_code}.",
                details={"ticker": symbol, "statusCode": response.status_code},
            )

        messages = payload.get("messages")
        if messages is None:
            raise NotFoundError(f"No Stocktwits data found for ${symbol}", details={"ticker": symbol})
        if not isinstance(messages, list):
            raise UpstreamError("Stocktwits 'messages' must be a list.", details={"ticker": symbol})
        return payload

    @staticmethod
    def _to_posts(messages: list[Any], symbol: str) -> list[RawPost]:
        posts: list[RawPost] = []
        seen: set[str] = set()
        for message in messages:
            if not isinstance(message, dict):
                raise UpstreamError("Stocktwits message must be an object.", details={"ticker": symbol})
            raw_id = message.get("id")
            post_id = str(raw_id) if raw_id not in (None, "") else f"gen-{uuid4().hex}"
            if post_id in seen:
                logger.debug("Skipping duplicate Stocktwits message %s for %s", post_id, symbol)
                continue
            seen.add(post_id)

            user = message.get("user")
            entities = message.get("entities")
            sentiment = entities.get("sentiment") if isinstance(entities, dict) else None
            posts.append(
                RawPost(
                    id=post_id,
                    text=str(message.get("body") or ""),
                    author=str(user.get("username") or "") if isinstance(user, dict) else "",
                    platformTag=parse_platform_tag(sentiment.get("basic") if isinstance(sentiment, dict) else None),
                )
            )
        return posts


class StaticIngestor:
    """In-memory post source keyed by normalized ticker."""

    def __init__(self, posts: Mapping[str, Sequence[RawPost]]) -> None:
        self._posts = {normalize_ticker(ticker): list(items) for ticker, items in posts.items()}

    async def fetch_posts(self, ticker: str, limit: int) -> list[RawPost]:
        symbol = _check_request(ticker, limit)
        if symbol not in self._posts:
            raise NotFoundError(f"No data found for ${symbol}", details={"ticker": symbol})
        return self._posts[symbol][:limit]

    async def close(self) -> None:
        return None
