"""Ticker symbol normalization shared by every entry point."""

import re

from ticker_sentiment.errors import ValidationError

TICKER_PATTERN = re.compile(r"^[A-Z]{1,5}$")
TICKER_LIST_SEPARATORS = re.compile(r"[\s,;|]+")


def clean_ticker(raw: str) -> str:
    """Trim, drop one leading ``$`` and uppercase. Never raises.

    Non-ASCII input is returned without case folding, since ``str.upper``
    maps some of it onto ASCII letters (``"ß"`` becomes ``"SS"``).
    """
    value = raw.strip()
    if value.startswith("$"):
        value = value[1:].strip()
    if not value.isascii():
        return value
    return value.upper()


def is_valid_ticker(value: str) -> bool:
    return bool(TICKER_PATTERN.fullmatch(value))


def normalize_ticker(raw: str | None) -> str:
    """Return the canonical symbol for ``raw``.

    ``normalize_ticker("$aapl") == normalize_ticker(" AAPL ") == "AAPL"``.
    The result is a fixed point: normalizing it again returns it unchanged.

    Raises:
        ValidationError: if the input is empty or not 1-5 ASCII letters.
    """
    if raw is None or not raw.strip():
        raise ValidationError("ticker is required")
    value = clean_ticker(raw)
    if not is_valid_ticker(value):
        raise ValidationError(
            f"Invalid ticker {raw.strip()!r}: expected 1-5 letters with an optional leading '$'",
            details={"ticker": raw.strip()},
        )
    return value


def parse_tickers(raw: str) -> list[str]:
    """Split a free-form portfolio list into cleaned symbols.

    Separators are whitespace, comma, semicolon and pipe. Each piece gets the
    same cleaning as :func:`normalize_ticker`; empties and repeats are dropped
    while first-seen order is kept. Pieces are not validated here.
    """
    seen: set[str] = set()
    tickers: list[str] = []
    for part in TICKER_LIST_SEPARATORS.split(raw or ""):
        symbol = clean_ticker(part)
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        tickers.append(symbol)
    return tickers
