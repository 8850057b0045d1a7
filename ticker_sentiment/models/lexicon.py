"""Financial sentiment lexicon.

The lexicon blends two layers:

* a base polarity table (VADER's word ratings, roughly -4..+4), and
* ``FINANCIAL_LEXICON``, hand-tuned weights for market slang and earnings
  vocabulary. Financial weights override base weights for the same token.

A :class:`Lexicon` is built once at startup and shared read-only by every
request; nothing mutates it after construction.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

logger = logging.getLogger(__name__)

# Base entries that can never be produced by the tokenizer (emoticons,
# hyphenated or apostrophe forms) are skipped.
_TOKEN_SHAPE = re.compile(r"[^\W_]+")

FINANCIAL_LEXICON: Mapping[str, int] = MappingProxyType(
    {
        # earnings / analyst actions
        "beat": 2,
        "beats": 3,
        "beating": 2,
        "miss": -3,
        "missed": -3,
        "misses": -3,
        "upgrade": 3,
        "upgraded": 3,
        "upgrades": 3,
        "downgrade": -3,
        "downgraded": -3,
        "downgrades": -3,
        "outperform": 3,
        "underperform": -3,
        "overweight": 2,
        "underweight": -2,
        "raised": 2,
        "raises": 2,
        "record": 2,
        "growth": 2,
        "profit": 2,
        "profits": 2,
        "gain": 2,
        "gains": 2,
        "loss": -2,
        "losses": -2,
        "dividend": 1,
        "recovery": 2,
        "rebound": 2,
        "layoffs": -2,
        "cut": -2,
        "cuts": -2,
        "dilution": -3,
        "offering": -2,
        "recall": -2,
        "investigation": -3,
        "lawsuit": -3,
        "fraud": -4,
        "bankrupt": -4,
        "bankruptcy": -4,
        "delisted": -4,
        "halted": -2,
        # positioning
        "bull": 2,
        "bulls": 2,
        "bullish": 3,
        "bear": -2,
        "bears": -2,
        "bearish": -3,
        "buy": 2,
        "buying": 2,
        "long": 1,
        "calls": 1,
        "accumulate": 2,
        "sell": -2,
        "selling": -2,
        "short": -1,
        "shorts": -1,
        "puts": -1,
        "undervalued": 2,
        "overvalued": -2,
        # price action
        "breakout": 3,
        "rally": 3,
        "rallying": 3,
        "surge": 3,
        "surging": 3,
        "soar": 3,
        "soaring": 3,
        "ripping": 3,
        "uptrend": 2,
        "green": 1,
        "ath": 2,
        "squeeze": 2,
        "dump": -3,
        "dumping": -3,
        "crash": -3,
        "crashing": -3,
        "plunge": -3,
        "plunges": -3,
        "tank": -3,
        "tanking": -3,
        "collapse": -3,
        "downtrend": -2,
        "red": -1,
        # social slang
        "moon": 3,
        "mooning": 3,
        "rocket": 3,
        "hodl": 1,
        "bagholder": -3,
        "bagholders": -3,
        "rugpull": -4,
        "rekt": -3,
    }
)


class Lexicon:
    """Read-only token -> weight table with case-insensitive lookup."""

    __slots__ = ("_weights",)

    def __init__(
        self,
        base: Mapping[str, float] | None = None,
        overrides: Mapping[str, float] | None = None,
    ) -> None:
        weights: dict[str, float] = {}
        for token, weight in (base or {}).items():
            weights[token.lower()] = float(weight)
        for token, weight in (overrides or {}).items():
            weights[token.lower()] = float(weight)
        self._weights: Mapping[str, float] = MappingProxyType(weights)

    def weight(self, token: str) -> float:
        """Weight of ``token``; 0.0 when unknown."""
        return self._weights.get(token.lower(), 0.0)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token.lower() in self._weights

    def __len__(self) -> int:
        return len(self._weights)


def vader_base_weights() -> dict[str, float]:
    """Single-word entries of the VADER lexicon."""
    analyzer = SentimentIntensityAnalyzer()
    return {
        word: float(weight)
        for word, weight in analyzer.lexicon.items()
        if _TOKEN_SHAPE.fullmatch(word)
    }


def load_overrides(path: str | Path) -> dict[str, float]:
    """Read extra financial weights from a JSON object file."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Lexicon overrides file {path} must contain a JSON object.")
    overrides: dict[str, float] = {}
    for token, weight in payload.items():
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValueError(f"Lexicon override for {token!r} must be a number.")
        overrides[str(token).lower()] = float(weight)
    return overrides


def build_lexicon(overrides_path: str | Path | None = None) -> Lexicon:
    """Build the process-wide lexicon: VADER base, financial layer, file layer."""
    overrides: dict[str, float] = dict(FINANCIAL_LEXICON)
    if overrides_path:
        overrides.update(load_overrides(overrides_path))
    lexicon = Lexicon(base=vader_base_weights(), overrides=overrides)
    logger.info("Built sentiment lexicon with %d entries (%d financial overrides)", len(lexicon), len(overrides))
    return lexicon
