"""Sentiment classification and aggregation models."""

from ticker_sentiment.models.aggregator import aggregate, majority_label
from ticker_sentiment.models.classifier import (
    Classifier,
    HybridClassifier,
    LexiconClassifier,
    PlatformTagClassifier,
    build_classifier,
    classify_posts,
    tokenize,
)
from ticker_sentiment.models.lexicon import FINANCIAL_LEXICON, Lexicon, build_lexicon
from ticker_sentiment.models.ticker import normalize_ticker, parse_tickers

__all__ = [
    "FINANCIAL_LEXICON",
    "Classifier",
    "HybridClassifier",
    "Lexicon",
    "LexiconClassifier",
    "PlatformTagClassifier",
    "aggregate",
    "build_classifier",
    "build_lexicon",
    "classify_posts",
    "majority_label",
    "normalize_ticker",
    "parse_tickers",
    "tokenize",
]
