"""Per-post polarity classifiers.

Every classifier turns a :class:`RawPost` into a :class:`ClassifiedPost`
with a ``score`` and a ``label``. The aggregator only sees those two fields,
so strategies are interchangeable.
"""

from __future__ import annotations

import re
import unicodedata
from abc import ABC, abstractmethod
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from ticker_sentiment.config import ClassifierStrategy
from ticker_sentiment.models.lexicon import Lexicon
from ticker_sentiment.schemas.sentiment import ClassifiedPost, PlatformTag, RawPost, SentimentLabel

BULLISH_THRESHOLD = 0.5
BEARISH_THRESHOLD = -0.5

TAG_SCORES: dict[SentimentLabel, float] = {"bullish": 1.0, "neutral": 0.0, "bearish": -1.0}

_TOKEN_SPLIT = re.compile(r"[\W_]+")


def tokenize(text: str | None) -> list[str]:
    """Lowercase and split on non-alphanumeric runs, dropping empty tokens.

    Letters outside ASCII count as alphanumeric, so "café" stays one token.
    Text is NFC-normalized first so combining accents do not split words.
    """
    if not text:
        return []
    normalized = unicodedata.normalize("NFC", text).lower()
    return [token for token in _TOKEN_SPLIT.split(normalized) if token]


def tag_to_label(tag: object) -> SentimentLabel:
    """Map a platform tag (any casing) to a label; anything else is neutral."""
    if isinstance(tag, str):
        value = tag.strip().lower()
        if value == "bullish":
            return "bullish"
        if value == "bearish":
            return "bearish"
    return "neutral"


def parse_platform_tag(tag: object) -> PlatformTag | None:
    label = tag_to_label(tag)
    if label == "neutral":
        return None
    return label


def label_for_score(comparative: float) -> SentimentLabel:
    if comparative > BULLISH_THRESHOLD:
        return "bullish"
    if comparative < BEARISH_THRESHOLD:
        return "bearish"
    return "neutral"


class Classifier(ABC):
    """Assigns a polarity label and score to one post."""

    name: ClassifierStrategy

    @abstractmethod
    def classify(self, post: RawPost) -> ClassifiedPost:
        """Classify a single post. Must not raise on odd text."""

    @property
    def produces_scores(self) -> bool:
        """Whether scores carry information beyond the label."""
        return True


class PlatformTagClassifier(Classifier):
    """Trusts the tag the source platform attached to the post."""

    name: ClassifierStrategy = "platform_tag"

    def classify(self, post: RawPost) -> ClassifiedPost:
        label = tag_to_label(post.platformTag)
        return ClassifiedPost(**post.model_dump(), score=TAG_SCORES[label], label=label)

    @property
    def produces_scores(self) -> bool:
        return False


class LexiconClassifier(Classifier):
    """Scores post text against a signed lexicon, normalized by token count."""

    name: ClassifierStrategy = "lexicon"

    def __init__(self, lexicon: Lexicon) -> None:
        self._lexicon = lexicon

    def comparative(self, text: str | None) -> float:
        tokens = tokenize(text)
        total = sum(self._lexicon.weight(token) for token in tokens)
        return total / max(1, len(tokens))

    def classify(self, post: RawPost) -> ClassifiedPost:
        score = self.comparative(post.text)
        return ClassifiedPost(**post.model_dump(), score=score, label=label_for_score(score))


class HybridClassifier(Classifier):
    """Platform tag when the post has one, lexicon scoring otherwise."""

    name: ClassifierStrategy = "hybrid"

    def __init__(self, lexicon: Lexicon) -> None:
        self._tagged = PlatformTagClassifier()
        self._scored = LexiconClassifier(lexicon)

    def classify(self, post: RawPost) -> ClassifiedPost:
        if post.platformTag is not None:
            return self._tagged.classify(post)
        return self._scored.classify(post)


def build_classifier(strategy: ClassifierStrategy, lexicon: Lexicon) -> Classifier:
    if strategy == "platform_tag":
        return PlatformTagClassifier()
    if strategy == "lexicon":
        return LexiconClassifier(lexicon)
    if strategy == "hybrid":
        return HybridClassifier(lexicon)
    raise ValueError(f"Unknown classifier strategy: {strategy}")


def classify_posts(
    classifier: Classifier,
    posts: Sequence[RawPost],
    *,
    workers: int = 1,
) -> list[ClassifiedPost]:
    """Classify ``posts`` in source order.

    With ``workers > 1`` posts are classified on a thread pool; ``map`` keeps
    the output aligned with the input, so results match the sequential path.
    """
    if workers <= 1 or len(posts) <= 1:
        return [classifier.classify(post) for post in posts]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="classify") as pool:
        return list(pool.map(classifier.classify, posts))
