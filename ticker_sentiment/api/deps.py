"""API dependencies."""

from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ticker_sentiment.config import Settings, get_settings
from ticker_sentiment.models.lexicon import Lexicon, build_lexicon
from ticker_sentiment.services.pipeline import SentimentPipeline
from ticker_sentiment.services.stocktwits import PostSource, StocktwitsIngestor


@lru_cache
def get_lexicon() -> Lexicon:
    """Process-wide lexicon, built on first use (warmed at app startup)."""
    return build_lexicon(get_settings().lexicon_overrides_path or None)


async def get_post_source(settings: Annotated[Settings, Depends(get_settings)]) -> AsyncIterator[PostSource]:
    """Per-request Stocktwits ingestor; the HTTP client is closed afterwards."""
    ingestor = StocktwitsIngestor(settings)
    try:
        yield ingestor
    finally:
        await ingestor.close()


def get_pipeline(
    source: Annotated[PostSource, Depends(get_post_source)],
    lexicon: Annotated[Lexicon, Depends(get_lexicon)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SentimentPipeline:
    return SentimentPipeline(source, lexicon, settings)


SettingsDep = Annotated[Settings, Depends(get_settings)]
LexiconDep = Annotated[Lexicon, Depends(get_lexicon)]
PipelineDep = Annotated[SentimentPipeline, Depends(get_pipeline)]
