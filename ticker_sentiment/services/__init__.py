"""Post sources and the aggregation pipeline."""

from ticker_sentiment.services.pipeline import SentimentPipeline, build_result
from ticker_sentiment.services.stocktwits import PostSource, StaticIngestor, StocktwitsIngestor

__all__ = ["PostSource", "SentimentPipeline", "StaticIngestor", "StocktwitsIngestor", "build_result"]
