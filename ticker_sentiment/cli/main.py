"""Ticker Sentiment CLI - Main entry point."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ticker_sentiment.config import ClassifierStrategy, get_settings
from ticker_sentiment.errors import SentimentAPIError
from ticker_sentiment.models.classifier import build_classifier, parse_platform_tag
from ticker_sentiment.models.lexicon import build_lexicon
from ticker_sentiment.models.ticker import is_valid_ticker, parse_tickers
from ticker_sentiment.schemas.sentiment import AggregateResult, RawPost
from ticker_sentiment.services.pipeline import SentimentPipeline
from ticker_sentiment.services.stocktwits import StaticIngestor, StocktwitsIngestor

app = typer.Typer(
    name="ticker-sentiment",
    help="Ticker Sentiment - social sentiment aggregation for stock tickers",
    no_args_is_help=True,
)

console = Console()

LABEL_COLORS = {"bullish": "green", "neutral": "white", "bearish": "red"}


def _load_posts_file(path: Path, ticker: str) -> StaticIngestor:
    """Read posts from a JSON list of {id, text, author, platformTag} objects."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise typer.BadParameter("posts file must contain a JSON list")
    posts: list[RawPost] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise typer.BadParameter(f"posts file entry {index} must be a JSON object")
        posts.append(
            RawPost(
                id=str(item.get("id") or f"file-{index}"),
                text=str(item.get("text") or ""),
                author=str(item.get("author") or ""),
                platformTag=parse_platform_tag(item.get("platformTag")),
            )
        )
    return StaticIngestor({ticker: posts})


def _render_result(result: AggregateResult) -> None:
    color = LABEL_COLORS[result.label]
    score = f"{result.overallScore:+.3f}" if result.overallScore is not None else "n/a"
    console.print(
        Panel(
            f"[bold {color}]{result.label.upper()}[/bold {color}]\n\n"
            f"[cyan]Posts:[/cyan]    {result.tweetCount}\n"
            f"[cyan]Bullish:[/cyan]  {result.bullishCount} ({result.bullishPct}%)\n"
            f"[cyan]Neutral:[/cyan]  {result.neutralCount} ({result.neutralPct}%)\n"
            f"[cyan]Bearish:[/cyan]  {result.bearishCount} ({result.bearishPct}%)\n"
            f"[cyan]Score:[/cyan]    {score}\n"
            f"[cyan]Strategy:[/cyan] {result.strategy}",
            title=f"${result.ticker}",
            border_style=color,
        )
    )

    table = Table(border_style="cyan")
    table.add_column("Author", style="blue")
    table.add_column("Post", max_width=70)
    table.add_column("Score", justify="right")
    table.add_column("Label", justify="center")
    for post in result.posts:
        post_color = LABEL_COLORS[post.label]
        table.add_row(
            f"@{post.author}",
            post.text,
            f"{post.score:+.2f}",
            f"[{post_color}]{post.label}[/{post_color}]",
        )
    console.print(table)


async def _sentiment(
    ticker: str,
    limit: Optional[int],
    strategy: Optional[ClassifierStrategy],
    posts_file: Optional[Path],
) -> AggregateResult:
    settings = get_settings()
    source: StaticIngestor | StocktwitsIngestor
    if posts_file is not None:
        source = _load_posts_file(posts_file, ticker)
    else:
        source = StocktwitsIngestor(settings)
    try:
        pipeline = SentimentPipeline(source, build_lexicon(settings.lexicon_overrides_path or None), settings)
        return await pipeline.aggregate(ticker, limit, strategy=strategy)
    finally:
        await source.close()


@app.command()
def sentiment(
    ticker: str = typer.Argument(..., help="Ticker symbol, e.g. AAPL or $aapl"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum posts to fetch"),
    strategy: Optional[str] = typer.Option(None, "--strategy", "-s", help="platform_tag, lexicon or hybrid"),
    posts_file: Optional[Path] = typer.Option(None, "--posts-file", help="Read posts from a JSON file instead of Stocktwits"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result"),
) -> None:
    """Aggregate social sentiment for a ticker."""
    if strategy is not None and strategy not in ("platform_tag", "lexicon", "hybrid"):
        raise typer.BadParameter(f"unknown strategy: {strategy}")
    try:
        result = asyncio.run(_sentiment(ticker, limit, strategy, posts_file))  # type: ignore[arg-type]
    except SentimentAPIError as exc:
        console.print(f"[red]{exc.code}:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc

    if as_json:
        console.print_json(result.model_dump_json())
        return
    _render_result(result)


@app.command()
def classify(
    text: str = typer.Argument(..., help="Post text to score"),
    strategy: str = typer.Option("lexicon", "--strategy", "-s", help="platform_tag, lexicon or hybrid"),
    tag: Optional[str] = typer.Option(None, "--tag", help="Platform tag, e.g. Bullish"),
) -> None:
    """Classify a single post."""
    if strategy not in ("platform_tag", "lexicon", "hybrid"):
        raise typer.BadParameter(f"unknown strategy: {strategy}")
    settings = get_settings()
    classifier = build_classifier(strategy, build_lexicon(settings.lexicon_overrides_path or None))  # type: ignore[arg-type]
    post = classifier.classify(RawPost(id="cli", text=text, platformTag=parse_platform_tag(tag)))
    color = LABEL_COLORS[post.label]
    console.print(f"[{color}]{post.label}[/{color}] (score {post.score:+.3f})")


@app.command()
def parse(raw: str = typer.Argument(..., help="Ticker list, e.g. '$aapl, msft; NVDA'")) -> None:
    """Parse a portfolio ticker list."""
    tickers = parse_tickers(raw)
    valid = [symbol for symbol in tickers if is_valid_ticker(symbol)]
    rejected = [symbol for symbol in tickers if not is_valid_ticker(symbol)]
    console.print(" ".join(valid) if valid else "[yellow]No tickers found[/yellow]")
    if rejected:
        console.print(f"[yellow]Rejected:[/yellow] {' '.join(rejected)}")


@app.command()
def status() -> None:
    """Show configuration."""
    settings = get_settings()

    table = Table(title="Ticker Sentiment", border_style="cyan")
    table.add_column("Setting", style="bold white")
    table.add_column("Value", style="dim")
    table.add_row("Stocktwits", settings.stocktwits_base_url)
    table.add_row("Timeout", f"{settings.stocktwits_timeout_seconds:.1f}s")
    table.add_row("Strategy", settings.classifier_strategy)
    table.add_row("Post limit", f"{settings.default_post_limit} (max {settings.max_post_limit})")
    table.add_row("Display cap", str(settings.display_cap))
    table.add_row("Tag overall score", "on" if settings.tag_overall_score else "off")
    table.add_row("Classify workers", str(settings.classify_workers))
    table.add_row("Lexicon overrides", settings.lexicon_overrides_path or "N/A")
    table.add_row("API Server", f"{settings.host}:{settings.port}")
    console.print(table)


@app.command()
def server() -> None:
    """Start the FastAPI server."""
    import uvicorn

    settings = get_settings()
    console.print(
        Panel(
            f"[bold cyan]Starting Ticker Sentiment API Server[/bold cyan]\n\n"
            f"[cyan]Host:[/cyan]  {settings.host}\n"
            f"[cyan]Port:[/cyan]  {settings.port}\n"
            f"[cyan]Debug:[/cyan] {settings.debug}",
            title="Server",
            border_style="cyan",
        )
    )
    uvicorn.run(
        "ticker_sentiment.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    app()
