"""CLI tests."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from ticker_sentiment.cli.main import app

runner = CliRunner()


def _posts_file(tmp_path: Path) -> Path:
    posts = [{"id": i, "text": "beats", "author": "a", "platformTag": "Bullish"} for i in range(3)]
    posts.append({"id": 99, "text": "fraud", "author": "b", "platformTag": "Bearish"})
    path = tmp_path / "posts.json"
    path.write_text(json.dumps(posts), encoding="utf-8")
    return path


def test_parse_command() -> None:
    result = runner.invoke(app, ["parse", "$aapl, msft; brk.b"])
    assert result.exit_code == 0
    assert "AAPL MSFT" in result.output
    assert "BRK.B" in result.output


def test_classify_command() -> None:
    result = runner.invoke(app, ["classify", "beats"])
    assert result.exit_code == 0
    assert "bullish" in result.output


def test_sentiment_command_from_posts_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["sentiment", "$aapl", "--posts-file", str(_posts_file(tmp_path)), "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["ticker"] == "AAPL"
    assert payload["bullishCount"] == 3
    assert payload["bearishCount"] == 1
    assert payload["label"] == "bullish"


def test_sentiment_command_reports_errors(tmp_path: Path) -> None:
    result = runner.invoke(app, ["sentiment", "TOOLONG", "--posts-file", str(_posts_file(tmp_path))])
    assert result.exit_code == 1
    assert "VALIDATION_ERROR" in result.output


def test_status_command() -> None:
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "Stocktwits" in result.output


def test_sentiment_command_rejects_non_object_posts(tmp_path: Path) -> None:
    path = tmp_path / "posts.json"
    path.write_text(json.dumps([{"id": 1, "text": "beats"}, "beats", 3]), encoding="utf-8")

    result = runner.invoke(app, ["sentiment", "AAPL", "--posts-file", str(path)])

    assert result.exit_code == 2
    assert not isinstance(result.exception, AttributeError)
