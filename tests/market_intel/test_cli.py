"""
Tests for the command-line interface.
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from market_intel import cli
from market_intel.exceptions import UnknownSourceError
from market_intel.models import NewsSourceConfig, SourceStats


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def service():
    """Service double with canned answers."""
    mock = MagicMock()
    mock.update_news = AsyncMock(return_value=[object(), object()])
    mock.list = AsyncMock(return_value=[])
    mock.get_sentiment_summary = AsyncMock(
        return_value=MagicMock(to_dict=MagicMock(return_value={"news_count": 0}))
    )
    mock.delete_old_news = AsyncMock(return_value=3)
    mock.clear_cache = AsyncMock()
    mock.close = AsyncMock()
    mock.get_news_sources.return_value = [NewsSourceConfig(name="Feed", kind="rss")]
    mock.get_source_stats.return_value = {"Feed": SourceStats(articles_fetched=4)}
    return mock


def run(argv, service):
    with patch.object(cli, "create_service", return_value=service):
        return cli.main(["--database-url", "", *argv])


# ============================================================
# PARSER TESTS
# ============================================================

class TestParser:
    """Tests for argument parsing."""

    def test_list_options(self):
        args = cli.create_parser().parse_args(["list", "--sort", "impact_level", "--limit", "5"])
        assert args.command == "list"
        assert args.sort == "impact_level"
        assert args.limit == 5

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args([])

    def test_empty_database_url_disables_persistence(self):
        args = cli.create_parser().parse_args(["--database-url", "", "summary"])
        assert cli.build_config(args).store.database_url is None


# ============================================================
# COMMAND TESTS
# ============================================================

class TestCommands:
    """Tests for command dispatch and output."""

    def test_refresh(self, service, capsys):
        assert run(["refresh"], service) == 0
        assert json.loads(capsys.readouterr().out) == {"stored": 2}
        service.close.assert_awaited_once()

    def test_list_passes_sort_and_limit(self, service, capsys):
        assert run(["list", "--sort", "relevance_score", "--limit", "2"], service) == 0
        service.list.assert_awaited_once_with("relevance_score", 2, wait_for_refresh=True)
        assert json.loads(capsys.readouterr().out) == []

    def test_summary_refreshes_before_answering(self, service, capsys):
        assert run(["summary"], service) == 0
        service.get_sentiment_summary.assert_awaited_once_with(wait_for_refresh=True)
        assert json.loads(capsys.readouterr().out) == {"news_count": 0}

    def test_sources(self, service, capsys):
        assert run(["sources"], service) == 0
        [entry] = json.loads(capsys.readouterr().out)
        assert entry["name"] == "Feed"
        assert entry["stats"]["articles_fetched"] == 4

    def test_clean(self, service, capsys):
        assert run(["clean", "--days", "7"], service) == 0
        service.delete_old_news.assert_awaited_once_with(7.0)
        assert json.loads(capsys.readouterr().out) == {"removed": 3}

    def test_unknown_source(self, service, capsys):
        service.disable_source.side_effect = UnknownSourceError("Unknown news source: 'X'")
        assert run(["disable", "X"], service) == 2
        assert "Unknown news source" in capsys.readouterr().err
        service.close.assert_awaited_once()
