import json
from unittest.mock import AsyncMock, patch

import pytest

from signalist import cli, config


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SIGNALIST_DB_PATH", str(tmp_path / "signalist.db"))
    with patch("signalist.cli.setup_logging"):
        yield tmp_path
    monkeypatch.undo()
    config.reload_settings()


def _run(capsys, *argv):
    cli.main(list(argv))
    return json.loads(capsys.readouterr().out)


class TestParser:
    def test_search_query_optional(self):
        args = cli.build_parser().parse_args(["search"])
        assert args.query is None
        assert args.func is cli._cmd_search

    def test_news_symbols(self):
        args = cli.build_parser().parse_args(["news", "aapl", "msft"])
        assert args.symbols == ["aapl", "msft"]

    def test_schedule_options(self):
        args = cli.build_parser().parse_args(["schedule", "--hour", "6", "--max-runs", "1"])
        assert (args.hour, args.minute, args.max_runs) == (6, None, 1)

    def test_welcome_requires_email(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["welcome", "--name", "x"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


def test_add_user_and_watch(cli_env, capsys):
    created = _run(capsys, "add-user", "ann@example.com", "--name", "Ann")
    assert created["email"] == "ann@example.com"

    watched = _run(capsys, "watch", "ann@example.com", "aapl", "msft", "AAPL")
    assert watched == {"email": "ann@example.com", "added": ["AAPL", "MSFT"]}


def test_watch_unknown_user(cli_env):
    with pytest.raises(SystemExit):
        cli.main(["watch", "nobody@example.com", "AAPL"])


def test_daily_news_prints_result(cli_env, capsys):
    pipeline = AsyncMock()
    pipeline.run_daily_news_summary.return_value = {
        "success": False,
        "message": "No users found for news email",
    }
    with patch("signalist.cli.build_pipeline", return_value=pipeline):
        result = _run(capsys, "daily-news")

    assert result["message"] == "No users found for news email"


def test_welcome_routes_event(cli_env, capsys):
    pipeline = AsyncMock()
    pipeline.handle_event.return_value = {"success": True, "message": "Welcome email sent successfully"}
    with patch("signalist.cli.build_pipeline", return_value=pipeline):
        _run(capsys, "welcome", "--email", "n@example.com", "--risk-tolerance", "Low")

    name, data = pipeline.handle_event.await_args.args
    assert name == "app/user.created"
    assert data["email"] == "n@example.com"
    assert data["risk_tolerance"] == "Low"
