"""Tests for the CLI entry point."""

import subprocess
from unittest.mock import MagicMock, patch

import httpx
from click.testing import CliRunner

from upreview_cli.cli import main
from upreview_core.reviewer import RunSummary
from upreview_core.upsource.client import UpsourceClient, UpsourceError


def _make_config(**overrides):
    config = {
        "model": "anthropic",
        "upsource_url": "https://upsource.example.com",
        "upsource_query": "state: open",
        "reviewed_label": "ai-reviewed",
        "upsource_username": "bot",
        "upsource_password": "pw",
        "github_token": None,
        "anthropic_api_key": "ant",
        "openai_api_key": None,
        "post_inline": "high",
        "max_comments_per_review": 10,
        "poll_interval_seconds": 60,
        "max_chars_per_diff": 100000,
        "guidelines": None,
    }
    config.update(overrides)
    return config


def _patch_common(mocker, config=None, token="tok"):
    """Patch config loading, token resolution and the Upsource client."""
    cfg = config or _make_config()
    mock_load = mocker.patch("upreview_cli.commands.run.load_config", return_value=cfg)
    mocker.patch("upreview_cli.auth.resolve_github_token", return_value=token)
    mock_client_cls = mocker.patch("upreview_cli.commands.run.UpsourceClient")
    return cfg, mock_load, mock_client_cls


class TestCLIValidation:
    def test_missing_github_token(self, mocker):
        _patch_common(mocker, token=None)

        result = CliRunner().invoke(main, ["run", "--once"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_anthropic_key(self, mocker):
        _patch_common(mocker, config=_make_config(anthropic_api_key=None))

        result = CliRunner().invoke(main, ["run", "--once"])
        assert result.exit_code != 0
        assert "ANTHROPIC_API_KEY" in result.output

    def test_missing_upsource_url(self, mocker):
        _patch_common(mocker, config=_make_config(upsource_url=None))

        result = CliRunner().invoke(main, ["run", "--once"])
        assert result.exit_code != 0
        assert "upsource_url" in result.output


class TestRunCommand:
    def test_once_runs_a_single_cycle(self, mocker):
        _, _, mock_client_cls = _patch_common(mocker)
        mock_run = mocker.patch("upreview_cli.commands.run.run_once", return_value=RunSummary(reviews_found=2))

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        assert mock_run.call_args.kwargs["shadow"] is False
        mock_client_cls.assert_called_once_with("https://upsource.example.com", "bot", "pw")
        mock_client_cls.return_value.close.assert_called_once()

    def test_shadow_flag_passed_through(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("upreview_cli.commands.run.run_once", return_value=RunSummary())

        CliRunner().invoke(main, ["run", "--once", "--shadow"])

        assert mock_run.call_args.kwargs["shadow"] is True

    def test_model_and_config_path_forwarded(self, mocker):
        _, mock_load, _ = _patch_common(mocker)
        mocker.patch("upreview_cli.commands.run.run_once", return_value=RunSummary())

        CliRunner().invoke(main, ["--config", "custom.yml", "run", "--once", "--model", "openai"])

        args, kwargs = mock_load.call_args
        assert args[0] == "custom.yml"
        assert kwargs["cli_overrides"]["model"] == "openai"

    def test_resolved_token_stored_in_config(self, mocker):
        cfg, _, _ = _patch_common(mocker, token="resolved")
        mocker.patch("upreview_cli.commands.run.run_once", return_value=RunSummary())

        CliRunner().invoke(main, ["run", "--once"])

        assert cfg["github_token"] == "resolved"

    def test_summary_printed(self, mocker):
        _patch_common(mocker)
        summary = RunSummary(reviews_found=2, reviews_processed=1, inline_posted=3, failed=["Broken review"])
        mocker.patch("upreview_cli.commands.run.run_once", return_value=summary)

        result = CliRunner().invoke(main, ["run", "--once"])

        assert "1/2" in result.output
        assert "Broken review" in result.output

    def test_listing_failure_reported_not_raised(self, mocker):
        _patch_common(mocker)
        mocker.patch("upreview_cli.commands.run.run_once", side_effect=UpsourceError("getReviews failed: 500"))

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 0
        assert "Could not list reviews" in result.output

    def test_polling_survives_html_listing_reply(self, mocker):
        _, _, mock_client_cls = _patch_common(mocker)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>login</html>"))
        mock_client_cls.side_effect = lambda url, user, password: UpsourceClient(
            url, user, password, transport=transport
        )
        mocker.patch("upreview_core.reviewer._get_reviewer", return_value=MagicMock())
        mock_sleep = mocker.patch("upreview_cli.commands.run.time.sleep", side_effect=KeyboardInterrupt)

        result = CliRunner().invoke(main, ["run"])

        assert result.exit_code == 0
        assert result.exception is None
        assert "Could not list reviews" in result.output
        assert "invalid JSON" in result.output
        mock_sleep.assert_called_once_with(60)
        assert "Stopped" in result.output

    def test_polls_until_interrupted(self, mocker):
        _, _, mock_client_cls = _patch_common(mocker)
        mock_run = mocker.patch("upreview_cli.commands.run.run_once", return_value=RunSummary())
        mock_sleep = mocker.patch("upreview_cli.commands.run.time.sleep", side_effect=[None, KeyboardInterrupt])

        result = CliRunner().invoke(main, ["run"])

        assert result.exit_code == 0
        assert mock_run.call_count == 2
        mock_sleep.assert_called_with(60)
        assert "Stopped" in result.output
        mock_client_cls.return_value.close.assert_called_once()


# ---------------------------------------------------------------------------
# auth.py
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_falls_back_to_gh_cli(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            assert resolve_github_token() == "gh-token"

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_returns_error(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="")
            assert resolve_github_token() is None

    def test_returns_none_when_gh_returns_empty(self, monkeypatch):
        from upreview_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="   ")
            assert resolve_github_token() is None
