"""Tests for the CLI module."""

import pytest
from click.testing import CliRunner
from conftest import FakeMailbox, make_message, make_newsletters

import inbox_maid.cli as cli_module
from inbox_maid.cli import cli
from inbox_maid.mailbox import GatewayError, MailboxAuthError, MailboxConnectionError


def _args(tmp_path, *extra):
    return [
        "--email", "me@example.com",
        "--password", "secret",
        "--server", "imap.example.com",
        "--count", "10",
        "--log-dir", str(tmp_path),
        *extra,
    ]


@pytest.fixture
def fake_mailbox(monkeypatch):
    gateway = FakeMailbox(make_newsletters(2) + [make_message("3", unsubscribe="<mailto:x@y.com>")])
    monkeypatch.setattr(cli_module, "ImapMailbox", lambda server, port: gateway)
    return gateway


def test_cli_help():
    """CLI --help should work and show commands."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.output
    assert "scan" in result.output


def test_cli_version():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (MailboxConnectionError("refused"), "Unable to connect"),
        (MailboxAuthError("rejected"), "Authentication failed"),
    ],
)
def test_run_fails_with_nonzero_status(tmp_path, monkeypatch, error, message):
    def _connect(self, username, password):
        raise error

    monkeypatch.setattr(cli_module.ImapMailbox, "connect", _connect)

    runner = CliRunner()
    result = runner.invoke(cli, ["run", *_args(tmp_path, "--mode", "1")])

    assert result.exit_code != 0
    assert message in result.output
    # The summary is still written
    assert "Session Summary" in result.output
    log_text = next(tmp_path.iterdir()).read_text()
    assert "errors=1" in log_text


def test_run_batch_mode(tmp_path, fake_mailbox):
    runner = CliRunner()
    result = runner.invoke(cli, ["run", *_args(tmp_path, "--mode", "2")], input="3\n1\n6\n")

    assert result.exit_code == 0, result.output
    assert fake_mailbox.flagged == ["1"]
    assert fake_mailbox.commits == 1
    assert fake_mailbox.closed
    assert "Session Summary" in result.output


def test_run_interactive_mode(tmp_path, fake_mailbox):
    runner = CliRunner()
    result = runner.invoke(cli, ["run", *_args(tmp_path, "--mode", "1")], input="d\nexit\n")

    assert result.exit_code == 0, result.output
    assert fake_mailbox.flagged == ["1"]
    assert fake_mailbox.commits == 1
    log_text = next(tmp_path.iterdir()).read_text()
    assert "Deleted newsletter without unsubscribing" in log_text
    assert "deleted_without_unsubscribing=1" in log_text


def test_run_prompts_for_missing_values(tmp_path, fake_mailbox):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["run", "--log-dir", str(tmp_path)],
        input="me@example.com\nsecret\n\n\n2\n6\n",
    )

    assert result.exit_code == 0, result.output
    assert "Email address" in result.output
    assert "Choose mode" in result.output


def test_scan_lists_without_changes(tmp_path, fake_mailbox):
    runner = CliRunner()
    result = runner.invoke(cli, ["scan", *_args(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Newsletters found" in result.output
    assert fake_mailbox.flagged == []
    assert fake_mailbox.commits == 0
    assert fake_mailbox.closed


class FailingExpunge(FakeMailbox):
    def commit_deletions(self):
        raise GatewayError("EXPUNGE failed")


class FailingLogout(FakeMailbox):
    def close(self):
        super().close()
        raise GatewayError("Logout failed")


@pytest.mark.parametrize(
    ("gateway_class", "warning"),
    [
        (FailingExpunge, "[WARNING] Exception during expunge: EXPUNGE failed"),
        (FailingLogout, "[WARNING] Exception during logout: Logout failed"),
    ],
)
def test_shutdown_failures_are_counted(tmp_path, monkeypatch, gateway_class, warning):
    gateway = gateway_class(make_newsletters(2))
    monkeypatch.setattr(cli_module, "ImapMailbox", lambda server, port: gateway)

    runner = CliRunner()
    result = runner.invoke(cli, ["run", *_args(tmp_path, "--mode", "1")], input="d\nexit\n")

    assert result.exit_code == 0, result.output
    assert gateway.flagged == ["1"]
    assert gateway.closed
    assert "Session Summary" in result.output
    log_text = next(tmp_path.iterdir()).read_text()
    assert warning in log_text
    assert "deleted_without_unsubscribing=1 errors=1" in log_text
