"""
Tests for the stderr progress reporter and its signal handling.
"""

import signal
from unittest.mock import patch

import pytest

from ghauth.exit_codes import INTERRUPTED, TERMINATED
from ghauth.progress import LogLevel, ProgressReporter
from ghauth.vault import KeyVault


@pytest.fixture
def reporter():
    # Keep pytest's own SIGINT handler in place
    with patch('ghauth.progress.signal.signal'):
        return ProgressReporter(enabled=False, use_colors=False)


# ============================================================================
# Signals
# ============================================================================

class TestSignals:
    """SIGINT and SIGTERM unwind through SystemExit."""

    def test_handlers_installed_on_main_thread(self):
        with patch('ghauth.progress.signal.signal') as install:
            reporter = ProgressReporter(enabled=False)

        installed = {call.args[0]: call.args[1] for call in install.call_args_list}
        assert installed[signal.SIGINT] == reporter._handle_signal
        assert installed[signal.SIGTERM] == reporter._handle_signal

    def test_sigterm_releases_signing_key(self, reporter, sealed_key, password_hash):
        with pytest.raises(SystemExit) as exc_info:
            with KeyVault(sealed_key).decrypt(password_hash) as handle:
                reporter._handle_signal(signal.SIGTERM, None)

        assert exc_info.value.code == TERMINATED
        assert handle.closed

    def test_sigint_releases_signing_key(self, reporter, sealed_key, password_hash):
        with pytest.raises(SystemExit) as exc_info:
            with KeyVault(sealed_key).decrypt(password_hash) as handle:
                reporter._handle_signal(signal.SIGINT, None)

        assert exc_info.value.code == INTERRUPTED
        assert handle.closed
        with pytest.raises(RuntimeError):
            handle.private_key

    def test_enabled_reporter_announces_interrupt(self, capsys):
        with patch('ghauth.progress.signal.signal'):
            reporter = ProgressReporter(enabled=True, use_colors=False)

        with pytest.raises(SystemExit):
            reporter._handle_signal(signal.SIGINT, None)
        assert "Interrupted" in capsys.readouterr().err


# ============================================================================
# Output
# ============================================================================

class TestOutput:
    """Messages go to stderr only."""

    def test_disabled_is_silent_except_errors(self, reporter, capsys):
        reporter("working")
        reporter.warning("careful")
        reporter.success("done")
        reporter.error("broken")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "ERROR: broken\n"

    def test_levels_are_prefixed(self, capsys):
        with patch('ghauth.progress.signal.signal'):
            reporter = ProgressReporter(enabled=True, use_colors=False)

        reporter("ok", level=LogLevel.SUCCESS)
        reporter("bad", level=LogLevel.ERROR)
        assert capsys.readouterr().err.splitlines() == ["✓ ok", "✗ bad"]
