"""
Tests for the inline TUI prompts (key input mocked)
"""

import io

import pytest
from unittest.mock import MagicMock, patch
from rich.console import Console

from shadowmite.tui import IDLE_POLL, TUIApp


@pytest.fixture
def app() -> TUIApp:
    return TUIApp(console=Console(file=io.StringIO()))


def keys(*pressed):
    """Feed keypresses to the TUI; None is a poll that timed out"""
    return patch('shadowmite.tui.read_key', side_effect=list(pressed))


class TestPromptText:
    """Test line editing in the status line"""

    def test_idle_runs_between_keys(self, app):
        """Test idle is called on every poll timeout and editing still works"""
        idle = MagicMock()
        with keys(None, 'a', None, 'b', '\x7f', '\r') as read:
            assert app.prompt_text("Name", idle=idle) == "a"
        assert idle.call_count == 2
        read.assert_called_with(IDLE_POLL)

    def test_prompt_reshown_after_idle(self, app):
        """Test the prompt replaces whatever idle drew in the status line"""
        with keys(None, '\x1b'):
            app.prompt_text("Gateway", default="10.0.0.1",
                            idle=lambda: app.update_status("Found 2 networks"))
        assert app.tui.status.message == "Gateway: 10.0.0.1_"

    def test_secret_and_clear(self, app):
        """Test secret input is masked and Ctrl+U clears it"""
        with keys('x', '\x15', 'p', 'w', '\r'):
            assert app.prompt_text("Password", secret=True) == "pw"
        assert app.tui.status.message == "Password: **_"

    def test_ctrl_c(self, app):
        """Test Ctrl+C in a prompt interrupts"""
        with keys('\x03'), pytest.raises(KeyboardInterrupt):
            app.prompt_text("Name")


class TestConfirm:
    """Test single-key confirmation"""

    def test_idle_then_yes(self, app):
        """Test idle runs while waiting and the question is shown again after it"""
        idle = MagicMock(side_effect=lambda: app.update_status("Found 2 networks"))
        with keys(None, 'y'):
            assert app.confirm("Reboot now?", idle=idle)
        idle.assert_called_once_with()
        assert app.tui.status.message == "Reboot now? [y/N]"

    @pytest.mark.parametrize("pressed,default,expected", [
        ('n', True, False),
        ('\r', True, True),
        ('\r', False, False),
        ('\x1b', True, False),
    ])
    def test_answers(self, app, pressed, default, expected):
        """Test n, Enter and Escape"""
        with keys(pressed):
            assert app.confirm("Install vim?", default=default) is expected
