"""
Full-screen TUI for the setup wizard.

One Rich Layout is redrawn in place inside ``Live(screen=True)``; nothing
scrolls, and the alternate screen restores the terminal on exit. Keys are
read raw with a timeout so the control loop can keep pumping scan results
while the operator is idle.
"""

import sys
import tty
import select
import termios
import signal
import shutil
import itertools
from typing import Callable, Optional, Tuple
from rich.console import Console, RenderableType, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
from rich import box

from .config import Screen


MIN_WIDTH = 60
MIN_HEIGHT = 20

# Below this height the header and progress regions lose their spacing
COMPACT_HEIGHT = 25

# Key poll used by inline prompts between idle callbacks
IDLE_POLL = 0.1

CTRL_C = '\x03'
CTRL_U = '\x15'
ESCAPE = '\x1b'
BACKSPACE_KEYS = ('\x7f', '\x08')


def get_terminal_size() -> Tuple[int, int]:
    """Get current terminal size (width, height)."""
    size = shutil.get_terminal_size(fallback=(80, 24))
    return size.columns, size.lines


def read_key(timeout: Optional[float] = None) -> Optional[str]:
    """
    Read one keypress in raw mode.

    Args:
        timeout: Seconds to wait; None blocks until a key arrives

    Returns:
        The key, with escape sequences (arrows etc.) returned whole, or
        None if nothing was pressed in time
    """
    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        if not select.select([sys.stdin], [], [], timeout)[0]:
            return None
        key = sys.stdin.read(1)
        # Up to two more bytes of an escape sequence
        while key.startswith(ESCAPE) and len(key) < 3 and select.select([sys.stdin], [], [], 0.1)[0]:
            key += sys.stdin.read(1)
        return key
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class ProgressIndicator:
    """
    Dots and names for every screen, e.g.

        ●  ●  ◉  ○  ○  ○
        Welcome → Network → Locale → Apps → Summary → Finish
    """

    DONE, CURRENT, PENDING = "●", "◉", "○"

    def __init__(self):
        self.screen = Screen.WELCOME

    def _style(self, screen: Screen) -> tuple[str, str]:
        """(glyph, style) for a screen relative to the current one"""
        if screen.position < self.screen.position:
            return self.DONE, "green"
        if screen is self.screen:
            return self.CURRENT, "cyan bold"
        return self.PENDING, "dim"

    def render(self) -> Text:
        dots = Text()
        names = Text()
        for screen in Screen:
            glyph, style = self._style(screen)
            dots.append(f"{glyph}  ", style=style)
            if names.plain:
                names.append(" → ", style="dim")
            names.append(screen.value.title(), style=style)
        return Text("\n").join([dots, names])


class StatusLine:
    """Status message, with a spinner while background work runs"""

    SPINNER = "◐◓◑◒"

    def __init__(self):
        self._frames = itertools.cycle(self.SPINNER)
        self.message = ""
        self.busy = False

    def render(self) -> Text:
        if self.busy:
            return Text.assemble((f" {next(self._frames)} ", "yellow bold"), (self.message, "yellow"))
        return Text.assemble((" ✓ ", "green bold"), (self.message or "Ready", "green"))


class TUILayout:
    """
    Fixed regions sized to the terminal:

        header    title banner
        progress  "Step n/6" and the screen indicator
        body      current screen (takes the remaining rows)
        keys      one line of key hints
        status    status line, spinner, inline prompts
    """

    def __init__(self, console: Console):
        self.console = console
        self.layout = Layout()
        self.progress = ProgressIndicator()
        self.status = StatusLine()
        self.body: RenderableType = Text("Starting setup...", style="dim")
        self.keys = Text("")
        self._size = get_terminal_size()
        self._build()

    @property
    def compact(self) -> bool:
        return self._size[1] < COMPACT_HEIGHT

    def _build(self) -> None:
        banner = 3 if self.compact else 4
        self.layout.split(
            Layout(name="header", size=banner),
            Layout(name="progress", size=banner),
            Layout(name="body", ratio=1),
            Layout(name="keys", size=1),
            Layout(name="status", size=3),
        )
        for region in ("header", "progress", "body", "keys", "status"):
            self.redraw(region)

    def resize(self) -> None:
        size = get_terminal_size()
        if size != self._size:
            self._size = size
            self._build()

    def redraw(self, region: str) -> None:
        """Re-render one region from the current state"""
        self.layout[region].update(getattr(self, f"_render_{region}")())

    def _render_header(self) -> Panel:
        title = "[bold cyan]Shadowmite Setup[/bold cyan]"
        if not self.compact:
            title += "\n[dim]Network, locale and prescribed apps[/dim]"
        return Panel(title, box=box.DOUBLE, border_style="cyan", padding=(0, 1))

    def _render_progress(self) -> Panel:
        screen = self.progress.screen
        heading = Text.assemble(
            (f"Step {screen.position}/{len(Screen)}: ", "bold magenta"),
            (screen.title, "bold"),
        )
        parts = [heading] if self.compact else [heading, Text("")]
        return Panel(Group(*parts, self.progress.render()), box=box.SIMPLE, border_style="magenta")

    def _render_body(self) -> Panel:
        return Panel(self.body, box=box.ROUNDED, border_style="white", padding=(0, 1))

    def _render_keys(self) -> Text:
        return self.keys

    def _render_status(self) -> Panel:
        return Panel(self.status.render(), box=box.HEAVY, border_style="yellow", padding=(0, 1))

    def update_step(self, screen: Screen) -> None:
        self.progress.screen = screen
        self.redraw("progress")

    def update_body(self, content: RenderableType) -> None:
        self.body = content
        self.redraw("body")

    def update_keys(self, hints: list[tuple[str, str]]) -> None:
        """
        Replace the key hint line.

        Args:
            hints: (key, action) pairs, e.g. [("n", "Next"), ("b", "Back")]
        """
        line = Text(" ")
        for key, action in hints:
            line.append(f"[{key}]", style="bold cyan")
            line.append(f" {action}   ")
        self.keys = line
        self.redraw("keys")

    def update_status(self, message: str, spinner: bool = False) -> None:
        self.status.message = message
        self.status.busy = spinner
        self.redraw("status")


class TUIApp:
    """
    Context manager owning the Live display and raw key input.

    Usage:
        with TUIApp() as app:
            app.update_step(Screen.NETWORK)
            app.update_body(content)
            key = app.read_key(timeout=0.1)
    """

    def __init__(self, console: Optional[Console] = None):
        if console is None:
            width, height = get_terminal_size()
            console = Console(force_terminal=True, width=width, height=height, soft_wrap=True)
        self.console = console
        self.tui = TUILayout(self.console)
        self.live: Optional[Live] = None
        self._previous_sigwinch = None

    def _on_resize(self, signum, frame) -> None:
        self.console.size = get_terminal_size()
        self.tui.resize()
        self.refresh()

    def __enter__(self) -> 'TUIApp':
        width, height = get_terminal_size()
        if width < MIN_WIDTH or height < MIN_HEIGHT:
            raise RuntimeError(
                f"Terminal too small ({width}x{height}). Need at least {MIN_WIDTH}x{MIN_HEIGHT}."
            )

        try:
            self._previous_sigwinch = signal.signal(signal.SIGWINCH, self._on_resize)
        except (ValueError, OSError):
            # Not on the main thread, or no SIGWINCH
            self._previous_sigwinch = None

        self.live = Live(
            self.tui.layout,
            console=self.console,
            screen=True,
            auto_refresh=False,
            vertical_overflow="crop",
        )
        self.live.__enter__()
        self.refresh()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._previous_sigwinch is not None:
            signal.signal(signal.SIGWINCH, self._previous_sigwinch)
            self._previous_sigwinch = None
        if self.live is not None:
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None
        self.console.show_cursor(True)

    def update_step(self, screen: Screen) -> None:
        self.tui.update_step(screen)

    def update_body(self, content: RenderableType) -> None:
        self.tui.update_body(content)

    def update_keys(self, hints: list[tuple[str, str]]) -> None:
        self.tui.update_keys(hints)

    def update_status(self, message: str, spinner: bool = False) -> None:
        self.tui.update_status(message, spinner)
        self.refresh()

    def refresh(self) -> None:
        if self.live is not None:
            self.live.refresh()

    def read_key(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Wait up to ``timeout`` seconds for a key.

        Raises:
            KeyboardInterrupt: On Ctrl+C (raw mode swallows SIGINT)
        """
        key = read_key(timeout)
        if key == CTRL_C:
            raise KeyboardInterrupt()
        return key

    def _wait_key(self, idle: Optional[Callable[[], None]]) -> Optional[str]:
        """Poll for a key, running ``idle`` whenever the poll times out"""
        key = self.read_key(IDLE_POLL)
        if key is None and idle is not None:
            idle()
        return key

    def confirm(
        self,
        message: str,
        default: bool = False,
        idle: Optional[Callable[[], None]] = None,
    ) -> bool:
        """
        Single-key yes/no question in the status line; Escape means no.

        ``idle`` runs between polls so background results keep flowing
        while the question is open.
        """
        question = f"{message} {'[Y/n]' if default else '[y/N]'}"
        while True:
            self.update_status(question)
            key = self._wait_key(idle)
            if key is None:
                continue
            if key.lower() in ('y', 'n'):
                return key.lower() == 'y'
            if key in ('\r', '\n'):
                return default
            if key.startswith(ESCAPE):
                return False

    def prompt_text(
        self,
        message: str,
        default: str = "",
        secret: bool = False,
        idle: Optional[Callable[[], None]] = None,
    ) -> Optional[str]:
        """
        Edit one line of text in the status line.

        Backspace deletes, Ctrl+U clears, Enter accepts, Escape cancels.

        Args:
            message: Prompt label
            default: Initial contents
            secret: Echo ``*`` instead of the typed characters
            idle: Called each time the key poll times out

        Returns:
            The entered text, or None if cancelled
        """
        buffer = default
        while True:
            shown = "*" * len(buffer) if secret else buffer
            self.update_status(f"{message}: {shown}_")

            key = self._wait_key(idle)
            if key is None:
                continue
            if key in ('\r', '\n'):
                return buffer
            if key.startswith(ESCAPE):
                return None
            if key in BACKSPACE_KEYS:
                buffer = buffer[:-1]
            elif key == CTRL_U:
                buffer = ""
            elif key.isprintable():
                buffer += key


def build_content(*items) -> Group:
    """Group body items; plain strings become Text"""
    return Group(*(Text(item) if isinstance(item, str) else item for item in items))
