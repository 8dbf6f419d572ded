"""
Guided setup wizard with Rich TUI

Walks the operator through:
1. Welcome
2. Network (interface, Wi-Fi scan and password, advanced addressing)
3. Locale (language and timezone)
4. Apps (select, create or reload catalog entries)
5. Summary (edit the descriptor, install the package)
6. Finish (review choices, reboot or exit)

The control loop is single-threaded: it renders the current screen, waits
briefly for a key, and applies a finished Wi-Fi scan as soon as the scan
worker signals that one has been handed off.
"""

import logging
import subprocess
import threading
from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text
from rich import box

from .actions import ActionLauncher, check_sudo_available
from .config import AddressingConfig, AddressingMode, Screen, WizardSession
from .enumerators import Enumerator
from .factory import EnumeratorFactory
from .scan import ScanWorker
from .settings import Settings
from .tui import TUIApp, build_content, get_terminal_size, MIN_WIDTH, MIN_HEIGHT
from .wizard import Trigger, WizardStateMachine

POLL_INTERVAL = 0.1

# Lists longer than this are shown truncated; the prompt still accepts any entry
MAX_LISTED = 12

ENTER_KEYS = ('\r', '\n')


class GuidedSetup:
    """Interactive setup wizard driven by a WizardStateMachine"""

    def __init__(
        self,
        settings: Settings,
        console: Optional[Console] = None,
        enumerator: Optional[Enumerator] = None,
        launcher: Optional[ActionLauncher] = None,
    ):
        self.console = console or Console()
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self.tui: Optional[TUIApp] = None

        self.enumerator = enumerator or EnumeratorFactory.create(
            wireless_markers=settings.wireless_markers,
            scan_command=settings.commands.scan,
            use_sudo=settings.use_sudo,
        )
        self.launcher = launcher or ActionLauncher(
            settings.commands, use_sudo=settings.use_sudo, dry_run=settings.dry_run
        )

        # Set by the scan worker thread, cleared by the control loop
        self._scan_ready = threading.Event()
        self.scan_worker = ScanWorker(
            self.enumerator.scan_networks,
            notify=self._scan_ready.set,
            settle_delay=settings.scan_settle_delay,
        )
        self.machine = WizardStateMachine(
            session=WizardSession(),
            enumerator=self.enumerator,
            scan_worker=self.scan_worker,
            launcher=self.launcher,
            apps_dir=settings.apps_dir,
        )
        self._message = ""
        self._exit_requested = False

    @property
    def session(self) -> WizardSession:
        return self.machine.session

    # ────────────────────────────────────────────────────────────────
    # Console helpers (before and after the TUI)
    # ────────────────────────────────────────────────────────────────

    def print_success(self, message: str) -> None:
        self.console.print(f"[bold green]✓[/bold green] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[bold yellow]⚠[/bold yellow]  {message}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[bold red]✗[/bold red] {message}")

    def print_info(self, message: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {message}")

    def ensure_sudo_authenticated(self) -> bool:
        """
        Cache sudo credentials before the TUI starts.

        Scanning, installing and rebooting run through ``sudo -n``; a
        password prompt inside the full-screen display would corrupt it.

        Returns:
            True if sudo is usable without a prompt
        """
        has_access, can_have_access = check_sudo_available()
        if has_access:
            return True
        if not can_have_access:
            self.print_error("Your account doesn't have sudo privileges.")
            self.print_info("Re-run with --no-sudo to continue without privileged actions.")
            return False

        self.console.print("[yellow][WARN] Scanning and installing require sudo access[/yellow]")
        self.console.print("[dim]You will be prompted for your password...[/dim]")
        for attempt in range(3):
            try:
                result = subprocess.run(["sudo", "-v"], timeout=60)
            except subprocess.TimeoutExpired:
                self.print_error("Sudo authentication timed out")
                return False
            if result.returncode == 0:
                self.print_success("Sudo authentication successful")
                return True
            self.print_error("Sudo authentication failed")
            if attempt < 2 and not Confirm.ask("Try again?", default=True, console=self.console):
                return False
        return False

    # ────────────────────────────────────────────────────────────────
    # Control loop
    # ────────────────────────────────────────────────────────────────

    def run(self) -> int:
        """Run the wizard until the operator exits"""
        self.console.clear()
        self.console.print(Panel(
            "[bold cyan]Shadowmite Setup[/bold cyan]\n"
            "[dim]This setup wizard will guide you through the essential configuration.[/dim]",
            box=box.DOUBLE,
            border_style="cyan",
            padding=(1, 2),
        ))

        if self.settings.use_sudo and not self.settings.dry_run:
            if not self.ensure_sudo_authenticated():
                return 1

        width, height = get_terminal_size()
        if width < MIN_WIDTH or height < MIN_HEIGHT:
            self.print_error(f"Terminal too small ({width}x{height})")
            self.print_info(f"Please resize to at least {MIN_WIDTH}x{MIN_HEIGHT}")
            return 1

        try:
            with TUIApp(console=self.console) as app:
                self.tui = app
                while not self._exit_requested:
                    self.pump()
                    self.render()
                    key = app.read_key(timeout=POLL_INTERVAL)
                    if key is not None:
                        self.handle_key(key)
            self.tui = None
        except KeyboardInterrupt:
            self.tui = None
            self.console.print()
            self.print_warning("Setup cancelled by user")
            return 130
        except Exception as e:
            self.tui = None
            self.print_error(f"Unexpected error: {e}")
            self.logger.exception("Setup failed with exception")
            return 1

        self.console.print()
        self.print_success("Setup finished")
        for label, value in self.session.summary_rows():
            self.console.print(f"  {label}: [cyan]{value}[/cyan]")
        return 0

    def pump(self) -> bool:
        """Apply a handed-off scan result if the worker has signalled"""
        if not self._scan_ready.is_set():
            return False
        self._scan_ready.clear()
        return self.machine.deliver_scan_result()

    def idle(self) -> None:
        """Run between key polls of an open prompt; redraws when a scan lands"""
        if self.pump():
            self.render()

    def handle_key(self, key: str) -> None:
        """Map one key to the current screen's trigger or action"""
        self._message = ""
        key = key.lower()

        if key == 'q':
            if self.confirm("Quit setup?", default=False):
                self._exit_requested = True
            return

        match self.machine.screen:
            case Screen.WELCOME:
                if key in ENTER_KEYS or key == 'c':
                    self.machine.fire(Trigger.CONTINUE)
            case Screen.NETWORK:
                self._handle_network_key(key)
            case Screen.LOCALE:
                self._handle_locale_key(key)
            case Screen.APPS:
                self._handle_apps_key(key)
            case Screen.SUMMARY:
                self._handle_summary_key(key)
            case Screen.FINISH:
                self._handle_finish_key(key)

    def _handle_network_key(self, key: str) -> None:
        network = self.machine.network
        if key == 's':
            self.machine.fire(Trigger.SKIP)
        elif key == 'i':
            if not network.interface_enabled:
                self._message = "Please wait for the scan to finish."
                return
            adapter = self.pick("Interface", network.adapters)
            if adapter:
                self.machine.fire(Trigger.INTERFACE_CHANGED, adapter)
        elif key == 'w' and network.wifi_enabled:
            ssid = self.pick("Wi-Fi network", network.networks)
            if ssid:
                self.machine.select_wifi(ssid)
        elif key == 'p' and network.wifi_enabled:
            password = self.prompt("Password", secret=True)
            if password is not None:
                self.machine.set_wifi_password(password)
        elif key == 'a':
            self.advanced_addressing()

    def _handle_locale_key(self, key: str) -> None:
        if key == 'b':
            if not self.machine.fire(Trigger.BACK):
                self._message = "Network screen is locked while scanning."
        elif key == 'n':
            self.machine.fire(Trigger.NEXT)
        elif key == 'l':
            value = self.pick("Language", self.machine.locale.locales)
            if value:
                self.machine.select_locale(value)
        elif key == 't':
            value = self.pick("Timezone", self.machine.locale.timezones)
            if value:
                self.machine.select_timezone(value)

    def _handle_apps_key(self, key: str) -> None:
        if key == 's':
            self.machine.fire(Trigger.SKIP)
        elif key == 'r':
            self.machine.reload_catalog()
        elif key == 'c':
            path = self.machine.create_entry()
            if path:
                self._message = f"Created {path.name}"
        elif key in ENTER_KEYS or key.isdigit():
            apps = list(self.machine.apps.catalog)
            default = key if key.isdigit() else ""
            choice = self.pick("App number", [app.id for app in apps], labels=[a.name for a in apps],
                               default=default)
            if choice:
                self.machine.fire(Trigger.ENTRY_SELECTED, choice)

    def _handle_summary_key(self, key: str) -> None:
        if key == 'b':
            self.machine.fire(Trigger.BACK)
        elif key == 'e':
            if not self.machine.edit_selected():
                self._message = "Descriptor no longer exists."
        elif key == 'i':
            package = self.session.selected_package
            if not package:
                self._message = "No package to install."
            elif self.confirm(f"Install {package}?", default=True):
                self.machine.install_selected()
                self._message = f"Installing {package}..."

    def _handle_finish_key(self, key: str) -> None:
        if key == 'x':
            self._exit_requested = True
        elif key == 'r':
            if self.confirm("Reboot now?", default=False):
                self.machine.reboot()
                self._exit_requested = True

    # ────────────────────────────────────────────────────────────────
    # Prompts
    # ────────────────────────────────────────────────────────────────

    def confirm(self, message: str, default: bool = False) -> bool:
        if self.tui is None:
            return True
        return self.tui.confirm(message, default=default, idle=self.idle)

    def prompt(self, message: str, default: str = "", secret: bool = False) -> Optional[str]:
        if self.tui is None:
            return None
        return self.tui.prompt_text(message, default=default, secret=secret, idle=self.idle)

    def pick(
        self,
        message: str,
        options: Sequence[str],
        labels: Optional[Sequence[str]] = None,
        default: str = "",
    ) -> Optional[str]:
        """
        Ask for one option by 1-based number or by exact value.

        Returns:
            The chosen option, or None if cancelled or not an option
        """
        if not options:
            self._message = f"No {message.lower()} available."
            return None
        answer = self.prompt(f"{message} (number or name)", default=default)
        if answer is None:
            return None
        return self.resolve_choice(answer, options, labels)

    def resolve_choice(
        self,
        answer: str,
        options: Sequence[str],
        labels: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        if answer in options:
            return answer
        if labels and answer in labels:
            return options[list(labels).index(answer)]
        self._message = f"'{answer}' is not a valid choice."
        return None

    def advanced_addressing(self) -> None:
        """Advanced dialog: DHCP or static address, gateway and DNS"""
        mode = self.pick("IP mode", [m.value for m in AddressingMode], default="1")
        if mode is None:
            return
        if mode == AddressingMode.DHCP.value:
            self.machine.configure_addressing(AddressingConfig())
            return

        address = self.prompt("IP address (e.g. 192.168.1.20/24)")
        if address is None:
            return
        gateway = self.prompt("Gateway") or ""
        dns = self.prompt("DNS servers") or ""
        try:
            addressing = AddressingConfig(AddressingMode.STATIC, address, gateway, dns)
        except ValueError as e:
            self._message = str(e)
            return
        self.machine.configure_addressing(addressing)

    # ────────────────────────────────────────────────────────────────
    # Rendering
    # ────────────────────────────────────────────────────────────────

    def render(self) -> None:
        if self.tui is None:
            return
        screen = self.machine.screen
        renderers = {
            Screen.WELCOME: self._render_welcome,
            Screen.NETWORK: self._render_network,
            Screen.LOCALE: self._render_locale,
            Screen.APPS: self._render_apps,
            Screen.SUMMARY: self._render_summary,
            Screen.FINISH: self._render_finish,
        }
        body, keys, status = renderers[screen]()
        self.tui.update_step(screen)
        self.tui.update_body(body)
        self.tui.update_keys(keys + [("q", "Quit")])
        self.tui.update_status(self._message or status, spinner=self.machine.scanning)
        self.tui.refresh()

    def _render_welcome(self):
        body = build_content(
            Text("Welcome to Shadowmite", style="bold cyan"),
            Text(""),
            "This setup wizard will guide you through the essential configuration:",
            "  • Network interface and Wi-Fi",
            "  • Language and timezone",
            "  • Prescribed applications",
        )
        return body, [("Enter", "Continue")], "Press Enter to begin."

    def _render_network(self):
        network = self.machine.network
        session = self.session

        adapters = Table(title="Interfaces", box=box.SIMPLE)
        adapters.add_column("#", style="dim", justify="right")
        adapters.add_column("Interface", style="cyan")
        adapters.add_column("Kind")
        for i, name in enumerate(network.adapters, 1):
            marker = " ◀" if name == session.interface_choice else ""
            kind = "Wi-Fi" if self.enumerator.is_wireless(name) else "Ethernet"
            adapters.add_row(str(i), name + marker, kind)

        wifi_style = "white" if network.wifi_enabled else "dim"
        items = [adapters, Text("Wi-Fi", style=f"bold {wifi_style}")]
        for i, ssid in enumerate(network.networks[:MAX_LISTED], 1):
            marker = " ◀" if ssid == session.wifi_choice else ""
            items.append(Text(f"  {i:>2}. {ssid}{marker}", style=wifi_style))
        if len(network.networks) > MAX_LISTED:
            items.append(Text(f"  ... {len(network.networks) - MAX_LISTED} more", style="dim"))
        items.append(Text(f"  Password: {'set' if session.wifi_password else 'not set'}", style=wifi_style))
        if session.addressing:
            items.append(Text(f"Addressing: {session.addressing}", style="cyan"))

        keys = []
        if network.interface_enabled:
            keys.append(("i", "Interface"))
        if network.wifi_enabled:
            keys.extend([("w", "Wi-Fi"), ("p", "Password")])
        keys.extend([("a", "Advanced..."), ("s", "Skip")])
        return build_content(*items), keys, network.status

    def _render_locale(self):
        locale = self.machine.locale
        session = self.session
        table = Table(box=box.SIMPLE)
        table.add_column("Setting", style="cyan")
        table.add_column("Choice")
        table.add_column("Available", style="dim", justify="right")
        table.add_row("Language", session.locale_choice or "-", str(len(locale.locales)))
        table.add_row("Timezone", session.timezone_choice or "-", str(len(locale.timezones)))

        preview = ", ".join(locale.locales[:MAX_LISTED])
        body = build_content(
            Text("Choose your preferred language and timezone.", style="bold"),
            Text(""),
            table,
            Text(f"Languages: {preview}" if preview else "", style="dim"),
        )
        keys = [("l", "Language"), ("t", "Timezone")]
        if self.machine.can_fire(Trigger.BACK):
            keys.append(("b", "Back"))
        keys.append(("n", "Next"))
        return body, keys, locale.status or "Select language and timezone."

    def _render_apps(self):
        apps = self.machine.apps
        table = Table(title="Available Apps", box=box.ROUNDED)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Name", style="bold cyan")
        table.add_column("Description")
        table.add_column("Package", style="green")
        for i, app in enumerate(apps.catalog, 1):
            table.add_row(str(i), app.name, app.description, app.package_id or "-")

        items = [Text("Select an app, create a new one, or reload the list.", style="bold"), Text("")]
        if apps.unavailable:
            items.append(Panel(Text(apps.status, style="bold red"), border_style="red", box=box.HEAVY))
        else:
            items.append(table)
        keys = [("#", "Select"), ("r", "Reload"), ("c", "Create"), ("s", "Skip")]
        return build_content(*items), keys, apps.status

    def _render_summary(self):
        app = self.session.selected_app
        table = Table(box=box.SIMPLE)
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        if app is not None:
            table.add_row("Name", app.name)
            table.add_row("Description", app.description)
            table.add_row("Package", self.session.selected_package or "-")
            table.add_row("Logo", app.logo_path)
            table.add_row("Descriptor", app.id)
        keys = [("e", "Edit JSON"), ("i", "Install"), ("b", "Back")]
        return build_content(Text("Summary:", style="bold"), Text(""), table), keys, "Review the selected app."

    def _render_finish(self):
        table = Table(title="Your choices", box=box.HEAVY_EDGE)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for label, value in self.session.summary_rows():
            table.add_row(label, value)
        body = build_content(
            Text("Setup Complete", style="bold green"),
            Text("Your system is ready to use."),
            Text(""),
            table,
        )
        return body, [("r", "Reboot"), ("x", "Exit")], "Setup complete!"
