"""
Wizard state machine

Holds the current screen and the operator's accumulated choices, and
mediates every transition:

    Welcome ──continue──► Network ──skip──► Locale ──next──► Apps ──select──► Summary
                           ▲   │  ◄──back───                 │  ◄───back────────┘
                           └───┘ interface changed           └──skip──► Finish

Triggers with no edge from the current screen are ignored. Entering Apps
always reloads the catalog from disk; choosing a wireless interface
starts a background scan whose result is applied by
``deliver_scan_result`` on the control loop.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .actions import ActionLauncher
from .catalog import Catalog
from .config import AdapterName, AddressingConfig, CatalogId, SSID, Screen, WizardSession
from .descriptors import write_starter_record
from .enumerators import Enumerator
from .errors import EnumerationUnavailable, FilesystemUnavailable, IllegalTransition
from .scan import ScanWorker

logger = logging.getLogger(__name__)


class Trigger(Enum):
    """Operator actions that may move the wizard between screens"""
    CONTINUE = "continue"
    SKIP = "skip"
    BACK = "back"
    NEXT = "next"
    INTERFACE_CHANGED = "interface_changed"
    ENTRY_SELECTED = "entry_selected"


TRANSITIONS: dict[tuple[Screen, Trigger], Screen] = {
    (Screen.WELCOME, Trigger.CONTINUE): Screen.NETWORK,
    (Screen.NETWORK, Trigger.SKIP): Screen.LOCALE,
    (Screen.NETWORK, Trigger.INTERFACE_CHANGED): Screen.NETWORK,
    (Screen.LOCALE, Trigger.BACK): Screen.NETWORK,
    (Screen.LOCALE, Trigger.NEXT): Screen.APPS,
    (Screen.APPS, Trigger.ENTRY_SELECTED): Screen.SUMMARY,
    (Screen.APPS, Trigger.SKIP): Screen.FINISH,
    (Screen.SUMMARY, Trigger.BACK): Screen.APPS,
}

STATUS_SELECT_INTERFACE = "Select your interface."
STATUS_SCANNING = "Scanning Wi-Fi..."
STATUS_SELECT_WIFI = "Select Wi-Fi and enter password."
STATUS_NO_NETWORKS = "No networks found."
STATUS_ETHERNET = "Ethernet selected."


@dataclass
class NetworkScreenState:
    """UI-facing state of the network screen (control loop only)"""
    adapters: list[AdapterName] = field(default_factory=list)
    networks: list[SSID] = field(default_factory=list)
    interface_enabled: bool = True
    wifi_enabled: bool = False
    status: str = STATUS_SELECT_INTERFACE
    built: bool = False


@dataclass
class LocaleScreenState:
    locales: list[str] = field(default_factory=list)
    timezones: list[str] = field(default_factory=list)
    status: str = ""
    built: bool = False


@dataclass
class AppsScreenState:
    catalog: Catalog = field(default_factory=Catalog)
    status: str = ""
    unavailable: bool = False


class WizardStateMachine:
    """
    Single owner of the WizardSession.

    All methods must be called from the control loop. The scan worker
    only ever hands results back through its channel.

    Attributes:
        session: Operator choices, mutated only here
        network: Network screen state (adapters, networks, input enablement)
        locale: Locale screen state
        apps: Loaded catalog and its status line
    """

    def __init__(
        self,
        session: WizardSession,
        enumerator: Enumerator,
        scan_worker: ScanWorker,
        launcher: ActionLauncher,
        apps_dir: Path,
        catalog_loader: Callable[[Path], Catalog] = Catalog.load,
    ):
        self.session = session
        self.enumerator = enumerator
        self.scan_worker = scan_worker
        self.launcher = launcher
        self.apps_dir = Path(apps_dir)
        self._load_catalog = catalog_loader

        self.network = NetworkScreenState()
        self.locale = LocaleScreenState()
        self.apps = AppsScreenState()

    @property
    def screen(self) -> Screen:
        return self.session.current_screen

    @property
    def scanning(self) -> bool:
        return self.scan_worker.scanning

    # ────────────────────────────────────────────────────────────────
    # Transitions
    # ────────────────────────────────────────────────────────────────

    def can_fire(self, trigger: Trigger, payload: Optional[str] = None) -> bool:
        """Check whether a trigger would be taken right now, guards included"""
        try:
            self._target(trigger, payload)
        except IllegalTransition:
            return False
        return True

    def fire(self, trigger: Trigger, payload: Optional[str] = None) -> bool:
        """
        Apply a trigger to the current screen.

        Args:
            trigger: Operator action
            payload: Adapter name for INTERFACE_CHANGED, catalog id for
                ENTRY_SELECTED; ignored otherwise

        Returns:
            True if the transition was taken, False if it was ignored
        """
        try:
            target = self._target(trigger, payload)
        except IllegalTransition as e:
            logger.debug(f"Ignored: {e}")
            return False

        match trigger:
            case Trigger.INTERFACE_CHANGED:
                self._change_interface(payload or "")
            case Trigger.ENTRY_SELECTED:
                self._select_entry(payload or "")

        if target is not self.screen:
            logger.info(f"Screen {self.screen.value} -> {target.value}")
            self.session.current_screen = target
            self._enter(target)
        return True

    def _target(self, trigger: Trigger, payload: Optional[str]) -> Screen:
        """
        Resolve the destination screen, enforcing disabled controls.

        Raises:
            IllegalTransition: If there is no edge or its control is disabled
        """
        source = self.screen
        target = TRANSITIONS.get((source, trigger))
        if target is None:
            raise IllegalTransition(f"no '{trigger.value}' edge from {source.value}")

        if trigger is Trigger.INTERFACE_CHANGED:
            if not self.network.interface_enabled:
                raise IllegalTransition("interface selection disabled while scanning")
            if not payload:
                raise IllegalTransition("no interface given")
            if self.network.adapters and payload not in self.network.adapters:
                raise IllegalTransition(f"unknown interface {payload}")
        elif trigger is Trigger.ENTRY_SELECTED:
            if payload is None or payload not in self.apps.catalog:
                raise IllegalTransition(f"unknown catalog entry {payload}")
        elif target is Screen.NETWORK and self.scanning:
            raise IllegalTransition("network screen locked while scanning")

        return target

    def _enter(self, screen: Screen) -> None:
        match screen:
            case Screen.NETWORK:
                self._build_network()
            case Screen.LOCALE:
                self._build_locale()
            case Screen.APPS:
                self.reload_catalog()
            case Screen.FINISH:
                for label, value in self.session.summary_rows():
                    logger.info(f"Finish summary: {label}: {value}")

    # ────────────────────────────────────────────────────────────────
    # Network screen
    # ────────────────────────────────────────────────────────────────

    def _build_network(self) -> None:
        if self.network.built:
            return
        try:
            self.network.adapters = list(self.enumerator.list_adapters())
        except EnumerationUnavailable as e:
            logger.warning(f"Adapter enumerator unavailable: {e}")
            self.network.adapters = []
        if not self.network.adapters:
            self.network.status = "No network adapters found."
        self.network.built = True

    def _change_interface(self, adapter: AdapterName) -> None:
        self.session.interface_choice = adapter

        if self.enumerator.is_wireless(adapter):
            self.network.interface_enabled = False
            self.network.wifi_enabled = False
            self.network.status = STATUS_SCANNING
            self.scan_worker.begin_scan()
        else:
            self.session.wifi_choice = None
            self.session.wifi_password = None
            self.network.wifi_enabled = False
            self.network.status = STATUS_ETHERNET

    def deliver_scan_result(self) -> bool:
        """
        Apply a finished scan, if one has been handed off.

        Replaces the network list, re-enables the dependent inputs and
        updates the status line.

        Returns:
            True if a result was applied
        """
        result = self.scan_worker.collect()
        if result is None:
            return False

        self.network.networks = list(result.networks)
        self.network.interface_enabled = True
        self.network.wifi_enabled = True
        self.network.status = STATUS_SELECT_WIFI if result.networks else STATUS_NO_NETWORKS
        return True

    def select_wifi(self, ssid: SSID) -> bool:
        """Choose a scanned network (only while wifi inputs are enabled)"""
        if self.screen is not Screen.NETWORK or not self.network.wifi_enabled:
            return False
        if ssid not in self.network.networks:
            return False
        self.session.wifi_choice = ssid
        return True

    def set_wifi_password(self, password: str) -> bool:
        if self.screen is not Screen.NETWORK or not self.network.wifi_enabled:
            return False
        self.session.wifi_password = password
        return True

    def configure_addressing(self, addressing: AddressingConfig) -> bool:
        """Record the advanced dialog's addressing choice"""
        if self.screen is not Screen.NETWORK:
            return False
        self.session.addressing = addressing
        logger.info(f"Addressing for {self.session.interface_choice or 'no interface'}: {addressing}")
        return True

    # ────────────────────────────────────────────────────────────────
    # Locale screen
    # ────────────────────────────────────────────────────────────────

    def _build_locale(self) -> None:
        if self.locale.built:
            return
        missing = []
        try:
            self.locale.locales = list(self.enumerator.list_locales())
        except EnumerationUnavailable as e:
            logger.warning(f"Locale enumerator unavailable: {e}")
        try:
            self.locale.timezones = list(self.enumerator.list_timezones())
        except EnumerationUnavailable as e:
            logger.warning(f"Timezone enumerator unavailable: {e}")

        if not self.locale.locales:
            missing.append("languages")
        if not self.locale.timezones:
            missing.append("timezones")
        if missing:
            self.locale.status = f"No {' or '.join(missing)} found."
        self.locale.built = True

    def select_locale(self, value: str) -> bool:
        if self.screen is not Screen.LOCALE or value not in self.locale.locales:
            return False
        self.session.locale_choice = value
        return True

    def select_timezone(self, value: str) -> bool:
        if self.screen is not Screen.LOCALE or value not in self.locale.timezones:
            return False
        self.session.timezone_choice = value
        return True

    # ────────────────────────────────────────────────────────────────
    # Apps and summary screens
    # ────────────────────────────────────────────────────────────────

    def reload_catalog(self) -> None:
        """
        Replace the catalog with a fresh load from disk.

        A missing or unusable directory empties the catalog and is reported
        in the status line. The current selection is left untouched.
        """
        try:
            catalog = self._load_catalog(self.apps_dir)
        except FilesystemUnavailable as e:
            logger.error(str(e))
            self.apps = AppsScreenState(status=f"Apps unavailable: {e.reason} ({e.directory})",
                                        unavailable=True)
            return

        if len(catalog):
            status = f"{len(catalog)} apps available."
        else:
            status = f"No apps found in {self.apps_dir}. Create one to get started."
        self.apps = AppsScreenState(catalog=catalog, status=status)

    def _select_entry(self, app_id: CatalogId) -> None:
        app = self.apps.catalog.get(app_id)
        self.session.selected_app = app
        self.session.selected_package = app.package_id if app else None

    def create_entry(self) -> Optional[Path]:
        """
        Write a starter record, open it for editing and reload.

        Returns:
            Path of the new record, or None if it could not be written
        """
        if self.screen is not Screen.APPS:
            return None
        try:
            path = write_starter_record(self.apps_dir)
        except FilesystemUnavailable as e:
            logger.error(str(e))
            self.apps.status = f"Could not create app: {e.reason}"
            self.apps.unavailable = True
            return None

        self.launcher.edit_record(path)
        self.reload_catalog()
        return path

    def edit_selected(self) -> bool:
        """Open the selected entry's record in the editor"""
        app = self.session.selected_app
        if self.screen is not Screen.SUMMARY or app is None:
            return False
        if not app.record_path.exists():
            return False
        self.launcher.edit_record(app.record_path)
        return True

    def install_selected(self) -> bool:
        """Run the installer for the selected package"""
        package = self.session.selected_package
        if self.screen is not Screen.SUMMARY or not package:
            return False
        self.launcher.install_package(package)
        return True

    # ────────────────────────────────────────────────────────────────
    # Finish screen
    # ────────────────────────────────────────────────────────────────

    def reboot(self) -> bool:
        if self.screen is not Screen.FINISH:
            return False
        self.launcher.reboot()
        return True
