"""
Data models and type definitions for the setup wizard
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, TypeAlias

AdapterName: TypeAlias = str
SSID: TypeAlias = str
CatalogId: TypeAlias = str
PackageId: TypeAlias = str


class OSType(Enum):
    """Supported operating systems"""
    MACOS = "darwin"
    LINUX = "linux"
    WINDOWS = "win32"


class Screen(Enum):
    """Wizard screens, in presentation order"""
    WELCOME = "welcome"
    NETWORK = "network"
    LOCALE = "locale"
    APPS = "apps"
    SUMMARY = "summary"
    FINISH = "finish"

    @property
    def title(self) -> str:
        """Human-readable screen title"""
        titles = {
            Screen.WELCOME: "Welcome",
            Screen.NETWORK: "Network Setup",
            Screen.LOCALE: "Locale Setup",
            Screen.APPS: "Available Apps",
            Screen.SUMMARY: "Summary",
            Screen.FINISH: "Setup Complete",
        }
        return titles[self]

    @property
    def position(self) -> int:
        """1-indexed position used by the progress indicator"""
        return list(Screen).index(self) + 1


@dataclass(frozen=True, slots=True)
class Application:
    """
    One catalog entry, built from a descriptor record.

    Attributes:
        id: Absolute path of the backing record (unique catalog key)
        name: Display name (defaults to the record's filename stem)
        description: Display description (may be empty)
        logo_path: Resolved absolute logo path
        package_id: Install identifier (may be empty)
    """
    id: CatalogId
    name: str
    description: str
    logo_path: str
    package_id: PackageId

    @property
    def record_path(self) -> Path:
        """Path of the descriptor this entry was built from"""
        return Path(self.id)


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Networks found by one scan, in discovery order (duplicates kept)"""
    networks: tuple[SSID, ...] = ()

    def __len__(self) -> int:
        return len(self.networks)


class AddressingMode(Enum):
    DHCP = "DHCP"
    STATIC = "Static"


@dataclass(frozen=True, slots=True)
class AddressingConfig:
    """
    Addressing chosen in the advanced network dialog.

    Static values are validated on construction; DHCP ignores them.

    Raises:
        ValueError: If a static address, gateway or DNS server is invalid
    """
    mode: AddressingMode = AddressingMode.DHCP
    address: str = ""
    gateway: str = ""
    dns: str = ""

    def __post_init__(self) -> None:
        """Validate static addressing values"""
        if self.mode is not AddressingMode.STATIC:
            return
        try:
            ipaddress.ip_interface(self.address)
            if self.gateway:
                ipaddress.ip_address(self.gateway)
            for server in self.dns_servers:
                ipaddress.ip_address(server)
        except ValueError as e:
            raise ValueError(f"Invalid static addressing: {e}") from e

    @property
    def dns_servers(self) -> list[str]:
        return [s for s in self.dns.replace(",", " ").split() if s]

    def __str__(self) -> str:
        if self.mode is AddressingMode.DHCP:
            return "DHCP"
        parts = [self.address]
        if self.gateway:
            parts.append(f"gw {self.gateway}")
        if self.dns_servers:
            parts.append(f"dns {', '.join(self.dns_servers)}")
        return "Static " + " ".join(parts)


@dataclass
class WizardSession:
    """
    Operator choices accumulated over one wizard run.

    Created once at startup with every choice empty and mutated only by
    the state machine. Nothing here is persisted across runs.
    """
    current_screen: Screen = Screen.WELCOME
    interface_choice: Optional[AdapterName] = None
    wifi_choice: Optional[SSID] = None
    wifi_password: Optional[str] = field(default=None, repr=False)
    locale_choice: Optional[str] = None
    timezone_choice: Optional[str] = None
    addressing: Optional[AddressingConfig] = None
    selected_app: Optional[Application] = None
    selected_package: Optional[PackageId] = None

    def summary_rows(self) -> list[tuple[str, str]]:
        """Rows shown on the finish screen (the password is never included)"""
        app = "None"
        if self.selected_app is not None:
            app = self.selected_app.name
            if self.selected_package:
                app += f" ({self.selected_package})"
        return [
            ("Interface", self.interface_choice or "None"),
            ("Wi-Fi", self.wifi_choice or "None"),
            ("Addressing", str(self.addressing) if self.addressing else "Default"),
            ("Language", self.locale_choice or "None"),
            ("Timezone", self.timezone_choice or "None"),
            ("Application", app),
        ]
