"""
System enumerators: adapters, locales, timezones and Wi-Fi networks

These are thin wrappers over external commands. Each returns a list of
strings (possibly empty) and raises EnumerationUnavailable only when the
command cannot be started at all.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol, Sequence

from .config import AdapterName, SSID
from .errors import EnumerationUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SCAN_COMMAND = ("nmcli", "-t", "-f", "SSID", "dev", "wifi", "list")
DEFAULT_WIRELESS_MARKERS = ("wlan", "wifi")


class Enumerator(Protocol):
    """
    Protocol for system enumeration (structural subtyping).

    Any object with these methods can back the wizard, which keeps tests
    free of real commands.
    """

    def list_adapters(self) -> Sequence[AdapterName]: ...
    def list_locales(self) -> Sequence[str]: ...
    def list_timezones(self) -> Sequence[str]: ...
    def scan_networks(self) -> Sequence[SSID]: ...
    def is_wireless(self, adapter: AdapterName) -> bool: ...


def run_lines(cmd: Sequence[str], timeout: float | None = None) -> list[str]:
    """
    Run a command and return its non-empty output lines.

    A non-zero exit is logged but whatever was printed is still returned.

    Raises:
        EnumerationUnavailable: If the command cannot be started
    """
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (FileNotFoundError, PermissionError) as e:
        raise EnumerationUnavailable(f"{cmd[0]}: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise EnumerationUnavailable(f"{cmd[0]} timed out after {timeout}s") from e

    if result.returncode != 0:
        logger.warning(f"{' '.join(cmd)} exited with {result.returncode}")
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


class SystemEnumerator(ABC):
    """
    Abstract base class for platform-specific enumeration.

    Subclasses implement the four listing methods; wireless detection by
    adapter name is shared.
    """

    def __init__(
        self,
        wireless_markers: Sequence[str] = DEFAULT_WIRELESS_MARKERS,
        scan_command: Sequence[str] = DEFAULT_SCAN_COMMAND,
        use_sudo: bool = False,
    ):
        self.wireless_markers = tuple(m.lower() for m in wireless_markers)
        self.scan_command = tuple(scan_command)
        self.use_sudo = use_sudo

    @abstractmethod
    def list_adapters(self) -> Sequence[AdapterName]:
        """
        List network adapters, loopback excluded.

        Returns:
            Adapter names
        """
        ...

    @abstractmethod
    def list_locales(self) -> Sequence[str]:
        """List installed locales"""
        ...

    @abstractmethod
    def list_timezones(self) -> Sequence[str]:
        """List known timezones"""
        ...

    @abstractmethod
    def scan_networks(self) -> Sequence[SSID]:
        """
        Enumerate visible Wi-Fi networks.

        Blocks for as long as the scan command runs; call it from the scan
        worker, never from the control loop.

        Returns:
            SSIDs in discovery order, duplicates included
        """
        ...

    def is_wireless(self, adapter: AdapterName) -> bool:
        """
        Check whether an adapter name denotes a wireless interface.

        Args:
            adapter: Adapter name (e.g., wlan0, eth0)

        Returns:
            True if any wireless marker occurs in the name
        """
        name = adapter.lower()
        return any(marker in name for marker in self.wireless_markers)

    def _privileged(self, cmd: Sequence[str]) -> list[str]:
        # -n: sudo is pre-authenticated before the TUI starts
        return (["sudo", "-n"] if self.use_sudo else []) + list(cmd)


class LinuxSystemEnumerator(SystemEnumerator):
    """
    Linux enumeration using sysfs, locale, timedatectl and nmcli.
    """

    SYSFS_NET = Path("/sys/class/net")

    def list_adapters(self) -> Sequence[AdapterName]:
        """List adapters from /sys/class/net"""
        try:
            names = sorted(p.name for p in self.SYSFS_NET.iterdir())
        except OSError as e:
            raise EnumerationUnavailable(f"{self.SYSFS_NET}: {e}") from e
        return [name for name in names if name != "lo"]

    def list_locales(self) -> Sequence[str]:
        """List locales via `locale -a`"""
        return run_lines(["locale", "-a"], timeout=10)

    def list_timezones(self) -> Sequence[str]:
        """List timezones via `timedatectl list-timezones`"""
        return run_lines(["timedatectl", "list-timezones"], timeout=10)

    def scan_networks(self) -> Sequence[SSID]:
        """Scan via nmcli; no timeout is applied"""
        return run_lines(self._privileged(self.scan_command))

