"""
Factory pattern for creating platform-specific system enumerators
"""

import platform
import logging
from typing import Optional, Sequence

from .config import OSType
from .enumerators import (
    DEFAULT_SCAN_COMMAND, DEFAULT_WIRELESS_MARKERS,
    LinuxSystemEnumerator, SystemEnumerator,
)

logger = logging.getLogger(__name__)


class EnumeratorFactory:
    """
    Factory for creating platform-specific enumerators.

    Example:
        >>> enumerator = EnumeratorFactory.create()
        >>> adapters = enumerator.list_adapters()
    """

    @staticmethod
    def create(
        os_type: Optional[OSType] = None,
        wireless_markers: Sequence[str] = DEFAULT_WIRELESS_MARKERS,
        scan_command: Sequence[str] = DEFAULT_SCAN_COMMAND,
        use_sudo: bool = False,
    ) -> SystemEnumerator:
        """
        Create the enumerator for the specified or current platform.

        Args:
            os_type: Optional OS type. If None, auto-detect from platform.
            wireless_markers: Substrings marking an adapter as wireless
            scan_command: Command listing visible SSIDs one per line
            use_sudo: Run the scan command through non-interactive sudo

        Returns:
            Platform-specific SystemEnumerator implementation

        Raises:
            NotImplementedError: If platform is not supported
        """
        if os_type is None:
            os_type = EnumeratorFactory._detect_os()

        match os_type:
            case OSType.LINUX:
                logger.info(f"Creating Linux enumerator (sudo: {use_sudo})")
                return LinuxSystemEnumerator(
                    wireless_markers=wireless_markers,
                    scan_command=scan_command,
                    use_sudo=use_sudo,
                )

            case OSType.MACOS | OSType.WINDOWS:
                raise NotImplementedError(
                    f"{os_type.name.title()} is not supported. "
                    "The setup wizard targets Linux images."
                )

            case _:
                raise NotImplementedError(f"OS type {os_type} not supported")

    @staticmethod
    def _detect_os() -> OSType:
        """
        Auto-detect current operating system.

        Raises:
            NotImplementedError: If OS is not recognized
        """
        system = platform.system().lower()

        if system == "darwin":
            return OSType.MACOS
        elif system == "linux":
            return OSType.LINUX
        elif system in ("win32", "windows"):
            return OSType.WINDOWS
        else:
            raise NotImplementedError(
                f"Platform '{system}' not supported. "
                f"Supported platforms: Linux"
            )

    @staticmethod
    def is_supported(os_type: Optional[OSType] = None) -> bool:
        """Check if platform is supported"""
        try:
            if os_type is None:
                os_type = EnumeratorFactory._detect_os()
            return os_type == OSType.LINUX
        except NotImplementedError:
            return False
