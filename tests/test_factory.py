"""
Tests for factory pattern
"""

import pytest
from unittest.mock import patch

from shadowmite.config import OSType
from shadowmite.enumerators import LinuxSystemEnumerator
from shadowmite.factory import EnumeratorFactory


class TestEnumeratorFactory:
    """Test factory pattern implementation"""

    @patch('platform.system')
    def test_create_linux_enumerator(self, mock_system):
        """Test factory creates Linux enumerator"""
        mock_system.return_value = "Linux"
        enumerator = EnumeratorFactory.create()
        assert isinstance(enumerator, LinuxSystemEnumerator)

    @patch('platform.system')
    def test_create_unsupported_os(self, mock_system):
        """Test factory raises error for unknown OS"""
        mock_system.return_value = "FreeBSD"
        with pytest.raises(NotImplementedError, match="not supported"):
            EnumeratorFactory.create()

    def test_create_passes_options(self):
        """Test options reach the enumerator"""
        enumerator = EnumeratorFactory.create(
            OSType.LINUX, wireless_markers=["wl"], scan_command=["iw"], use_sudo=True
        )
        assert enumerator.wireless_markers == ("wl",)
        assert enumerator.scan_command == ("iw",)
        assert enumerator.use_sudo

    def test_create_macos_not_supported(self):
        """Test macOS raises NotImplementedError"""
        with pytest.raises(NotImplementedError, match="Macos is not supported"):
            EnumeratorFactory.create(OSType.MACOS)

    def test_create_windows_not_supported(self):
        """Test Windows raises NotImplementedError"""
        with pytest.raises(NotImplementedError, match="Windows is not supported"):
            EnumeratorFactory.create(OSType.WINDOWS)

    @patch('platform.system')
    def test_is_supported_linux(self, mock_system):
        """Test Linux is supported"""
        mock_system.return_value = "Linux"
        assert EnumeratorFactory.is_supported()

    @patch('platform.system')
    def test_is_supported_macos(self, mock_system):
        """Test macOS is not supported"""
        mock_system.return_value = "Darwin"
        assert not EnumeratorFactory.is_supported()

    @patch('platform.system')
    def test_is_supported_unknown_os(self, mock_system):
        """Test unknown OS is not supported"""
        mock_system.return_value = "FreeBSD"
        assert not EnumeratorFactory.is_supported()

    def test_detect_os_windows(self):
        """Test OS detection for Windows"""
        with patch('platform.system', return_value="Windows"):
            assert EnumeratorFactory._detect_os() == OSType.WINDOWS
