"""
Pytest configuration and shared fixtures
"""

import json
import threading

import pytest
from unittest.mock import MagicMock

from shadowmite.actions import ActionLauncher
from shadowmite.config import WizardSession
from shadowmite.errors import EnumerationUnavailable
from shadowmite.scan import ScanWorker
from shadowmite.wizard import WizardStateMachine


class FakeEnumerator:
    """In-memory enumerator with the wizard's enumeration surface"""

    def __init__(self, adapters=None, locales=None, timezones=None, networks=None):
        self.adapters = ["eth0", "wlan0"] if adapters is None else adapters
        self.locales = ["C.UTF-8", "en_US.UTF-8"] if locales is None else locales
        self.timezones = ["Europe/Berlin", "UTC"] if timezones is None else timezones
        self.networks = ["HomeNet", "Cafe"] if networks is None else networks
        self.scan_calls = 0

    def list_adapters(self):
        return list(self.adapters)

    def list_locales(self):
        return list(self.locales)

    def list_timezones(self):
        return list(self.timezones)

    def scan_networks(self):
        self.scan_calls += 1
        if self.networks is EnumerationUnavailable:
            raise EnumerationUnavailable("nmcli: not found")
        return list(self.networks)

    def is_wireless(self, adapter):
        return "wlan" in adapter.lower() or "wifi" in adapter.lower()


@pytest.fixture
def apps_dir(tmp_path):
    """Empty descriptor directory"""
    directory = tmp_path / "apps"
    directory.mkdir()
    return directory


@pytest.fixture
def write_record(apps_dir):
    """Write a JSON descriptor into apps_dir and return its path"""
    def _write(filename, data):
        path = apps_dir / filename
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path
    return _write


@pytest.fixture
def fake_enumerator() -> FakeEnumerator:
    """Enumerator with one wired and one wireless adapter"""
    return FakeEnumerator()


@pytest.fixture
def mock_launcher():
    """Launcher that records calls instead of starting processes"""
    return MagicMock(spec=ActionLauncher)


@pytest.fixture
def scan_done() -> threading.Event:
    """Set by the scan worker when a result has been handed off"""
    return threading.Event()


@pytest.fixture
def machine(fake_enumerator, mock_launcher, apps_dir, scan_done) -> WizardStateMachine:
    """State machine wired to fakes, with no scan settle delay"""
    worker = ScanWorker(fake_enumerator.scan_networks, notify=scan_done.set, settle_delay=0)
    return WizardStateMachine(
        session=WizardSession(),
        enumerator=fake_enumerator,
        scan_worker=worker,
        launcher=mock_launcher,
        apps_dir=apps_dir,
    )
