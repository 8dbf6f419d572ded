"""
Tests for the wizard state machine
"""

import pytest

from shadowmite.config import AddressingConfig, AddressingMode, Screen
from shadowmite.errors import EnumerationUnavailable
from shadowmite.wizard import (
    STATUS_ETHERNET, STATUS_NO_NETWORKS, STATUS_SCANNING, STATUS_SELECT_WIFI,
    TRANSITIONS, Trigger,
)

WAIT = 5

ILLEGAL_PAIRS = [
    (screen, trigger)
    for screen in Screen
    for trigger in Trigger
    if (screen, trigger) not in TRANSITIONS
]


def go_to(machine, screen):
    """Drive a fresh machine forward along the happy path"""
    path = [
        (Screen.NETWORK, Trigger.CONTINUE),
        (Screen.LOCALE, Trigger.SKIP),
        (Screen.APPS, Trigger.NEXT),
    ]
    for target, trigger in path:
        if machine.screen is screen:
            return
        assert machine.fire(trigger)
        assert machine.screen is target
    assert machine.screen is screen


def finish_scan(machine, scan_done):
    assert scan_done.wait(WAIT), "scan worker never delivered"
    scan_done.clear()
    assert machine.deliver_scan_result()


class TestTransitions:
    """Test the transition table"""

    def test_happy_path(self, machine, write_record):
        """Test the forward path through every screen"""
        path = write_record("foo.json", {"name": "Foo", "package": "foo-pkg"})
        go_to(machine, Screen.APPS)
        assert machine.fire(Trigger.ENTRY_SELECTED, str(path))
        assert machine.screen is Screen.SUMMARY
        assert machine.fire(Trigger.BACK)
        assert machine.screen is Screen.APPS
        assert machine.fire(Trigger.SKIP)
        assert machine.screen is Screen.FINISH

    @pytest.mark.parametrize("screen,trigger", ILLEGAL_PAIRS,
                             ids=[f"{s.value}-{t.value}" for s, t in ILLEGAL_PAIRS])
    def test_undefined_edges_are_ignored(self, machine, screen, trigger):
        """Test a trigger with no edge leaves the session unchanged"""
        machine.session.current_screen = screen
        assert not machine.can_fire(trigger)
        assert not machine.fire(trigger, "eth0")
        assert machine.screen is screen
        assert machine.session.interface_choice is None
        assert machine.session.selected_app is None

    def test_locale_back_returns_to_network(self, machine):
        """Test Locale back re-enters Network without rebuilding it"""
        go_to(machine, Screen.LOCALE)
        machine.network.adapters.append("usb0")
        assert machine.fire(Trigger.BACK)
        assert machine.screen is Screen.NETWORK
        assert "usb0" in machine.network.adapters


class TestNetworkScreen:
    """Test interface selection and Wi-Fi scanning"""

    def test_adapters_built_on_entry(self, machine):
        """Test adapters are listed when Network is entered"""
        go_to(machine, Screen.NETWORK)
        assert machine.network.adapters == ["eth0", "wlan0"]
        assert machine.network.interface_enabled
        assert not machine.network.wifi_enabled

    def test_no_adapters(self, machine, fake_enumerator):
        """Test an empty adapter list is reported"""
        fake_enumerator.adapters = []
        go_to(machine, Screen.NETWORK)
        assert machine.network.status == "No network adapters found."

    def test_adapter_enumerator_unavailable(self, machine, fake_enumerator):
        """Test an unavailable enumerator degrades to an empty list"""
        def unavailable():
            raise EnumerationUnavailable("sysfs missing")
        fake_enumerator.list_adapters = unavailable
        go_to(machine, Screen.NETWORK)
        assert machine.network.adapters == []

    def test_wired_selection(self, machine, fake_enumerator):
        """Test choosing a wired adapter clears Wi-Fi and does not scan"""
        go_to(machine, Screen.NETWORK)
        machine.session.wifi_choice = "Old"
        machine.session.wifi_password = "secret"

        assert machine.fire(Trigger.INTERFACE_CHANGED, "eth0")

        assert machine.session.interface_choice == "eth0"
        assert machine.session.wifi_choice is None
        assert machine.session.wifi_password is None
        assert not machine.network.wifi_enabled
        assert machine.network.status == STATUS_ETHERNET
        assert not machine.scanning
        assert fake_enumerator.scan_calls == 0

    def test_wireless_selection_scans(self, machine, scan_done):
        """Test choosing a wireless adapter scans and locks the inputs"""
        go_to(machine, Screen.NETWORK)

        assert machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")
        assert machine.scanning
        assert not machine.network.interface_enabled
        assert not machine.network.wifi_enabled
        assert machine.network.status == STATUS_SCANNING

        finish_scan(machine, scan_done)

        assert machine.network.networks == ["HomeNet", "Cafe"]
        assert machine.network.interface_enabled
        assert machine.network.wifi_enabled
        assert machine.network.status == STATUS_SELECT_WIFI
        assert not machine.scanning

    def test_empty_scan(self, machine, fake_enumerator, scan_done):
        """Test an empty scan re-enables inputs with a notice"""
        fake_enumerator.networks = []
        go_to(machine, Screen.NETWORK)
        machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")
        finish_scan(machine, scan_done)
        assert machine.network.networks == []
        assert machine.network.wifi_enabled
        assert machine.network.status == STATUS_NO_NETWORKS

    def test_scan_enumerator_unavailable(self, machine, fake_enumerator, scan_done):
        """Test an unavailable scan command behaves like an empty scan"""
        fake_enumerator.networks = EnumerationUnavailable
        go_to(machine, Screen.NETWORK)
        machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")
        finish_scan(machine, scan_done)
        assert machine.network.status == STATUS_NO_NETWORKS

    def test_interface_locked_while_scanning(self, machine, fake_enumerator, scan_done):
        """Test interface changes are ignored until the scan is delivered"""
        go_to(machine, Screen.NETWORK)
        machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")

        assert not machine.fire(Trigger.INTERFACE_CHANGED, "eth0")
        assert machine.session.interface_choice == "wlan0"

        finish_scan(machine, scan_done)
        assert machine.fire(Trigger.INTERFACE_CHANGED, "eth0")
        assert fake_enumerator.scan_calls == 1

    def test_unknown_interface_ignored(self, machine):
        """Test an adapter that was not listed is refused"""
        go_to(machine, Screen.NETWORK)
        assert not machine.fire(Trigger.INTERFACE_CHANGED, "eth9")
        assert not machine.fire(Trigger.INTERFACE_CHANGED, "")
        assert machine.session.interface_choice is None

    def test_skip_while_scanning_then_deliver(self, machine, scan_done):
        """Test a result is applied after leaving Network, and back is blocked until then"""
        go_to(machine, Screen.NETWORK)
        machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")
        assert machine.fire(Trigger.SKIP)
        assert machine.screen is Screen.LOCALE

        assert not machine.can_fire(Trigger.BACK)
        assert not machine.fire(Trigger.BACK)
        assert machine.screen is Screen.LOCALE

        finish_scan(machine, scan_done)
        assert machine.network.networks == ["HomeNet", "Cafe"]
        assert machine.can_fire(Trigger.BACK)
        assert machine.fire(Trigger.BACK)
        assert machine.screen is Screen.NETWORK

    def test_wifi_choice_and_password(self, machine, scan_done):
        """Test Wi-Fi inputs accept scanned networks only once enabled"""
        go_to(machine, Screen.NETWORK)
        assert not machine.select_wifi("HomeNet")
        assert not machine.set_wifi_password("pw")

        machine.fire(Trigger.INTERFACE_CHANGED, "wlan0")
        finish_scan(machine, scan_done)

        assert not machine.select_wifi("Elsewhere")
        assert machine.select_wifi("HomeNet")
        assert machine.set_wifi_password("pw")
        assert machine.session.wifi_choice == "HomeNet"
        assert machine.session.wifi_password == "pw"

    def test_configure_addressing(self, machine):
        """Test the advanced dialog result is stored on Network only"""
        addressing = AddressingConfig(AddressingMode.STATIC, "192.0.2.20/24")
        assert not machine.configure_addressing(addressing)
        go_to(machine, Screen.NETWORK)
        assert machine.configure_addressing(addressing)
        assert machine.session.addressing == addressing


class TestLocaleScreen:
    """Test language and timezone selection"""

    def test_lists_built_on_entry(self, machine):
        """Test locales and timezones are listed on entry"""
        go_to(machine, Screen.LOCALE)
        assert machine.locale.locales == ["C.UTF-8", "en_US.UTF-8"]
        assert machine.locale.timezones == ["Europe/Berlin", "UTC"]
        assert machine.locale.status == ""

    def test_select(self, machine):
        """Test listed values are accepted and others refused"""
        go_to(machine, Screen.LOCALE)
        assert machine.select_locale("en_US.UTF-8")
        assert machine.select_timezone("UTC")
        assert not machine.select_timezone("Mars/Olympus")
        assert machine.session.locale_choice == "en_US.UTF-8"
        assert machine.session.timezone_choice == "UTC"

    def test_empty_lists_reported(self, machine, fake_enumerator):
        """Test missing locales and timezones are reported"""
        fake_enumerator.locales = []
        fake_enumerator.timezones = []
        go_to(machine, Screen.LOCALE)
        assert machine.locale.status == "No languages or timezones found."


class TestAppsScreen:
    """Test catalog loading and selection"""

    def test_select_entry(self, machine, write_record):
        """Test selecting an entry moves to Summary with that entry"""
        path = write_record("foo.json", {"name": "Foo", "package": "foo-pkg"})
        go_to(machine, Screen.APPS)

        assert machine.fire(Trigger.ENTRY_SELECTED, str(path))

        assert machine.screen is Screen.SUMMARY
        assert machine.session.selected_app.id == str(path)
        assert machine.session.selected_package == "foo-pkg"

    def test_unknown_entry_ignored(self, machine):
        """Test selecting an id not in the catalog is ignored"""
        go_to(machine, Screen.APPS)
        assert not machine.fire(Trigger.ENTRY_SELECTED, "/nope.json")
        assert machine.screen is Screen.APPS

    def test_reload_on_every_entry(self, machine, write_record):
        """Test re-entering Apps picks up records added meanwhile"""
        first = write_record("a.json", {"name": "A"})
        go_to(machine, Screen.APPS)
        assert len(machine.apps.catalog) == 1
        assert machine.apps.status == "1 apps available."

        machine.fire(Trigger.ENTRY_SELECTED, str(first))
        write_record("b.json", {"name": "B"})
        machine.fire(Trigger.BACK)

        assert len(machine.apps.catalog) == 2

    def test_empty_catalog_status(self, machine, apps_dir):
        """Test an empty directory invites creating an entry"""
        go_to(machine, Screen.APPS)
        assert len(machine.apps.catalog) == 0
        assert str(apps_dir) in machine.apps.status

    def test_directory_unavailable(self, machine, tmp_path):
        """Test an unusable directory empties the catalog with a notice"""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        machine.apps_dir = blocker
        go_to(machine, Screen.APPS)
        assert machine.apps.unavailable
        assert machine.apps.status.startswith("Apps unavailable")
        assert len(machine.apps.catalog) == 0

    def test_create_entry(self, machine, mock_launcher):
        """Test create writes a starter record, opens it and reloads"""
        go_to(machine, Screen.APPS)

        path = machine.create_entry()

        assert path is not None and path.exists()
        mock_launcher.edit_record.assert_called_once_with(path)
        assert str(path) in machine.apps.catalog

    def test_create_entry_only_on_apps(self, machine, mock_launcher):
        """Test create is refused away from the Apps screen"""
        assert machine.create_entry() is None
        mock_launcher.edit_record.assert_not_called()


class TestSummaryAndFinish:
    """Test summary actions and the finish screen"""

    @pytest.fixture
    def on_summary(self, machine, write_record):
        path = write_record("foo.json", {"name": "Foo", "package": "foo-pkg"})
        go_to(machine, Screen.APPS)
        machine.fire(Trigger.ENTRY_SELECTED, str(path))
        return path

    def test_edit_selected(self, machine, mock_launcher, on_summary):
        """Test edit opens the selected record"""
        assert machine.edit_selected()
        mock_launcher.edit_record.assert_called_once_with(on_summary)

    def test_edit_deleted_record(self, machine, mock_launcher, on_summary):
        """Test edit is refused when the record was removed"""
        on_summary.unlink()
        assert not machine.edit_selected()
        mock_launcher.edit_record.assert_not_called()

    def test_install_selected(self, machine, mock_launcher, on_summary):
        """Test install runs the installer with the package id"""
        assert machine.install_selected()
        mock_launcher.install_package.assert_called_once_with("foo-pkg")

    def test_install_without_package(self, machine, mock_launcher, write_record):
        """Test install is a no-op for an entry with no package"""
        path = write_record("bare.json", {"name": "Bare"})
        go_to(machine, Screen.APPS)
        machine.fire(Trigger.ENTRY_SELECTED, str(path))
        assert not machine.install_selected()
        mock_launcher.install_package.assert_not_called()

    def test_stale_package_after_edit(self, machine, write_record, on_summary):
        """Test the selected package is kept until Apps is revisited"""
        write_record("foo.json", {"name": "Foo", "package": "other-pkg"})
        assert machine.session.selected_package == "foo-pkg"

    def test_reboot_on_finish(self, machine, mock_launcher):
        """Test reboot is only available on Finish"""
        assert not machine.reboot()
        go_to(machine, Screen.APPS)
        machine.fire(Trigger.SKIP)
        assert machine.screen is Screen.FINISH
        assert machine.reboot()
        mock_launcher.reboot.assert_called_once_with()
