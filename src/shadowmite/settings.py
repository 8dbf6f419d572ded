"""
Configuration loading for shadowmite-setup

Search order (later overrides earlier):
1. Built-in defaults
2. /etc/shadowmite/config.toml (system-wide)
3. ~/.config/shadowmite/config.toml (user global)
4. ./.shadowmite.toml (local directory - adjacent invocation)
5. Environment variables (SHADOWMITE_*)
6. CLI arguments (highest priority)
"""

from __future__ import annotations

import os
import shlex
import logging
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any

from .enumerators import DEFAULT_SCAN_COMMAND, DEFAULT_WIRELESS_MARKERS
from .scan import DEFAULT_SETTLE_DELAY


logger = logging.getLogger(__name__)

# Config file names
CONFIG_FILENAME = "config.toml"
LOCAL_CONFIG_FILENAME = ".shadowmite.toml"
ALT_LOCAL_CONFIG = "shadowmite.toml"

# Environment variable prefix
ENV_PREFIX = "SHADOWMITE_"


def get_config_dir() -> Path:
    """Get user config directory (XDG-compliant)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "shadowmite"
    return Path.home() / ".config" / "shadowmite"


def get_config_paths() -> list[Path]:
    """
    Return list of config paths to check, in precedence order (lowest first).

    Returns paths that WOULD be checked - caller should verify existence.
    """
    cwd = Path.cwd()
    return [
        Path("/etc/shadowmite") / CONFIG_FILENAME,
        get_config_dir() / CONFIG_FILENAME,
        cwd / LOCAL_CONFIG_FILENAME,
        cwd / ALT_LOCAL_CONFIG,
    ]


@dataclass
class Commands:
    """External collaborator commands, as argument lists."""
    scan: list[str] = field(default_factory=lambda: list(DEFAULT_SCAN_COMMAND))
    install: list[str] = field(default_factory=lambda: ["apt", "install", "-y"])
    terminal: list[str] = field(default_factory=lambda: ["x-terminal-emulator"])
    editor: list[str] = field(default_factory=lambda: ["nano"])
    reboot: list[str] = field(default_factory=lambda: ["reboot"])


@dataclass
class Settings:
    """
    Merged configuration settings from all sources.

    Attributes represent the final resolved values after merging
    all config files, environment variables, and CLI arguments.
    """
    apps_dir: Path = field(default_factory=lambda: Path.home() / "sm_conf" / "apps")
    scan_settle_delay: float = DEFAULT_SETTLE_DELAY
    wireless_markers: list[str] = field(default_factory=lambda: list(DEFAULT_WIRELESS_MARKERS))
    use_sudo: bool = True
    dry_run: bool = False
    log_file: Path = Path("/tmp/shadowmite-setup.log")

    commands: Commands = field(default_factory=Commands)

    # Metadata
    config_sources: list[str] = field(default_factory=list)


def _as_command(value: Any) -> list[str]:
    """Accept a command as a list of strings or a shell-style string."""
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"command must be a string or list of strings, got {value!r}")


def _merge_wizard(settings: Settings, data: dict[str, Any]) -> None:
    """Merge [wizard] section into settings."""
    wizard = data.get("wizard", {})

    if "apps_dir" in wizard:
        settings.apps_dir = Path(wizard["apps_dir"]).expanduser()
    if "scan_settle_delay" in wizard:
        settings.scan_settle_delay = float(wizard["scan_settle_delay"])
    if "wireless_markers" in wizard:
        settings.wireless_markers = [str(m) for m in wizard["wireless_markers"]]
    if "use_sudo" in wizard:
        settings.use_sudo = bool(wizard["use_sudo"])
    if "dry_run" in wizard:
        settings.dry_run = bool(wizard["dry_run"])
    if "log_file" in wizard:
        settings.log_file = Path(wizard["log_file"]).expanduser()


def _merge_commands(settings: Settings, data: dict[str, Any]) -> None:
    """Merge [commands] section into settings."""
    commands = data.get("commands", {})

    for name in ("scan", "install", "terminal", "editor", "reboot"):
        if name in commands:
            setattr(settings.commands, name, _as_command(commands[name]))


def _merge_config(settings: Settings, data: dict[str, Any], source: str) -> None:
    """Merge a config dict into settings."""
    _merge_wizard(settings, data)
    _merge_commands(settings, data)
    settings.config_sources.append(source)


def _apply_env_overrides(settings: Settings) -> None:
    """Apply environment variable overrides."""
    path_mappings = {
        f"{ENV_PREFIX}APPS_DIR": "apps_dir",
        f"{ENV_PREFIX}LOG_FILE": "log_file",
    }

    bool_mappings = {
        f"{ENV_PREFIX}DRY_RUN": "dry_run",
        f"{ENV_PREFIX}USE_SUDO": "use_sudo",
    }

    for env_var, attr in path_mappings.items():
        value = os.environ.get(env_var)
        if value:
            setattr(settings, attr, Path(value).expanduser())
            settings.config_sources.append(f"env:{env_var}")

    for env_var, attr in bool_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            setattr(settings, attr, value.lower() in ("1", "true", "yes"))
            settings.config_sources.append(f"env:{env_var}")

    delay = os.environ.get(f"{ENV_PREFIX}SCAN_SETTLE_DELAY")
    if delay:
        try:
            settings.scan_settle_delay = float(delay)
            settings.config_sources.append(f"env:{ENV_PREFIX}SCAN_SETTLE_DELAY")
        except ValueError:
            logger.warning(f"Ignoring non-numeric {ENV_PREFIX}SCAN_SETTLE_DELAY={delay!r}")


def load_settings() -> Settings:
    """
    Load and merge settings from all config sources.

    Returns:
        Merged Settings object with all values resolved.
    """
    settings = Settings()

    # Load from each config path that exists
    for config_path in get_config_paths():
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
                _merge_config(settings, data, str(config_path))
                logger.debug(f"Loaded config from {config_path}")
            except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load {config_path}: {e}")

    # Apply environment overrides
    _apply_env_overrides(settings)

    return settings


def ensure_config_dir() -> Path:
    """Ensure user config directory exists and return its path."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_default_config_content() -> str:
    """Return default config file content as a string."""
    return '''# Shadowmite Setup - User Configuration
# Place this file at: ~/.config/shadowmite/config.toml
# Or use a local override: ./.shadowmite.toml

[wizard]
# Directory holding one JSON descriptor per installable application
apps_dir = "~/sm_conf/apps"

# Seconds to wait before enumerating Wi-Fi networks
scan_settle_delay = 0.3

# Adapter names containing any of these are treated as wireless
wireless_markers = ["wlan", "wifi"]

# Run scan/install/reboot through sudo (authenticated before the wizard starts)
use_sudo = true

# Log external actions instead of running them
dry_run = false

log_file = "/tmp/shadowmite-setup.log"

[commands]
scan = ["nmcli", "-t", "-f", "SSID", "dev", "wifi", "list"]
install = ["apt", "install", "-y"]
terminal = ["x-terminal-emulator"]
editor = ["nano"]
reboot = ["reboot"]
'''


def init_config(force: bool = False) -> Path | None:
    """
    Initialize user config file with defaults.

    Args:
        force: If True, overwrite existing config.

    Returns:
        Path to created config file, or None if it already exists and force=False.
    """
    config_dir = ensure_config_dir()
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists() and not force:
        return None

    config_path.write_text(get_default_config_content())
    return config_path
