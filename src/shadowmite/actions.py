"""
External actions launched from the wizard: editor, installer, reboot

Every action is fire-and-forget. The child runs detached with its output
discarded so it cannot disturb the full-screen display, and its exit
status is never inspected.
"""

import os
import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .config import PackageId
from .settings import Commands

logger = logging.getLogger(__name__)


def launch_detached(cmd: Sequence[str], dry_run: bool = False) -> Optional[subprocess.Popen]:
    """
    Start a command in its own session without waiting for it.

    Args:
        cmd: Command and arguments
        dry_run: If True, only log what would be run

    Returns:
        The Popen handle, or None when nothing was started
    """
    if dry_run:
        logger.info(f"[dry-run] Would run: {' '.join(cmd)}")
        return None

    try:
        process = subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Failed to launch {cmd[0]}: {e}")
        return None

    logger.info(f"Launched (pid {process.pid}): {' '.join(cmd)}")
    return process


def check_sudo_available() -> tuple[bool, bool]:
    """
    Check sudo availability without prompting.

    Returns:
        (has_access, can_have_access)
        - has_access: True if already authenticated (or running as root)
        - can_have_access: True if the user may sudo after a password
    """
    if os.geteuid() == 0:
        return (True, True)

    try:
        result = subprocess.run(
            ["sudo", "-n", "true"], capture_output=True, text=True, timeout=5
        )
        if result.returncode == 0:
            return (True, True)

        result = subprocess.run(
            ["sudo", "-n", "-l"], capture_output=True, text=True, timeout=5
        )
    except (OSError, subprocess.TimeoutExpired):
        return (False, False)

    stderr = result.stderr.lower() if result.stderr else ""
    return (False, "may not run sudo" not in stderr)


class ActionLauncher:
    """
    Runs the wizard's external actions with the configured commands.

    Attributes:
        commands: Collaborator commands from settings
        use_sudo: Prefix privileged actions with non-interactive sudo
        dry_run: Log instead of running
    """

    def __init__(self, commands: Commands, use_sudo: bool = True, dry_run: bool = False):
        self.commands = commands
        self.use_sudo = use_sudo
        self.dry_run = dry_run

    def _privileged(self, cmd: Sequence[str]) -> list[str]:
        return (["sudo", "-n"] if self.use_sudo and os.geteuid() != 0 else []) + list(cmd)

    def edit_record(self, path: Path) -> None:
        """Open a descriptor in the editor inside a terminal window"""
        if not path.exists():
            logger.warning(f"Not editing missing record {path}")
            return
        cmd = [*self.commands.terminal, "-e", *self.commands.editor, str(path)]
        launch_detached(cmd, dry_run=self.dry_run)

    def install_package(self, package: PackageId) -> None:
        """Install a package; no-op for an empty identifier"""
        if not package:
            logger.debug("No package selected, nothing to install")
            return
        launch_detached(
            self._privileged([*self.commands.install, *package.split()]), dry_run=self.dry_run
        )

    def reboot(self) -> None:
        launch_detached(self._privileged(self.commands.reboot), dry_run=self.dry_run)
