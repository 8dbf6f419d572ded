"""
CLI interface for the Shadowmite setup wizard
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box

from . import __version__
from .catalog import load_catalog
from .descriptors import write_starter_record
from .errors import FilesystemUnavailable
from .factory import EnumeratorFactory
from .settings import load_settings, init_config, get_config_paths, Settings


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure logging based on verbosity.

    With a log file, records go only to that file so they cannot corrupt
    the full-screen display.
    """
    level = logging.DEBUG if verbose else logging.INFO
    if log_file is not None:
        logging.basicConfig(
            level=level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            handlers=[logging.FileHandler(log_file, mode='w')],
            force=True,
        )
        return
    logging.basicConfig(
        level=level,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True,
    )


def create_parser(settings: Settings) -> argparse.ArgumentParser:
    """Create CLI argument parser with defaults from settings."""
    parser = argparse.ArgumentParser(
        prog="shadowmite-setup",
        description="Guided first-boot setup: network, locale and prescribed apps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the wizard without launching installers or rebooting
  %(prog)s --dry-run

  # Use a different app descriptor directory
  %(prog)s --apps-dir ./apps

  # List the app catalog
  %(prog)s --list-apps

  # Initialize config file
  %(prog)s --init-config
        """
    )

    # Config management
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and where it came from"
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Initialize user config file with defaults"
    )

    # Catalog management
    parser.add_argument(
        "--list-apps",
        action="store_true",
        help="List the app descriptors found in the apps directory"
    )

    parser.add_argument(
        "--create-app",
        action="store_true",
        help="Write a starter app descriptor and print its path"
    )

    parser.add_argument(
        "--apps-dir",
        type=Path,
        default=settings.apps_dir,
        help=f"Directory of app descriptors (default: {settings.apps_dir})"
    )

    # Wizard behaviour
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=settings.dry_run,
        help="Log installs, editors and reboots instead of running them"
    )

    parser.add_argument(
        "--no-sudo",
        dest="use_sudo",
        action="store_false",
        default=settings.use_sudo,
        help="Do not prefix privileged commands with sudo"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Shadowmite Setup {__version__}"
    )

    return parser


def show_config(settings: Settings) -> None:
    """Display current configuration and its sources."""
    console = Console()

    console.print("[bold cyan]Configuration Sources[/bold cyan]")
    if settings.config_sources:
        for source in settings.config_sources:
            console.print(f"  [green][OK][/green] {source}")
    else:
        console.print("  [dim]No config files found (using built-in defaults)[/dim]")

    console.print()

    console.print("[bold cyan]Config Search Paths[/bold cyan]")
    for path in get_config_paths():
        exists = "[green][OK][/green]" if path.exists() else "[dim]--[/dim]"
        console.print(f"  {exists} {path}")

    console.print()

    console.print("[bold cyan]Current Settings[/bold cyan]")
    settings_table = Table(box=box.SIMPLE)
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value", style="white")

    settings_table.add_row("apps_dir", str(settings.apps_dir))
    settings_table.add_row("scan_settle_delay", str(settings.scan_settle_delay))
    settings_table.add_row("wireless_markers", ", ".join(settings.wireless_markers))
    settings_table.add_row("use_sudo", str(settings.use_sudo))
    settings_table.add_row("dry_run", str(settings.dry_run))
    settings_table.add_row("log_file", str(settings.log_file))
    for name in ("scan", "install", "terminal", "editor", "reboot"):
        settings_table.add_row(f"commands.{name}", " ".join(getattr(settings.commands, name)))

    console.print(settings_table)


def list_apps(apps_dir: Path) -> int:
    """List the catalog of app descriptors."""
    console = Console()

    try:
        apps = load_catalog(apps_dir)
    except FilesystemUnavailable as e:
        console.print(f"[red][FAIL] {e}[/red]")
        return 1

    if not apps:
        console.print(f"[yellow]No apps found in {apps_dir}.[/yellow]")
        console.print("Run [cyan]shadowmite-setup --create-app[/cyan] to write a starter descriptor.")
        return 0

    table = Table(title=f"Apps in {apps_dir}", box=box.ROUNDED)
    table.add_column("Name", style="bold cyan")
    table.add_column("Description")
    table.add_column("Package", style="green")
    table.add_column("Descriptor", style="dim")
    for app in apps:
        table.add_row(app.name, app.description, app.package_id or "-", app.record_path.name)

    console.print(table)
    return 0


def create_app(apps_dir: Path) -> int:
    """Write a starter descriptor for the operator to fill in."""
    console = Console()
    try:
        path = write_starter_record(apps_dir)
    except FilesystemUnavailable as e:
        console.print(f"[red][FAIL] {e}[/red]")
        return 1
    console.print(f"[green][OK][/green] Created {path}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    console = Console()

    settings = load_settings()
    parser = create_parser(settings)
    args = parser.parse_args(argv)

    settings.apps_dir = args.apps_dir.expanduser()
    settings.dry_run = args.dry_run
    settings.use_sudo = args.use_sudo

    # Handle config and catalog commands first
    if args.init_config:
        setup_logging(args.verbose)
        config_path = init_config()
        if config_path:
            console.print(f"[green][OK][/green] Config file created: {config_path}")
        else:
            console.print("[yellow]Config file already exists.[/yellow]")
            console.print("Use --show-config to view current settings.")
        return 0

    if args.show_config:
        show_config(settings)
        return 0

    if args.list_apps:
        setup_logging(args.verbose)
        return list_apps(settings.apps_dir)

    if args.create_app:
        setup_logging(args.verbose)
        return create_app(settings.apps_dir)

    # Check platform support
    if not EnumeratorFactory.is_supported():
        setup_logging(args.verbose)
        logger = logging.getLogger(__name__)
        logger.error("[FAIL] Current platform is not supported")
        logger.error("Supported platforms: Linux")
        return 3

    setup_logging(args.verbose, log_file=settings.log_file)

    # Imported late so --help and config commands never touch the terminal
    from .guided_setup import GuidedSetup

    setup = GuidedSetup(settings, console=console)
    return setup.run()


if __name__ == "__main__":
    sys.exit(main())
