"""
Catalog loader: descriptor records to display-ready applications
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence

from .config import Application, CatalogId
from .descriptors import ensure_directory, iter_record_paths, read_record
from .errors import RecordParseError

logger = logging.getLogger(__name__)

DEFAULT_LOGO = Path("logos") / "default.png"


def default_logo_path(record_dir: Path) -> Path:
    """Fallback logo kept alongside the records"""
    return record_dir / DEFAULT_LOGO


def resolve_logo(logo: str, record_dir: Path) -> str:
    """
    Resolve a record's logo reference to an absolute path.

    Applied in order:
    1. A leading ``~`` expands to the operator's home directory; the
       separator after it is optional, so ``~x.png`` and ``~/x.png`` both
       name ``$HOME/x.png`` (``~user`` forms are not supported)
    2. A relative path is taken relative to the record's directory
    3. A path that does not exist, or a ``~`` path when the home
       directory cannot be determined, falls back to ``logos/default.png``
       next to the records
    """
    if not logo:
        return str(default_logo_path(record_dir))

    path = Path(logo)
    if logo.startswith("~"):
        try:
            home = Path.home()
        except RuntimeError as e:
            logger.warning(f"Cannot expand logo {logo}: {e}")
            return str(default_logo_path(record_dir))
        path = home / logo[1:].lstrip("/")
    if not path.is_absolute():
        path = record_dir / path
    if not path.exists():
        return str(default_logo_path(record_dir))
    return str(path)


def build_application(record_path: Path) -> Application:
    """
    Build one Application from its record.

    Raises:
        RecordParseError: If the record cannot be parsed
    """
    record = read_record(record_path)
    return Application(
        id=str(record_path),
        name=record.get("name", record_path.stem),
        description=record.get("description", ""),
        logo_path=resolve_logo(record.get("logo", ""), record_path.parent),
        package_id=record.get("package", ""),
    )


def load_catalog(directory: Path) -> list[Application]:
    """
    Load every record in the directory as an Application.

    The directory is created if missing. Records that fail to parse are
    logged and skipped. The result follows directory iteration order,
    which is not sorted.

    Raises:
        FilesystemUnavailable: If the directory cannot be created or listed
    """
    directory = ensure_directory(directory)
    applications: list[Application] = []
    for record_path in iter_record_paths(directory):
        try:
            applications.append(build_application(record_path))
        except RecordParseError as e:
            logger.warning(f"Skipping catalog record: {e}")
    logger.debug(f"Loaded {len(applications)} catalog entries from {directory}")
    return applications


class Catalog:
    """
    Loaded applications keyed by catalog id.

    Replaced wholesale on every reload; entries are never patched.
    """

    def __init__(self, applications: Sequence[Application] = ()):
        self._entries: dict[CatalogId, Application] = {app.id: app for app in applications}

    @classmethod
    def load(cls, directory: Path) -> "Catalog":
        return cls(load_catalog(directory))

    def get(self, app_id: CatalogId) -> Optional[Application]:
        return self._entries.get(app_id)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._entries

    def __iter__(self) -> Iterator[Application]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
