"""
Descriptor store: on-disk catalog records

Each record is a flat JSON object with optional string fields ``name``,
``description``, ``logo`` and ``package`` (``packageId`` is accepted as an
alias). The store owns directory creation, enumeration and the starter
template written by the "create" action.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Iterator

from .errors import FilesystemUnavailable, RecordParseError

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
PACKAGE_ALIASES = ("package", "packageId")

STARTER_RECORD: dict[str, str] = {
    "name": "New App",
    "description": "Description here",
    "logo": "logos/default.png",
    "package": "package-name",
}


def ensure_directory(directory: Path) -> Path:
    """
    Create the descriptor directory if it is missing.

    Returns:
        The directory as an absolute path

    Raises:
        FilesystemUnavailable: If the directory cannot be created
    """
    directory = Path(directory).expanduser().absolute()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemUnavailable(directory, str(e)) from e
    if not directory.is_dir():
        raise FilesystemUnavailable(directory, "not a directory")
    return directory


def iter_record_paths(directory: Path) -> Iterator[Path]:
    """
    Yield each record file in the directory at most once.

    Order is whatever the filesystem returns.

    Raises:
        FilesystemUnavailable: If the directory cannot be listed
    """
    seen: set[Path] = set()
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise FilesystemUnavailable(directory, str(e)) from e

    for entry in entries:
        if entry.suffix != RECORD_SUFFIX or entry in seen:
            continue
        if not entry.is_file():
            continue
        seen.add(entry)
        yield entry


def read_record(path: Path) -> dict[str, str]:
    """
    Parse one record into its known fields.

    Missing fields are left out of the result; unknown keys are ignored.

    Raises:
        RecordParseError: If the file is unreadable, is not a JSON object,
            or carries a non-string value for a known field
    """
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise RecordParseError(path, f"unreadable: {e}") from e
    except json.JSONDecodeError as e:
        raise RecordParseError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise RecordParseError(path, "top-level value is not an object")

    record: dict[str, str] = {}
    for key in ("name", "description", "logo"):
        if key in data:
            record[key] = _string_field(path, data, key)
    for key in PACKAGE_ALIASES:
        if key in data:
            record["package"] = _string_field(path, data, key)
            break
    return record


def _string_field(path: Path, data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise RecordParseError(path, f"field '{key}' is not a string")
    return value


def new_record_path(directory: Path, now: float | None = None) -> Path:
    """Pick an unused ``new_app_<epoch>.json`` name in the directory"""
    stamp = int(time.time() if now is None else now)
    candidate = directory / f"new_app_{stamp}{RECORD_SUFFIX}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"new_app_{stamp}_{counter}{RECORD_SUFFIX}"
        counter += 1
    return candidate


def write_starter_record(directory: Path, now: float | None = None) -> Path:
    """
    Write the starter template as a new record.

    Returns:
        Path of the created record

    Raises:
        FilesystemUnavailable: If the directory or file cannot be written
    """
    directory = ensure_directory(directory)
    path = new_record_path(directory, now)
    try:
        path.write_text(json.dumps(STARTER_RECORD, indent=4) + "\n", encoding="utf-8")
    except OSError as e:
        raise FilesystemUnavailable(directory, str(e)) from e
    logger.info(f"Created starter record {path}")
    return path
