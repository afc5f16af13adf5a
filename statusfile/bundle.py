"""
Status bundles: every status file format plus checksums, and the reverse
step of picking the edited status file out of an uploaded set of files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable
import hashlib
import json

from .config_schema import merge_config
from .engine import FILENAMES, StatusFileEngine
from .errors import StatusFileError
from .grading_store import GradingStore
from .log import get_logger
from .models import Assignment

logger = get_logger(__name__)

STATUS_FILE_NAMES = (
    "status.xlsx",
    "status.csv",
    "status.xls",
    "batch_status.xlsx",
    "batch_status.csv",
)


@dataclass
class ProcessingResult:
    """Summary of an applied status upload."""

    info: str
    status_updates: int
    processed_file: str
    updated_user_ids: list[int] = field(default_factory=list)
    updated_team_ids: list[int] = field(default_factory=list)


def file_checksum(path: Path) -> dict[str, Any]:
    """md5, sha256 and size of a status file."""
    data = Path(path).read_bytes()
    return {
        "md5": hashlib.md5(data).hexdigest(),
        "sha256": hashlib.sha256(data).hexdigest(),
        "size": len(data),
        "type": "status_file",
    }


def write_status_bundle(engine: StatusFileEngine, directory: Path | str) -> dict[str, dict[str, Any]]:
    """
    Write the status file in every bundle format and a checksums file.

    Args:
        engine: An initialized engine
        directory: Target directory (created if missing)

    Returns:
        Mapping of file name to its checksum entry.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    bundle_settings = engine.config["bundle"]
    original_format = engine.format

    checksums = {}
    try:
        for fmt in bundle_settings["formats"]:
            engine.set_format(fmt)
            path = directory / engine.get_filename()
            engine.write_to_file(path)
            checksums[path.name] = file_checksum(path)
    finally:
        engine.set_format(original_format)

    checksums_path = directory / bundle_settings["checksums_file"]
    with open(checksums_path, "w", encoding="utf-8") as f:
        json.dump(checksums, f, indent=2)

    logger.info("Added status files with checksums: %s", ", ".join(checksums) or "none")
    return checksums


def load_checksums(directory: Path | str, checksums_file: str = "checksums.json") -> dict[str, dict[str, Any]]:
    """Read the checksums written with a bundle; empty when there are none."""
    path = Path(directory) / checksums_file
    if not path.is_file():
        logger.info("No %s found - checksum comparison disabled", checksums_file)
        return {}

    with open(path, "r", encoding="utf-8") as f:
        checksums = json.load(f)
    if not isinstance(checksums, dict):
        logger.warning("Ignoring malformed %s", checksums_file)
        return {}

    logger.info("Loaded %d checksums from %s", len(checksums), checksums_file)
    return checksums


def is_unchanged(path: Path | str, checksums: dict[str, dict[str, Any]]) -> bool:
    """True if the file still has the sha256 recorded when it was exported."""
    path = Path(path)
    entry = checksums.get(path.name)
    if not entry or "sha256" not in entry:
        return False
    return file_checksum(path)["sha256"] == entry["sha256"]


def find_status_files(paths: Iterable[Path | str]) -> list[Path]:
    """Keep only files named like a status file, in the given order."""
    return [Path(p) for p in paths if Path(p).name in STATUS_FILE_NAMES]


def process_status_files(
    store: GradingStore,
    assignment: Assignment,
    paths: Iterable[Path | str],
    config: dict[str, Any] | None = None,
    checksums: dict[str, dict[str, Any]] | None = None,
) -> ProcessingResult:
    """
    Apply the first status file that yields updates.

    Files whose checksum shows they were not edited are tried last.

    Raises:
        StatusFileError: if no file could be applied; the message lists the
            problem of each file.
    """
    config = merge_config(config)
    status_files = [p for p in find_status_files(paths) if p.is_file()]
    if not status_files:
        raise StatusFileError("No valid status files found.")

    checksums = checksums or {}
    status_files.sort(key=lambda p: is_unchanged(p, checksums))

    problems = []
    for path in status_files:
        engine = StatusFileEngine(store, config)
        engine.init(assignment)
        engine.allow_plagiarism_update(config["allow_plagiarism_update"])
        suffix = path.suffix.lower().lstrip(".")
        if suffix in FILENAMES:
            engine.set_format(suffix)

        try:
            engine.load_from_file(path)
        except StatusFileError as e:
            problems.append(f"Error processing {path.name}: {e}")
            continue

        if not engine.is_load_from_file_success():
            if engine.has_error():
                problems.append(f"Error loading {path.name}: {engine.get_info()}")
            else:
                problems.append(f"File {path.name} could not be loaded.")
            continue

        if not engine.has_updates():
            problems.append(f"No updates found in {path.name}.")
            continue

        updates = engine.get_updates()
        updated_team_ids = [int(u.target_key) for u in updates if u.is_team]
        updated_user_ids = engine.apply_status_updates()
        logger.info("Applied %d status updates from %s", len(updates), path.name)

        return ProcessingResult(
            info=engine.get_info(),
            status_updates=len(updates),
            processed_file=path.name,
            updated_user_ids=updated_user_ids,
            updated_team_ids=updated_team_ids,
        )

    message = "No status updates were applied."
    if problems:
        message += " Problems: " + " | ".join(problems)
    logger.error(message)
    raise StatusFileError(message)
