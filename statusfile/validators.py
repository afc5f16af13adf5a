"""Normalization and validation of status file values and configuration."""

from types import MappingProxyType
from typing import Any
import codecs
import logging
import re

from .config_schema import VALID_FORMATS
from .errors import InvalidStatusError
from .models import PlagFlag, Status, VALID_PLAG_FLAGS, VALID_STATES

STATUS_SYNONYMS = MappingProxyType({
    # passed
    "passed": Status.PASSED.value,
    "bestanden": Status.PASSED.value,
    "ok": Status.PASSED.value,
    "success": Status.PASSED.value,
    "1": Status.PASSED.value,
    "yes": Status.PASSED.value,
    "ja": Status.PASSED.value,
    # failed
    "failed": Status.FAILED.value,
    "not passed": Status.FAILED.value,
    "nicht bestanden": Status.FAILED.value,
    "fail": Status.FAILED.value,
    "0": Status.FAILED.value,
    "no": Status.FAILED.value,
    "nein": Status.FAILED.value,
    # not graded
    "notgraded": Status.NOTGRADED.value,
    "not graded": Status.NOTGRADED.value,
    "nicht bewertet": Status.NOTGRADED.value,
    "pending": Status.NOTGRADED.value,
    "offen": Status.NOTGRADED.value,
    "": Status.NOTGRADED.value,
})

TRUE_WORDS = frozenset({"true", "yes", "on"})

NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def normalize_status(raw: Any) -> str:
    """Map a status token to its canonical value; unknown tokens pass through."""
    status = "" if raw is None else str(raw).strip().lower()
    return STATUS_SYNONYMS.get(status, status)


def allowed_status_lines() -> list[str]:
    """Describe each canonical status together with its accepted synonyms."""
    lines = []
    for canonical in VALID_STATES:
        synonyms = [
            token if token else "(empty)"
            for token, value in STATUS_SYNONYMS.items()
            if value == canonical and token != canonical
        ]
        lines.append(f"{canonical} (or: {', '.join(synonyms)})")
    return lines


def validate_status(status: str) -> None:
    """Raise InvalidStatusError unless status is canonical."""
    if status in VALID_STATES:
        return
    raise InvalidStatusError(
        f"Invalid status: '{status}'. Allowed:\n- " + "\n- ".join(allowed_status_lines()),
        value=status,
    )


def parse_update_flag(raw: Any) -> bool:
    """
    Interpret the 'update' cell.

    Empty cells are False, numbers are True when their integer part is
    non-zero, and words are True only for true/yes/on. Never raises.
    """
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return abs(raw) >= 1

    text = str(raw).strip()
    if text == "":
        return False
    if NUMERIC_RE.match(text):
        return abs(float(text)) >= 1
    return text.lower() in TRUE_WORDS


def normalize_plag_flag(raw: Any) -> str:
    """Empty plagiarism cells mean 'none'."""
    flag = "" if raw is None else str(raw).strip().lower()
    return flag or PlagFlag.NONE.value


def is_valid_plag_flag(flag: str) -> bool:
    return flag in VALID_PLAG_FLAGS


def validate_config(config: dict[str, Any]) -> list[dict[str, str]]:
    """
    Validate configuration and return list of issues.

    Returns:
        List of dicts with 'type' (error/warning) and 'message'.
    """
    issues = []

    fmt = config.get("format")
    if fmt not in VALID_FORMATS:
        issues.append({
            "type": "error",
            "message": f"Unknown file format '{fmt}' (use one of {', '.join(VALID_FORMATS)})"
        })

    csv_settings = config.get("csv", {})
    delimiter = csv_settings.get("delimiter", ",")
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        issues.append({
            "type": "error",
            "message": f"CSV delimiter must be a single character, got {delimiter!r}"
        })

    encoding = csv_settings.get("encoding", "utf-8")
    try:
        codecs.lookup(encoding)
    except (LookupError, TypeError):
        issues.append({
            "type": "error",
            "message": f"Unknown CSV encoding: {encoding}"
        })

    # Excel limits sheet titles to 31 characters
    for mode, title in config.get("sheet_titles", {}).items():
        if not title or len(title) > 31:
            issues.append({
                "type": "error",
                "message": f"Sheet title for {mode} mode must be 1-31 characters"
            })

    bundle_formats = config.get("bundle", {}).get("formats", [])
    if not bundle_formats:
        issues.append({
            "type": "warning",
            "message": "No bundle formats configured; bundles will only contain checksums"
        })
    for bundle_format in bundle_formats:
        if bundle_format not in VALID_FORMATS:
            issues.append({
                "type": "error",
                "message": f"Unknown bundle format '{bundle_format}'"
            })

    if config.get("allow_plagiarism_update"):
        issues.append({
            "type": "warning",
            "message": "Plagiarism flags are validated on import but not stored yet"
        })

    level = config.get("logging", {}).get("level", "INFO")
    if not isinstance(logging.getLevelName(str(level).upper()), int):
        issues.append({
            "type": "warning",
            "message": f"Unknown logging level '{level}', INFO will be used"
        })

    return issues
