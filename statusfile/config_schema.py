"""Configuration schema and defaults for status file exchange."""

from typing import Any
import copy

FORMAT_XLSX = "xlsx"
FORMAT_XLS = "xls"
FORMAT_CSV = "csv"

VALID_FORMATS = (FORMAT_XLSX, FORMAT_XLS, FORMAT_CSV)

DEFAULT_CONFIG: dict[str, Any] = {
    "format": FORMAT_XLSX,
    "allow_plagiarism_update": False,
    "csv": {
        "delimiter": ",",
        "encoding": "utf-8"
    },
    "sheet_titles": {
        "member": "members",
        "team": "teams"
    },
    "bundle": {
        "formats": [FORMAT_XLSX, FORMAT_CSV],
        "checksums_file": "checksums.json"
    },
    "logging": {
        "level": "INFO",
        "file": None
    }
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(user_config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge user configuration with defaults.

    User config values override defaults. Missing keys use default values.
    """
    result = get_default_config()
    if not user_config:
        return result

    if "format" in user_config:
        result["format"] = str(user_config["format"]).lower()

    if "allow_plagiarism_update" in user_config:
        result["allow_plagiarism_update"] = bool(user_config["allow_plagiarism_update"])

    if "csv" in user_config:
        result["csv"].update(user_config["csv"])

    if "sheet_titles" in user_config:
        result["sheet_titles"].update(user_config["sheet_titles"])

    if "bundle" in user_config:
        result["bundle"].update(user_config["bundle"])

    if "logging" in user_config:
        result["logging"].update(user_config["logging"])

    return result
