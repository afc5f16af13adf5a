"""Grading status exchange between a grading store and status files."""

from .config_schema import DEFAULT_CONFIG, get_default_config, merge_config
from .validators import normalize_status, validate_config, validate_status
from .errors import (
    InvalidStatusError,
    NoValidUpdatesError,
    SchemaMismatchError,
    StatusFileError,
    WriteFailureError,
)
from .models import Assignment, EntityMode, Member, StatusUpdate, Team
from .grading_store import GradingStore, InMemoryGradingStore, load_store, save_store
from .engine import StatusFileEngine
from .bundle import process_status_files, write_status_bundle

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "get_default_config",
    "merge_config",
    "normalize_status",
    "validate_config",
    "validate_status",
    "InvalidStatusError",
    "NoValidUpdatesError",
    "SchemaMismatchError",
    "StatusFileError",
    "WriteFailureError",
    "Assignment",
    "EntityMode",
    "Member",
    "StatusUpdate",
    "Team",
    "GradingStore",
    "InMemoryGradingStore",
    "load_store",
    "save_store",
    "StatusFileEngine",
    "process_status_files",
    "write_status_bundle",
]
