"""
Status file engine.

Exports the grading status of an assignment to a status file and extracts
status updates from an edited status file. Works on members or, for team
assignments, on teams.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from .applier import apply_updates
from .config_schema import FORMAT_CSV, FORMAT_XLS, FORMAT_XLSX, VALID_FORMATS, merge_config
from .errors import StatusFileError, WriteFailureError
from .grading_store import GradingStore
from .log import get_logger
from .models import Assignment, EntityMode, Member, MemberStatus, Status, StatusUpdate, Team
from .sheet import build_sheet, parse_sheet
from .table_io import load_rows, save_rows

logger = get_logger(__name__)

FILENAMES = {
    FORMAT_XLSX: "status.xlsx",
    FORMAT_XLS: "status.xls",
    FORMAT_CSV: "status.csv",
}


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    UPDATES_EXTRACTED = "updates_extracted"
    APPLIED = "applied"


def stored_status(record: MemberStatus | None) -> str:
    """Anything the store holds besides passed/failed counts as not graded."""
    if record is not None and record.status in (Status.PASSED.value, Status.FAILED.value):
        return record.status
    return Status.NOTGRADED.value


class StatusFileEngine:
    """Converts between a grading store and status files for one assignment."""

    FORMAT_XLSX = FORMAT_XLSX
    FORMAT_XLS = FORMAT_XLS
    FORMAT_CSV = FORMAT_CSV

    def __init__(self, store: GradingStore, config: dict[str, Any] | None = None):
        self.store = store
        self.config = merge_config(config)
        self.format = FORMAT_XLSX
        self.set_format(self.config["format"])
        self.allow_plag_update = self.config["allow_plagiarism_update"]

        self.assignment: Assignment | None = None
        self.mode = EntityMode.MEMBER
        self.members: dict[int, Member] = {}
        self.teams: dict[int, Team] = {}
        self.updates: list[StatusUpdate] = []
        self.skipped_rows = 0
        self.updates_applied = False
        self.error: str | None = None
        self.load_success = False
        self.write_success = False
        self.state = EngineState.UNINITIALIZED

    # --- setup ---

    def init(self, assignment: Assignment) -> None:
        """Load members (and teams) of an assignment and reset all update state."""
        self.assignment = assignment
        self.members = {}
        self.teams = {}
        self.updates = []
        self.skipped_rows = 0
        self.updates_applied = False
        self.error = None
        self.load_success = False
        self.write_success = False

        uses_teams = self.store.assignment_uses_teams(assignment.id)
        self.mode = EntityMode.TEAM if uses_teams else EntityMode.MEMBER

        self.members = self._load_members()
        if self.mode is EntityMode.TEAM:
            self.teams = self._load_teams()

        self.state = EngineState.LOADED
        logger.info(
            "Loaded assignment %s in %s mode: %d members, %d teams",
            assignment.id, self.mode.value, len(self.members), len(self.teams),
        )

    def allow_plagiarism_update(self, allow: bool = True) -> None:
        self.allow_plag_update = bool(allow)

    def get_valid_formats(self) -> list[str]:
        return list(VALID_FORMATS)

    def set_format(self, fmt: str) -> None:
        fmt = str(fmt).lower()
        if fmt not in VALID_FORMATS:
            raise ValueError(f"Unknown status file format '{fmt}' (use one of {', '.join(VALID_FORMATS)})")
        self.format = fmt

    def get_filename(self) -> str:
        return FILENAMES[self.format]

    @property
    def sheet_title(self) -> str:
        return self.config["sheet_titles"][self.mode.value]

    @property
    def uses_teams(self) -> bool:
        return self.mode is EntityMode.TEAM

    def known_keys(self) -> set[int]:
        return set(self.teams) if self.uses_teams else set(self.members)

    def _require_init(self) -> None:
        if self.state is EngineState.UNINITIALIZED:
            raise RuntimeError("StatusFileEngine.init() must be called first")

    def _load_members(self) -> dict[int, Member]:
        assignment = self.assignment
        try:
            member_ids = self.store.list_members(assignment.exercise_id)
            if not member_ids:
                return {}

            users = {user.usr_id: user for user in self.store.lookup_users(member_ids)}
            members = {}
            for usr_id in member_ids:
                user = users.get(usr_id)
                if user is None:
                    continue
                record = self.store.get_member_status(assignment.id, usr_id)
                members[usr_id] = Member(
                    usr_id=usr_id,
                    login=user.login or "",
                    lastname=user.lastname or "",
                    firstname=user.firstname or "",
                    status=stored_status(record),
                    mark=(record.mark or "") if record else "",
                    notice=(record.notice or "") if record else "",
                    comment=(record.comment or "") if record else "",
                )
            return members
        except Exception as e:
            logger.warning("Could not load members of assignment %s: %s", assignment.id, e)
            return {}

    def _load_teams(self) -> dict[int, Team]:
        assignment = self.assignment
        try:
            teams = {}
            for record in self.store.list_teams(assignment.id):
                member_ids = list(record.member_ids)
                first = self.store.get_member_status(assignment.id, member_ids[0]) if member_ids else None
                # logins are resolved when the sheet is built
                teams[record.team_id] = Team(
                    team_id=record.team_id,
                    member_ids=member_ids,
                    status=stored_status(first),
                    mark=(first.mark or "") if first else "",
                    notice=(first.notice or "") if first else "",
                    comment=(first.comment or "") if first else "",
                )
            return teams
        except Exception as e:
            logger.warning("Could not load teams of assignment %s: %s", assignment.id, e)
            return {}

    # --- import ---

    def load_from_file(self, path: Path | str) -> None:
        """
        Extract status updates from a status file.

        A missing file or an unreadable one only clears the success flag
        (see has_error() and get_info()). Schema and status problems are
        recorded and raised.
        """
        self._require_init()
        path = Path(path)
        self.error = None
        self.updates = []
        self.skipped_rows = 0
        self.load_success = False

        if not path.is_file():
            logger.info("Status file %s not found", path)
            return

        try:
            rows = load_rows(path, sheet_title=self.sheet_title, csv_settings=self.config["csv"])
            result = parse_sheet(rows, self.mode, self.known_keys())
        except StatusFileError as e:
            self.error = str(e)
            logger.warning("Rejected status file %s: %s", path.name, e)
            raise
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            logger.error("Could not read status file %s: %s", path.name, self.error)
            return

        self.updates = result.updates
        self.skipped_rows = result.skipped_rows
        self.load_success = True
        self.state = EngineState.UPDATES_EXTRACTED
        logger.info("Found %d status updates in %s", len(self.updates), path.name)

    def is_load_from_file_success(self) -> bool:
        return self.load_success

    # --- export ---

    def write_to_file(self, path: Path | str) -> None:
        """Build the status table from the loaded data and save it in the current format."""
        self._require_init()
        self.write_success = False
        try:
            rows = build_sheet(self.mode, self.members, self.teams, self.store.lookup_login)
            save_rows(rows, path, self.format, sheet_title=self.sheet_title, csv_settings=self.config["csv"])
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            logger.error("Could not write %s: %s", self.get_filename(), self.error)
            raise WriteFailureError(f"Could not write {self.get_filename()}: {self.error}") from e

        self.write_success = True
        logger.info("Wrote %s with %d rows", path, len(rows) - 1)

    def is_write_to_file_success(self) -> bool:
        return self.write_success

    # --- results ---

    def has_error(self) -> bool:
        return bool(self.error)

    def has_updates(self) -> bool:
        return bool(self.updates)

    def get_updates(self) -> list[StatusUpdate]:
        return list(self.updates)

    def _update_label(self, update: StatusUpdate) -> str:
        if update.is_team:
            return f"Team {update.target_key}"
        member = self.members.get(update.target_key)
        return member.login if member else update.login

    def get_info(self) -> str:
        """One line describing the outcome of the last load or apply."""
        if self.has_error():
            return f"Status file error in {self.get_filename()}: {self.error}"
        if not self.has_updates():
            return f"No updates found in {self.get_filename()}"

        kind = "teams" if self.uses_teams else "users"
        labels = ", ".join(self._update_label(update) for update in self.updates)
        if self.updates_applied:
            return f"Status updates applied for {kind}: {labels}"
        return f"Status updates found for {kind} in {self.get_filename()}: {labels}"

    # --- apply ---

    def apply_status_updates(self) -> list[int]:
        """Write the extracted updates to the grading store; returns the written user ids."""
        self._require_init()
        written = apply_updates(
            self.updates,
            self.members,
            self.teams,
            self.store,
            self.assignment.id,
            allow_plagiarism_update=self.allow_plag_update,
        )
        self.updates_applied = True
        self.state = EngineState.APPLIED
        return written
