"""Data models for grading status exchange."""

from dataclasses import dataclass, field
from enum import Enum


class EntityMode(str, Enum):
    """Which kind of entity a status file describes."""

    MEMBER = "member"
    TEAM = "team"


class Status(str, Enum):
    """Canonical grading status."""

    PASSED = "passed"
    FAILED = "failed"
    NOTGRADED = "notgraded"


class PlagFlag(str, Enum):
    """Plagiarism flag values."""

    NONE = "none"
    SUSPICION = "suspicion"
    DETECTED = "detected"


VALID_STATES = tuple(s.value for s in Status)
VALID_PLAG_FLAGS = tuple(p.value for p in PlagFlag)


@dataclass
class Assignment:
    """An assignment within an exercise."""

    id: int
    exercise_id: int
    title: str = ""


@dataclass
class UserRecord:
    usr_id: int
    login: str
    firstname: str = ""
    lastname: str = ""


@dataclass
class MemberStatus:
    """Stored grading record of one user for one assignment."""

    status: str = Status.NOTGRADED.value
    mark: str = ""
    notice: str = ""
    comment: str = ""


@dataclass
class TeamRecord:
    team_id: int
    member_ids: list[int] = field(default_factory=list)


@dataclass
class Member:
    """A member row as loaded from the grading store."""

    usr_id: int
    login: str = ""
    lastname: str = ""
    firstname: str = ""
    status: str = Status.NOTGRADED.value
    mark: str = ""
    notice: str = ""
    comment: str = ""
    plag_flag: str = PlagFlag.NONE.value
    plag_comment: str = ""


@dataclass
class Team:
    """A team row; its grade fields come from the first member's record."""

    team_id: int
    member_ids: list[int] = field(default_factory=list)
    logins: str = ""
    status: str = Status.NOTGRADED.value
    mark: str = ""
    notice: str = ""
    comment: str = ""
    plag_flag: str = PlagFlag.NONE.value
    plag_comment: str = ""


@dataclass
class StatusUpdate:
    """One row extracted from an uploaded status file."""

    mode: EntityMode
    target_key: int | str
    update: bool = False
    login: str = ""
    status: str = ""
    mark: str = ""
    notice: str = ""
    comment: str = ""
    plag_flag: str = PlagFlag.NONE.value
    plag_comment: str = ""

    @property
    def is_team(self) -> bool:
        return self.mode is EntityMode.TEAM


@dataclass
class ParseResult:
    """Outcome of parsing a whole status sheet."""

    updates: list[StatusUpdate] = field(default_factory=list)
    skipped_rows: int = 0
