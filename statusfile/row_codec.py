"""Conversion between status records and table rows."""

from abc import ABC, abstractmethod
from typing import Any, Sequence
import math

from .models import EntityMode, Member, PlagFlag, StatusUpdate, Team
from .validators import NUMERIC_RE, normalize_plag_flag, parse_update_flag

MEMBER_TITLES = [
    "update", "usr_id", "login", "lastname", "firstname",
    "status", "mark", "notice", "comment", "plagiarism", "plag_comment",
]
TEAM_TITLES = [
    "update", "team_id", "logins",
    "status", "mark", "notice", "comment", "plagiarism", "plag_comment",
]


def cell_text(value: Any) -> str:
    """Render a cell as text; integral floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def parse_id(value: Any) -> int | str:
    """Return an integer id when the cell is numeric, else the trimmed text (0 when empty)."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        return int(value) if value.is_integer() else cell_text(value)

    text = str(value).strip()
    if text == "":
        return 0
    if NUMERIC_RE.match(text):
        number = float(text)
        if number.is_integer():
            return int(number)
    return text


def plag_display(flag: str) -> str:
    return "" if flag == PlagFlag.NONE.value else flag


class RowCodec(ABC):
    """Shared decode logic; subclasses define the schema and the id column."""

    mode: EntityMode
    titles: list[str]
    id_column: str
    login_column: str

    def decode_row(self, raw_row: Sequence[Any], column_index: dict[str, int]) -> StatusUpdate:
        def cell(name: str) -> Any:
            position = column_index.get(name)
            if position is None or position >= len(raw_row):
                return None
            return raw_row[position]

        return StatusUpdate(
            mode=self.mode,
            target_key=parse_id(cell(self.id_column)),
            update=parse_update_flag(cell("update")),
            login=cell_text(cell(self.login_column)),
            status=cell_text(cell("status")),
            mark=cell_text(cell("mark")),
            notice=cell_text(cell("notice")),
            comment=cell_text(cell("comment")),
            plag_flag=normalize_plag_flag(cell("plagiarism")),
            plag_comment=cell_text(cell("plag_comment")),
        )

    @abstractmethod
    def encode_row(self, record: Member | Team) -> list[Any]:
        """Cells of one exported row, in schema order."""


class MemberRowCodec(RowCodec):
    mode = EntityMode.MEMBER
    titles = MEMBER_TITLES
    id_column = "usr_id"
    login_column = "login"

    def encode_row(self, record: Member) -> list[Any]:
        return [
            0,
            int(record.usr_id),
            str(record.login),
            str(record.lastname),
            str(record.firstname),
            str(record.status),
            str(record.mark),
            str(record.notice),
            str(record.comment),
            plag_display(record.plag_flag),
            str(record.plag_comment),
        ]


class TeamRowCodec(RowCodec):
    mode = EntityMode.TEAM
    titles = TEAM_TITLES
    id_column = "team_id"
    login_column = "logins"

    def encode_row(self, record: Team) -> list[Any]:
        return [
            0,
            int(record.team_id),
            str(record.logins),
            str(record.status),
            str(record.mark),
            str(record.notice),
            str(record.comment),
            plag_display(record.plag_flag),
            str(record.plag_comment),
        ]


_CODECS = {
    EntityMode.MEMBER: MemberRowCodec(),
    EntityMode.TEAM: TeamRowCodec(),
}


def codec_for(mode: EntityMode) -> RowCodec:
    """Return the row codec for an entity mode."""
    return _CODECS[mode]
