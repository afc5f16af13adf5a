"""Whole-sheet building and parsing for status files."""

from dataclasses import replace
from typing import Any, Callable, Collection, Sequence

from .errors import NoValidUpdatesError, SchemaMismatchError
from .log import get_logger
from .models import EntityMode, Member, ParseResult, StatusUpdate, Team
from .row_codec import cell_text, codec_for
from .validators import normalize_status, validate_status

logger = get_logger(__name__)

NO_VALID_UPDATES_HINTS = [
    "'update' column is set to 1",
    "Team IDs exist in the assignment",
    "Status values are valid (passed/failed/notgraded)",
]


def is_blank_row(row: Sequence[Any]) -> bool:
    """True when every cell is empty; some writers append such rows at EOF."""
    return all(value is None or value == "" for value in row)


def read_header(header: Sequence[Any], mode: EntityMode) -> dict[str, int]:
    """
    Check the header row against the schema of the mode.

    Returns:
        Mapping of column name to its position in the file.

    Raises:
        SchemaMismatchError: if names are missing, extra or duplicated.
    """
    titles = codec_for(mode).titles
    names = [cell_text(value).strip() for value in header]
    while names and names[-1] == "":
        names.pop()

    if sorted(names) != sorted(titles):
        prefix = "Team status file" if mode is EntityMode.TEAM else "Status file"
        missing = [t for t in titles if t not in names]
        extra = [n for n in names if n not in titles or names.count(n) > 1]
        details = []
        if missing:
            details.append(f"missing: {', '.join(missing)}")
        if extra:
            details.append(f"unexpected: {', '.join(dict.fromkeys(extra))}")
        raise SchemaMismatchError(
            f"{prefix} has wrong column titles ({'; '.join(details)}). "
            f"Expected: {', '.join(titles)}",
            expected=list(titles),
            found=names,
        )

    return {name: position for position, name in enumerate(names)}


def check_row_data(update: StatusUpdate) -> None:
    validate_status(update.status)


def parse_sheet(
    rows: Sequence[Sequence[Any]],
    mode: EntityMode,
    known_keys: Collection[int | str],
) -> ParseResult:
    """
    Extract the status updates of a sheet.

    Rows that are not flagged, have no id or point at an unknown member or
    team are skipped silently. An invalid status on a flagged row aborts the
    whole parse.
    """
    if not rows:
        raise SchemaMismatchError(
            "Status file is empty (no header row)",
            expected=list(codec_for(mode).titles),
            found=[],
        )

    column_index = read_header(rows[0], mode)
    codec = codec_for(mode)
    result = ParseResult()

    data_rows = [row for row in rows[1:] if not is_blank_row(row)]
    for row in data_rows:
        update = codec.decode_row(row, column_index)

        if update.target_key in (0, ""):
            continue

        if not update.update or update.target_key not in known_keys:
            result.skipped_rows += 1
            continue

        update.status = normalize_status(update.status)
        check_row_data(update)
        result.updates.append(update)

    logger.debug(
        "Parsed %d %s rows: %d updates, %d skipped",
        len(data_rows), mode.value, len(result.updates), result.skipped_rows,
    )

    if mode is EntityMode.TEAM and not result.updates and result.skipped_rows > 0:
        raise NoValidUpdatesError(
            "No valid updates found! Check that:\n"
            + "\n".join(f"{i}. {hint}" for i, hint in enumerate(NO_VALID_UPDATES_HINTS, 1)),
            hints=list(NO_VALID_UPDATES_HINTS),
        )

    return result


def resolve_team(
    team: Team,
    members: dict[int, Member],
    lookup_login: Callable[[int], str],
) -> Team:
    """Fill logins and grade fields of a team from its first known member."""
    logins = []
    representative = None
    for usr_id in team.member_ids:
        member = members.get(usr_id)
        if member is not None:
            logins.append(member.login)
            if representative is None:
                representative = member
        else:
            login = lookup_login(usr_id)
            if login:
                logins.append(login)

    source = representative if representative is not None else team
    return replace(
        team,
        logins=", ".join(logins),
        status=source.status,
        mark=source.mark,
        notice=source.notice,
        comment=source.comment,
        plag_flag=source.plag_flag,
        plag_comment=source.plag_comment,
    )


def build_sheet(
    mode: EntityMode,
    members: dict[int, Member],
    teams: dict[int, Team] | None = None,
    lookup_login: Callable[[int], str] | None = None,
) -> list[list[Any]]:
    """Build the header and one row per member or team, in load order."""
    codec = codec_for(mode)
    rows: list[list[Any]] = [list(codec.titles)]

    if mode is EntityMode.TEAM:
        lookup = lookup_login or (lambda usr_id: "")
        for team in (teams or {}).values():
            rows.append(codec.encode_row(resolve_team(team, members, lookup)))
    else:
        for member in members.values():
            rows.append(codec.encode_row(member))

    return rows
