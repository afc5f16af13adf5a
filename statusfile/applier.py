"""Writing extracted status updates back to the grading store."""

from typing import Iterable

from .grading_store import GradingStore
from .log import get_logger
from .models import Member, StatusUpdate, Team
from .validators import is_valid_plag_flag

logger = get_logger(__name__)


def resolve_user_ids(
    update: StatusUpdate,
    members: dict[int, Member],
    teams: dict[int, Team],
) -> list[int]:
    """Member updates target one user; team updates fan out to every team member."""
    if update.is_team:
        team = teams.get(update.target_key)
        return list(team.member_ids) if team else []
    return [int(update.target_key)]


def apply_plagiarism(update: StatusUpdate, usr_id: int) -> bool:
    """
    Check the plagiarism fields of an update for one user.

    Storing them is reserved: the grading store has no setter for
    plagiarism state yet, so valid flags are only logged.

    Returns:
        True if the flag is one of none/suspicion/detected.
    """
    if not is_valid_plag_flag(update.plag_flag):
        logger.warning(
            "Ignoring unknown plagiarism flag %r for user %s", update.plag_flag, usr_id
        )
        return False

    # TODO: persist plag_flag and plag_comment once GradingStore offers set_plagiarism()
    logger.info(
        "Plagiarism flag %r for user %s not stored (reserved)", update.plag_flag, usr_id
    )
    return True


def apply_updates(
    updates: Iterable[StatusUpdate],
    members: dict[int, Member],
    teams: dict[int, Team],
    store: GradingStore,
    assignment_id: int,
    allow_plagiarism_update: bool = False,
) -> list[int]:
    """
    Write each update to the grading record of every targeted user.

    Returns:
        User ids in the order they were written.
    """
    written = []
    for update in updates:
        user_ids = resolve_user_ids(update, members, teams)
        if update.is_team:
            logger.debug("Team %s fans out to users %s", update.target_key, user_ids)

        for usr_id in user_ids:
            store.set_member_status(
                assignment_id,
                usr_id,
                update.status,
                update.mark,
                update.notice,
                update.comment,
            )
            if allow_plagiarism_update:
                apply_plagiarism(update, usr_id)
            written.append(usr_id)

    logger.info("Applied status updates for %d users on assignment %s", len(written), assignment_id)
    return written
