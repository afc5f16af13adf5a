"""
Shared test fixtures for the status file engine.
All data lives in an in-memory grading store; files go to tmp_path.
"""
import csv

import pytest

from statusfile.grading_store import InMemoryGradingStore
from statusfile.models import Assignment, MemberStatus

EXERCISE_ID = 1
MEMBER_ASSIGNMENT = Assignment(id=10, exercise_id=EXERCISE_ID, title="Sheet 1")
TEAM_ASSIGNMENT = Assignment(id=11, exercise_id=EXERCISE_ID, title="Group project")


@pytest.fixture
def store():
    """Store with four enrolled users (one inactive), a member and a team assignment."""
    s = InMemoryGradingStore()
    s.add_user(42, "alice", "Alice", "Anders")
    s.add_user(43, "bob", "Bob", "Brandt")
    s.add_user(44, "carol", "Carol", "Ck")
    s.add_user(45, "dave", "Dave", "Dorn", active=False)
    s.add_user(99, "outsider", "Otto", "Out")
    s.add_assignment(MEMBER_ASSIGNMENT, members=[42, 43, 44, 45])
    s.add_assignment(TEAM_ASSIGNMENT, uses_teams=True)
    s.statuses[(10, 42)] = MemberStatus(status="passed", mark="18", notice="n", comment="good")
    s.statuses[(11, 43)] = MemberStatus(status="failed", mark="3", notice="", comment="redo")
    s.add_team(11, 7, [43, 42, 44])
    s.add_team(11, 8, [45, 99])
    return s


@pytest.fixture
def empty_store():
    s = InMemoryGradingStore()
    s.add_assignment(MEMBER_ASSIGNMENT, members=[])
    return s


@pytest.fixture
def member_assignment():
    return MEMBER_ASSIGNMENT


@pytest.fixture
def team_assignment():
    return TEAM_ASSIGNMENT


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file and return its path."""
    def _write(rows, name="status.csv"):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            csv.writer(f).writerows(rows)
        return path
    return _write


def member_row(update=0, usr_id=42, status="passed", mark="", notice="", comment="",
               plagiarism="", plag_comment="", login="alice"):
    """Row in MEMBER_TITLES order."""
    return [update, usr_id, login, "Last", "First", status, mark, notice, comment, plagiarism, plag_comment]


def team_row(update=0, team_id=7, status="passed", mark="", notice="", comment="",
             plagiarism="", plag_comment="", logins="bob, alice"):
    """Row in TEAM_TITLES order."""
    return [update, team_id, logins, status, mark, notice, comment, plagiarism, plag_comment]

