"""Grading store interface and a JSON-backed in-memory implementation."""

from pathlib import Path
from typing import Any, Iterable, Protocol
import json

from .models import Assignment, MemberStatus, TeamRecord, UserRecord


class GradingStore(Protocol):
    """What the engine needs from the system of record."""

    def list_members(self, exercise_id: int) -> list[int]: ...

    def lookup_users(self, usr_ids: Iterable[int]) -> list[UserRecord]: ...

    def lookup_login(self, usr_id: int) -> str: ...

    def get_member_status(self, assignment_id: int, usr_id: int) -> MemberStatus | None: ...

    def set_member_status(
        self,
        assignment_id: int,
        usr_id: int,
        status: str,
        mark: str,
        notice: str,
        comment: str,
    ) -> None: ...

    def list_teams(self, assignment_id: int) -> list[TeamRecord]: ...

    def assignment_uses_teams(self, assignment_id: int) -> bool: ...


class InMemoryGradingStore:
    """
    Grading store kept in dictionaries.

    Can be loaded from and saved to a JSON dataset with the keys
    'users', 'exercises', 'assignments', 'statuses' and 'teams'.
    """

    def __init__(self):
        self.users: dict[int, UserRecord] = {}
        self.inactive: set[int] = set()
        self.exercise_members: dict[int, list[int]] = {}
        self.assignments: dict[int, Assignment] = {}
        self.team_assignments: set[int] = set()
        self.statuses: dict[tuple[int, int], MemberStatus] = {}
        self.teams: dict[int, list[TeamRecord]] = {}
        self.write_log: list[tuple[int, int, str, str, str, str]] = []

    # --- population helpers ---

    def add_user(self, usr_id: int, login: str, firstname: str = "", lastname: str = "", active: bool = True):
        self.users[usr_id] = UserRecord(usr_id=usr_id, login=login, firstname=firstname, lastname=lastname)
        if active:
            self.inactive.discard(usr_id)
        else:
            self.inactive.add(usr_id)

    def add_assignment(self, assignment: Assignment, uses_teams: bool = False, members: Iterable[int] | None = None):
        self.assignments[assignment.id] = assignment
        if uses_teams:
            self.team_assignments.add(assignment.id)
        if members is not None:
            self.exercise_members[assignment.exercise_id] = list(members)

    def add_team(self, assignment_id: int, team_id: int, member_ids: Iterable[int]):
        self.teams.setdefault(assignment_id, []).append(
            TeamRecord(team_id=team_id, member_ids=list(member_ids))
        )

    def get_assignment(self, assignment_id: int) -> Assignment:
        if assignment_id not in self.assignments:
            raise KeyError(f"Unknown assignment {assignment_id}")
        return self.assignments[assignment_id]

    # --- GradingStore ---

    def list_members(self, exercise_id: int) -> list[int]:
        return list(self.exercise_members.get(exercise_id, []))

    def lookup_users(self, usr_ids: Iterable[int]) -> list[UserRecord]:
        return [
            self.users[usr_id]
            for usr_id in usr_ids
            if usr_id in self.users and usr_id not in self.inactive
        ]

    def lookup_login(self, usr_id: int) -> str:
        user = self.users.get(usr_id)
        return user.login if user else ""

    def get_member_status(self, assignment_id: int, usr_id: int) -> MemberStatus | None:
        return self.statuses.get((assignment_id, usr_id))

    def set_member_status(
        self,
        assignment_id: int,
        usr_id: int,
        status: str,
        mark: str,
        notice: str,
        comment: str,
    ) -> None:
        self.statuses[(assignment_id, usr_id)] = MemberStatus(
            status=status, mark=mark, notice=notice, comment=comment
        )
        self.write_log.append((assignment_id, usr_id, status, mark, notice, comment))

    def list_teams(self, assignment_id: int) -> list[TeamRecord]:
        return list(self.teams.get(assignment_id, []))

    def assignment_uses_teams(self, assignment_id: int) -> bool:
        return assignment_id in self.team_assignments

    # --- serialization ---

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryGradingStore":
        store = cls()
        for user in data.get("users", []):
            store.add_user(
                int(user["usr_id"]),
                user.get("login", ""),
                firstname=user.get("firstname", ""),
                lastname=user.get("lastname", ""),
                active=user.get("active", True),
            )
        for exercise in data.get("exercises", []):
            store.exercise_members[int(exercise["id"])] = [int(m) for m in exercise.get("members", [])]
        for assignment in data.get("assignments", []):
            store.add_assignment(
                Assignment(
                    id=int(assignment["id"]),
                    exercise_id=int(assignment["exercise_id"]),
                    title=assignment.get("title", ""),
                ),
                uses_teams=assignment.get("uses_teams", False),
            )
        for record in data.get("statuses", []):
            store.statuses[(int(record["ass_id"]), int(record["usr_id"]))] = MemberStatus(
                status=record.get("status", "notgraded"),
                mark=record.get("mark", ""),
                notice=record.get("notice", ""),
                comment=record.get("comment", ""),
            )
        for team in data.get("teams", []):
            store.add_team(int(team["ass_id"]), int(team["team_id"]), [int(m) for m in team.get("members", [])])
        return store

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": [
                {
                    "usr_id": u.usr_id,
                    "login": u.login,
                    "firstname": u.firstname,
                    "lastname": u.lastname,
                    "active": u.usr_id not in self.inactive,
                }
                for u in self.users.values()
            ],
            "exercises": [
                {"id": exercise_id, "members": members}
                for exercise_id, members in self.exercise_members.items()
            ],
            "assignments": [
                {
                    "id": a.id,
                    "exercise_id": a.exercise_id,
                    "title": a.title,
                    "uses_teams": a.id in self.team_assignments,
                }
                for a in self.assignments.values()
            ],
            "statuses": [
                {
                    "ass_id": ass_id,
                    "usr_id": usr_id,
                    "status": s.status,
                    "mark": s.mark,
                    "notice": s.notice,
                    "comment": s.comment,
                }
                for (ass_id, usr_id), s in self.statuses.items()
            ],
            "teams": [
                {"ass_id": ass_id, "team_id": t.team_id, "members": t.member_ids}
                for ass_id, teams in self.teams.items()
                for t in teams
            ],
        }


def load_store(path: Path | str) -> InMemoryGradingStore:
    """Load a grading store from a JSON dataset file."""
    with open(path, "r", encoding="utf-8") as f:
        return InMemoryGradingStore.from_dict(json.load(f))


def save_store(store: InMemoryGradingStore, path: Path | str) -> None:
    """Write a grading store back to a JSON dataset file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(store.to_dict(), f, indent=2, ensure_ascii=False)
