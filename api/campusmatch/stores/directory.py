import threading
from typing import Any, Iterable, Protocol

from sqlalchemy import Date, bindparam, text

from ..database import SessionLocal
from ..schemas import EligibilityCriteria, UserRecord
from .sql import sql_session

_USER_COLUMNS = """
    id, display_name, birth_date, gender, school, program, preference_text, bio,
    verification_status, is_restricted, report_count
"""


class UserDirectory(Protocol):
    def get_user(self, user_id: str) -> UserRecord | None: ...

    def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]: ...

    def list_eligible_users(self, criteria: EligibilityCriteria) -> list[UserRecord]: ...

    def list_block_exclusions(self, user_id: str) -> set[str]: ...


def user_from_row(row: Any) -> UserRecord:
    return UserRecord(
        id=str(row["id"]),
        display_name=row.get("display_name"),
        birth_date=row.get("birth_date"),
        gender=row.get("gender"),
        school=row.get("school"),
        program=row.get("program"),
        preference_text=row.get("preference_text"),
        bio=row.get("bio"),
        verification_state=row.get("verification_status") or "unverified",
        is_restricted=bool(row.get("is_restricted")),
        report_count=int(row.get("report_count") or 0),
    )


def matches_criteria(user: UserRecord, criteria: EligibilityCriteria) -> bool:
    if user.id == criteria.requester_id or user.id in criteria.exclude_ids:
        return False
    if user.is_restricted:
        return False
    if criteria.gender is not None and user.gender != criteria.gender:
        return False
    if criteria.school is not None and user.school != criteria.school:
        return False
    if criteria.program is not None and user.program != criteria.program:
        return False
    if criteria.born_after is not None or criteria.born_on_or_before is not None:
        if user.birth_date is None:
            return False
        if criteria.born_after is not None and user.birth_date <= criteria.born_after:
            return False
        if criteria.born_on_or_before is not None and user.birth_date > criteria.born_on_or_before:
            return False
    return True


class SqlUserDirectory:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def get_user(self, user_id: str) -> UserRecord | None:
        with sql_session(self._session_factory, "get_user") as db:
            row = db.execute(
                text(f"SELECT {_USER_COLUMNS} FROM user_account WHERE id=:id"),
                {"id": user_id},
            ).mappings().first()
        return user_from_row(row) if row else None

    def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        ids = sorted({str(u) for u in user_ids})
        if not ids:
            return {}
        stmt = text(f"SELECT {_USER_COLUMNS} FROM user_account WHERE id IN :ids").bindparams(
            bindparam("ids", expanding=True)
        )
        with sql_session(self._session_factory, "get_users") as db:
            rows = db.execute(stmt, {"ids": ids}).mappings().all()
        return {str(r["id"]): user_from_row(r) for r in rows}

    def list_eligible_users(self, criteria: EligibilityCriteria) -> list[UserRecord]:
        where_parts = ["id <> :requester_id", "is_restricted = FALSE"]
        params: dict[str, Any] = {"requester_id": criteria.requester_id}
        bind_extras = []
        if criteria.gender is not None:
            where_parts.append("LOWER(TRIM(gender)) = :gender")
            params["gender"] = criteria.gender
        if criteria.school is not None:
            where_parts.append("school = :school")
            params["school"] = criteria.school
        if criteria.program is not None:
            where_parts.append("program = :program")
            params["program"] = criteria.program
        if criteria.born_after is not None or criteria.born_on_or_before is not None:
            where_parts.append("birth_date IS NOT NULL")
        if criteria.born_after is not None:
            where_parts.append("birth_date > :born_after")
            params["born_after"] = criteria.born_after
            bind_extras.append(bindparam("born_after", type_=Date))
        if criteria.born_on_or_before is not None:
            where_parts.append("birth_date <= :born_on_or_before")
            params["born_on_or_before"] = criteria.born_on_or_before
            bind_extras.append(bindparam("born_on_or_before", type_=Date))
        if criteria.exclude_ids:
            where_parts.append("id NOT IN :exclude_ids")
            params["exclude_ids"] = sorted(criteria.exclude_ids)
            bind_extras.append(bindparam("exclude_ids", expanding=True))

        where_sql = " AND ".join(where_parts)
        stmt = text(
            f"""
            SELECT {_USER_COLUMNS}
            FROM user_account
            WHERE {where_sql}
            ORDER BY id
            """
        )
        if bind_extras:
            stmt = stmt.bindparams(*bind_extras)

        with sql_session(self._session_factory, "list_eligible_users") as db:
            rows = db.execute(stmt, params).mappings().all()
        return [user_from_row(r) for r in rows]

    def list_block_exclusions(self, user_id: str) -> set[str]:
        with sql_session(self._session_factory, "list_block_exclusions") as db:
            rows = db.execute(
                text(
                    """
                    SELECT blocked_id AS other_id FROM user_block WHERE blocker_id=:user_id
                    UNION
                    SELECT blocker_id AS other_id FROM user_block WHERE blocked_id=:user_id
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return {str(r["other_id"]) for r in rows}


class InMemoryUserDirectory:
    """Dict-backed directory for local runs and tests."""

    def __init__(self, users: Iterable[UserRecord] = (), blocks: Iterable[tuple[str, str]] = ()) -> None:
        self._users: dict[str, UserRecord] = {}
        self._blocks: set[tuple[str, str]] = set()
        self._lock = threading.Lock()
        for user in users:
            self.add_user(user)
        for blocker_id, blocked_id in blocks:
            self.add_block(blocker_id, blocked_id)

    def add_user(self, user: UserRecord) -> None:
        with self._lock:
            self._users[user.id] = user

    def add_block(self, blocker_id: str, blocked_id: str) -> None:
        with self._lock:
            self._blocks.add((blocker_id, blocked_id))

    def get_user(self, user_id: str) -> UserRecord | None:
        return self._users.get(user_id)

    def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        return {uid: self._users[uid] for uid in user_ids if uid in self._users}

    def list_eligible_users(self, criteria: EligibilityCriteria) -> list[UserRecord]:
        with self._lock:
            users = sorted(self._users.values(), key=lambda u: u.id)
        return [u for u in users if matches_criteria(u, criteria)]

    def list_block_exclusions(self, user_id: str) -> set[str]:
        with self._lock:
            blocks = set(self._blocks)
        out: set[str] = set()
        for blocker_id, blocked_id in blocks:
            if blocker_id == user_id:
                out.add(blocked_id)
            elif blocked_id == user_id:
                out.add(blocker_id)
        return out
