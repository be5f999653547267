import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Iterable, Protocol

from sqlalchemy import DateTime, bindparam, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from ..database import SessionLocal
from ..errors import DependencyFailure
from ..schemas import MatchRecord, SwipeAction, SwipeEdge
from .sql import as_utc, sql_session

logger = logging.getLogger(__name__)

_TIMESTAMP = DateTime(timezone=True)


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


class InteractionStore(Protocol):
    @property
    def available(self) -> bool: ...

    def get_swipe_edge(self, swiper_id: str, target_id: str) -> SwipeEdge | None: ...

    def upsert_swipe_edge(self, edge: SwipeEdge) -> bool: ...

    def list_swipe_edges(
        self,
        swiper_id: str,
        target_ids: Iterable[str] | None = None,
        action: SwipeAction | None = None,
        limit: int | None = None,
    ) -> list[SwipeEdge]: ...

    def get_match(self, user_a: str, user_b: str) -> MatchRecord | None: ...

    def create_match_if_absent(self, user_a: str, user_b: str, matched_at: datetime) -> tuple[bool, MatchRecord]: ...

    def list_matches_for_user(self, user_id: str) -> list[MatchRecord]: ...

    def list_unmatched_mutual_likes(self, user_id: str | None = None) -> list[tuple[str, str]]: ...


def _edge_from_row(row: Any) -> SwipeEdge:
    return SwipeEdge(
        swiper_id=str(row["swiper_id"]),
        target_id=str(row["target_id"]),
        action=row["action"],
        swiped_at=as_utc(row["swiped_at"]),
    )


def _match_from_row(row: Any) -> MatchRecord:
    return MatchRecord(
        id=str(row["id"]),
        user_a_id=str(row["user_a_id"]),
        user_b_id=str(row["user_b_id"]),
        matched_at=as_utc(row["matched_at"]),
    )


def _timestamp_param(name: str):
    return bindparam(name, type_=_TIMESTAMP)


class SqlInteractionStore:
    """Swipe and match tables behind SQLAlchemy; uniqueness is enforced by the database."""

    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory
        self._available: bool | None = None

    @property
    def available(self) -> bool:
        if self._available is None:
            try:
                with self._session_factory() as db:
                    inspector = inspect(db.connection())
                    has_tables = inspector.has_table("swipe") and inspector.has_table("match_record")
            except SQLAlchemyError as exc:
                logger.warning("[STORE] interaction store unreachable: %s", exc.__class__.__name__)
                return False
            if not has_tables:
                logger.warning("[STORE] swipe tables not provisioned; swipe features disabled")
            self._available = has_tables
        return self._available

    def get_swipe_edge(self, swiper_id: str, target_id: str) -> SwipeEdge | None:
        with sql_session(self._session_factory, "get_swipe_edge") as db:
            row = db.execute(
                text(
                    """
                    SELECT swiper_id, target_id, action, swiped_at
                    FROM swipe
                    WHERE swiper_id=:swiper_id AND target_id=:target_id
                    """
                ).columns(swiped_at=_TIMESTAMP),
                {"swiper_id": swiper_id, "target_id": target_id},
            ).mappings().first()
        return _edge_from_row(row) if row else None

    def upsert_swipe_edge(self, edge: SwipeEdge) -> bool:
        params = {
            "id": str(uuid.uuid4()),
            "swiper_id": edge.swiper_id,
            "target_id": edge.target_id,
            "action": edge.action.value,
            "swiped_at": as_utc(edge.swiped_at),
        }
        with sql_session(self._session_factory, "upsert_swipe_edge") as db:
            res = db.execute(
                text(
                    """
                    INSERT INTO swipe (id, swiper_id, target_id, action, swiped_at)
                    VALUES (:id, :swiper_id, :target_id, :action, :swiped_at)
                    ON CONFLICT (swiper_id, target_id) DO NOTHING
                    """
                ).bindparams(_timestamp_param("swiped_at")),
                params,
            )
            created = int(res.rowcount or 0) == 1
            if not created:
                db.execute(
                    text(
                        """
                        UPDATE swipe
                        SET action=:action, swiped_at=:swiped_at
                        WHERE swiper_id=:swiper_id AND target_id=:target_id
                        """
                    ).bindparams(_timestamp_param("swiped_at")),
                    params,
                )
            db.commit()
        return created

    def list_swipe_edges(
        self,
        swiper_id: str,
        target_ids: Iterable[str] | None = None,
        action: SwipeAction | None = None,
        limit: int | None = None,
    ) -> list[SwipeEdge]:
        where_parts = ["swiper_id = :swiper_id"]
        params: dict[str, Any] = {"swiper_id": swiper_id}
        expanding = False
        if target_ids is not None:
            ids = sorted(set(target_ids))
            if not ids:
                return []
            where_parts.append("target_id IN :target_ids")
            params["target_ids"] = ids
            expanding = True
        if action is not None:
            where_parts.append("action = :action")
            params["action"] = SwipeAction(action).value
        limit_sql = ""
        if limit is not None:
            limit_sql = "LIMIT :limit"
            params["limit"] = int(limit)

        stmt = text(
            f"""
            SELECT swiper_id, target_id, action, swiped_at
            FROM swipe
            WHERE {" AND ".join(where_parts)}
            ORDER BY swiped_at DESC, target_id
            {limit_sql}
            """
        )
        if expanding:
            stmt = stmt.bindparams(bindparam("target_ids", expanding=True))
        stmt = stmt.columns(swiped_at=_TIMESTAMP)
        with sql_session(self._session_factory, "list_swipe_edges") as db:
            rows = db.execute(stmt, params).mappings().all()
        return [_edge_from_row(r) for r in rows]

    def get_match(self, user_a: str, user_b: str) -> MatchRecord | None:
        low, high = canonical_pair(user_a, user_b)
        with sql_session(self._session_factory, "get_match") as db:
            row = db.execute(
                text(
                    """
                    SELECT id, user_a_id, user_b_id, matched_at
                    FROM match_record
                    WHERE user_a_id=:user_a_id AND user_b_id=:user_b_id
                    """
                ).columns(matched_at=_TIMESTAMP),
                {"user_a_id": low, "user_b_id": high},
            ).mappings().first()
        return _match_from_row(row) if row else None

    def create_match_if_absent(self, user_a: str, user_b: str, matched_at: datetime) -> tuple[bool, MatchRecord]:
        low, high = canonical_pair(user_a, user_b)
        with sql_session(self._session_factory, "create_match_if_absent") as db:
            res = db.execute(
                text(
                    """
                    INSERT INTO match_record (id, user_a_id, user_b_id, matched_at)
                    VALUES (:id, :user_a_id, :user_b_id, :matched_at)
                    ON CONFLICT (user_a_id, user_b_id) DO NOTHING
                    """
                ).bindparams(_timestamp_param("matched_at")),
                {
                    "id": str(uuid.uuid4()),
                    "user_a_id": low,
                    "user_b_id": high,
                    "matched_at": as_utc(matched_at),
                },
            )
            created = int(res.rowcount or 0) == 1
            row = db.execute(
                text(
                    """
                    SELECT id, user_a_id, user_b_id, matched_at
                    FROM match_record
                    WHERE user_a_id=:user_a_id AND user_b_id=:user_b_id
                    """
                ).columns(matched_at=_TIMESTAMP),
                {"user_a_id": low, "user_b_id": high},
            ).mappings().first()
            db.commit()
        if not row:
            raise DependencyFailure("Match record missing after insert")
        return created, _match_from_row(row)

    def list_matches_for_user(self, user_id: str) -> list[MatchRecord]:
        with sql_session(self._session_factory, "list_matches_for_user") as db:
            rows = db.execute(
                text(
                    """
                    SELECT id, user_a_id, user_b_id, matched_at
                    FROM match_record
                    WHERE user_a_id=:user_id OR user_b_id=:user_id
                    ORDER BY matched_at DESC, id
                    """
                ).columns(matched_at=_TIMESTAMP),
                {"user_id": user_id},
            ).mappings().all()
        return [_match_from_row(r) for r in rows]

    def list_unmatched_mutual_likes(self, user_id: str | None = None) -> list[tuple[str, str]]:
        with sql_session(self._session_factory, "list_unmatched_mutual_likes") as db:
            rows = db.execute(
                text(
                    """
                    SELECT s1.swiper_id AS user_a_id, s1.target_id AS user_b_id
                    FROM swipe s1
                    JOIN swipe s2
                      ON s2.swiper_id = s1.target_id
                     AND s2.target_id = s1.swiper_id
                    WHERE s1.action = 'like'
                      AND s2.action = 'like'
                      AND s1.swiper_id < s1.target_id
                      AND (:user_id IS NULL OR s1.swiper_id = :user_id OR s1.target_id = :user_id)
                      AND NOT EXISTS (
                        SELECT 1 FROM match_record m
                        WHERE m.user_a_id = s1.swiper_id AND m.user_b_id = s1.target_id
                      )
                    ORDER BY s1.swiper_id, s1.target_id
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return [(str(r["user_a_id"]), str(r["user_b_id"])) for r in rows]


class InMemoryInteractionStore:
    """Process-local store; a single lock serializes writers."""

    available = True

    def __init__(self) -> None:
        self._edges: dict[tuple[str, str], SwipeEdge] = {}
        self._matches: dict[tuple[str, str], MatchRecord] = {}
        self._lock = threading.Lock()

    def get_swipe_edge(self, swiper_id: str, target_id: str) -> SwipeEdge | None:
        with self._lock:
            return self._edges.get((swiper_id, target_id))

    def upsert_swipe_edge(self, edge: SwipeEdge) -> bool:
        key = (edge.swiper_id, edge.target_id)
        with self._lock:
            created = key not in self._edges
            self._edges[key] = edge
        return created

    def list_swipe_edges(
        self,
        swiper_id: str,
        target_ids: Iterable[str] | None = None,
        action: SwipeAction | None = None,
        limit: int | None = None,
    ) -> list[SwipeEdge]:
        wanted = set(target_ids) if target_ids is not None else None
        with self._lock:
            edges = [e for (s, _), e in self._edges.items() if s == swiper_id]
        if wanted is not None:
            edges = [e for e in edges if e.target_id in wanted]
        if action is not None:
            edges = [e for e in edges if e.action == SwipeAction(action)]
        edges.sort(key=lambda e: e.target_id)
        edges.sort(key=lambda e: e.swiped_at, reverse=True)
        if limit is not None:
            edges = edges[:limit]
        return edges

    def get_match(self, user_a: str, user_b: str) -> MatchRecord | None:
        with self._lock:
            return self._matches.get(canonical_pair(user_a, user_b))

    def create_match_if_absent(self, user_a: str, user_b: str, matched_at: datetime) -> tuple[bool, MatchRecord]:
        key = canonical_pair(user_a, user_b)
        with self._lock:
            existing = self._matches.get(key)
            if existing is not None:
                return False, existing
            record = MatchRecord(id=str(uuid.uuid4()), user_a_id=key[0], user_b_id=key[1], matched_at=matched_at)
            self._matches[key] = record
            return True, record

    def list_matches_for_user(self, user_id: str) -> list[MatchRecord]:
        with self._lock:
            out = [m for m in self._matches.values() if user_id in (m.user_a_id, m.user_b_id)]
        out.sort(key=lambda m: m.id)
        out.sort(key=lambda m: m.matched_at, reverse=True)
        return out

    def list_unmatched_mutual_likes(self, user_id: str | None = None) -> list[tuple[str, str]]:
        with self._lock:
            edges = dict(self._edges)
            matched = set(self._matches)
        out: list[tuple[str, str]] = []
        for (swiper_id, target_id), edge in edges.items():
            if swiper_id >= target_id or edge.action != SwipeAction.LIKE:
                continue
            if user_id is not None and user_id not in (swiper_id, target_id):
                continue
            back = edges.get((target_id, swiper_id))
            if back is None or back.action != SwipeAction.LIKE:
                continue
            if (swiper_id, target_id) in matched:
                continue
            out.append((swiper_id, target_id))
        return sorted(out)

    def match_count(self) -> int:
        with self._lock:
            return len(self._matches)


class NullInteractionStore:
    """Stands in when the swipe feature is not provisioned."""

    available = False

    def get_swipe_edge(self, swiper_id: str, target_id: str) -> SwipeEdge | None:
        return None

    def upsert_swipe_edge(self, edge: SwipeEdge) -> bool:
        raise DependencyFailure("Store unavailable")

    def list_swipe_edges(
        self,
        swiper_id: str,
        target_ids: Iterable[str] | None = None,
        action: SwipeAction | None = None,
        limit: int | None = None,
    ) -> list[SwipeEdge]:
        return []

    def get_match(self, user_a: str, user_b: str) -> MatchRecord | None:
        return None

    def create_match_if_absent(self, user_a: str, user_b: str, matched_at: datetime) -> tuple[bool, MatchRecord]:
        raise DependencyFailure("Store unavailable")

    def list_matches_for_user(self, user_id: str) -> list[MatchRecord]:
        return []

    def list_unmatched_mutual_likes(self, user_id: str | None = None) -> list[tuple[str, str]]:
        return []
