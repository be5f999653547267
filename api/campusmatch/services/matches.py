from __future__ import annotations

import logging
from datetime import date, datetime

from ..errors import DependencyFailure, NotFoundError
from ..schemas import MatchedUser, MatchSummary, ReconcileSummary, UserRecord, VerificationState
from ..stores import InteractionStore, UserDirectory
from ..stores.sql import now_utc as _now_utc
from .pool import compute_age

logger = logging.getLogger(__name__)


def _public_profile(user_id: str, user: UserRecord | None, today: date) -> MatchedUser:
    if user is None:
        # Directory row gone (account removed); keep the match visible without details.
        return MatchedUser(id=user_id)
    return MatchedUser(
        id=user.id,
        display_name=user.display_name,
        age=compute_age(user.birth_date, today) if user.birth_date else None,
        gender=user.gender,
        school=user.school,
        program=user.program,
        bio=user.bio,
        verification_state=user.verification_state,
        is_verified=user.verification_state == VerificationState.VERIFIED,
    )


def list_matches(
    directory: UserDirectory,
    store: InteractionStore,
    user_id: str,
    *,
    today: date | None = None,
) -> list[MatchSummary]:
    today = today or date.today()
    if directory.get_user(user_id) is None:
        raise NotFoundError("User not found")
    if not store.available:
        return []

    records = store.list_matches_for_user(user_id)
    others = directory.get_users([r.other_user(user_id) for r in records])
    return [
        MatchSummary(
            match_id=r.id,
            matched_at=r.matched_at,
            user=_public_profile(r.other_user(user_id), others.get(r.other_user(user_id)), today),
        )
        for r in records
    ]


def reconcile_matches(
    store: InteractionStore,
    user_id: str | None = None,
    *,
    now: datetime | None = None,
) -> ReconcileSummary:
    """Materialize matches for mutual likes whose match creation was lost."""
    if not store.available:
        raise DependencyFailure("Store unavailable")
    now = now or _now_utc()
    summary = ReconcileSummary()
    for user_a, user_b in store.list_unmatched_mutual_likes(user_id):
        summary.pairs_checked += 1
        try:
            created, record = store.create_match_if_absent(user_a, user_b, now)
        except DependencyFailure:
            summary.failures += 1
            logger.exception("[MATCH] reconcile failed users=%s,%s", user_a, user_b)
            continue
        if created:
            summary.matches_created += 1
            logger.info("[MATCH] reconciled match_id=%s users=%s,%s", record.id, user_a, user_b)
    logger.info(
        "[MATCH] reconcile user_id=%s checked=%s created=%s failures=%s",
        user_id,
        summary.pairs_checked,
        summary.matches_created,
        summary.failures,
    )
    return summary
