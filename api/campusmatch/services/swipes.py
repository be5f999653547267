"""Swipe recording and mutual-match detection.

A pair of users moves NoInteraction -> OneSidedLike -> Matched; skips are
recorded but never take part in matching. Edge writes are hard failures.
Anything that goes wrong after the edge is committed (reciprocal lookup,
match creation) is absorbed: the swipe stays accepted and ``is_match`` is
reported false, and the next like on the pair or ``reconcile_matches``
re-attempts the match.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..config import SWIPE_HISTORY_DEFAULT_LIMIT, SWIPE_HISTORY_MAX_LIMIT
from ..errors import DependencyFailure, InputError, NotFoundError
from ..schemas import SwipeAction, SwipeEdge, SwipeResult
from ..stores import InteractionStore, UserDirectory
from ..stores.sql import now_utc as _now_utc

logger = logging.getLogger(__name__)


def parse_action(value: Any) -> SwipeAction:
    try:
        return SwipeAction(str(value or "").strip().lower())
    except ValueError:
        raise InputError('Action must be "like" or "skip"') from None


def _require_users(directory: UserDirectory, swiper_id: str, target_id: str) -> None:
    found = directory.get_users([swiper_id, target_id])
    if swiper_id not in found:
        raise NotFoundError("Swiper not found")
    if target_id not in found:
        raise NotFoundError("Target user not found")


def _detect_match(store: InteractionStore, swiper_id: str, target_id: str, now: datetime) -> tuple[bool, str | None, bool]:
    """Return (is_match, match_id, match_created) after a like has been stored."""
    try:
        reciprocal = store.get_swipe_edge(target_id, swiper_id)
        if reciprocal is None or reciprocal.action != SwipeAction.LIKE:
            return False, None, False
        created, record = store.create_match_if_absent(swiper_id, target_id, now)
    except Exception:
        # The edge is already committed; the next like or a reconcile pass retries.
        logger.exception(
            "[MATCH] match creation failed after swipe was stored swiper_id=%s target_id=%s",
            swiper_id,
            target_id,
        )
        return False, None, False

    if created:
        logger.info("[MATCH] created match_id=%s users=%s,%s", record.id, record.user_a_id, record.user_b_id)
    return True, record.id, created


def record_swipe(
    directory: UserDirectory,
    store: InteractionStore,
    swiper_id: str,
    target_id: str,
    action: Any,
    *,
    now: datetime | None = None,
) -> SwipeResult:
    swiper_id = str(swiper_id or "").strip()
    target_id = str(target_id or "").strip()
    if not swiper_id or not target_id:
        raise InputError("swiper_id and target_id are required")
    swipe_action = parse_action(action)
    if swiper_id == target_id:
        raise InputError("Cannot swipe on your own profile")

    _require_users(directory, swiper_id, target_id)
    if not store.available:
        raise DependencyFailure("Store unavailable")

    now = now or _now_utc()
    created = store.upsert_swipe_edge(
        SwipeEdge(swiper_id=swiper_id, target_id=target_id, action=swipe_action, swiped_at=now)
    )
    logger.info(
        "[SWIPE] swiper_id=%s target_id=%s action=%s created=%s",
        swiper_id,
        target_id,
        swipe_action.value,
        created,
    )

    if swipe_action != SwipeAction.LIKE:
        return SwipeResult(accepted=True, action=swipe_action, created=created)

    is_match, match_id, match_created = _detect_match(store, swiper_id, target_id, now)
    return SwipeResult(
        accepted=True,
        action=swipe_action,
        is_match=is_match,
        match_id=match_id,
        created=created,
        match_created=match_created,
    )


def list_swipe_history(
    directory: UserDirectory,
    store: InteractionStore,
    user_id: str,
    *,
    action: str = "all",
    limit: int = SWIPE_HISTORY_DEFAULT_LIMIT,
) -> list[SwipeEdge]:
    if limit < 1 or limit > SWIPE_HISTORY_MAX_LIMIT:
        raise InputError(f"limit must be between 1 and {SWIPE_HISTORY_MAX_LIMIT}")
    action_filter = None if (action or "all") == "all" else parse_action(action)
    if directory.get_user(user_id) is None:
        raise NotFoundError("User not found")
    if not store.available:
        raise DependencyFailure("Store unavailable")
    return store.list_swipe_edges(user_id, action=action_filter, limit=limit)
