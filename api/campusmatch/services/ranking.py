from __future__ import annotations

import logging
from datetime import date

from ..errors import DependencyFailure
from ..schemas import Candidate, FeedPage, SwipeAction, UserRecord, VerificationState
from ..stores import InteractionStore
from .pool import compute_age
from .scoring import score

logger = logging.getLogger(__name__)


def to_candidate(requester: UserRecord, user: UserRecord, today: date) -> Candidate:
    return Candidate(
        id=user.id,
        display_name=user.display_name,
        age=compute_age(user.birth_date, today) if user.birth_date else None,
        gender=user.gender,
        school=user.school,
        program=user.program,
        bio=user.bio,
        verification_state=user.verification_state,
        is_verified=user.verification_state == VerificationState.VERIFIED,
        report_count=user.report_count,
        score=score(requester, user),
    )


def sort_candidates(candidates: list[Candidate]) -> list[Candidate]:
    # Highest score first; equal scores fall back to ascending id.
    return sorted(candidates, key=lambda c: (-c.score, c.id))


def paginate(items: list, page: int, page_size: int) -> tuple[list, bool]:
    start = (page - 1) * page_size
    end = page * page_size
    return items[start:end], end < len(items)


def tag_prior_swipes(store: InteractionStore, requester_id: str, page_items: list[Candidate]) -> list[Candidate]:
    if not page_items or not store.available:
        return page_items
    try:
        edges = store.list_swipe_edges(requester_id, target_ids=[c.id for c in page_items])
    except DependencyFailure:
        logger.warning("[FEED] prior-swipe tagging skipped user_id=%s", requester_id)
        return page_items
    actions = {e.target_id: e.action for e in edges}
    return [
        c.model_copy(
            update={
                "is_liked": actions.get(c.id) == SwipeAction.LIKE,
                "is_skipped": actions.get(c.id) == SwipeAction.SKIP,
            }
        )
        for c in page_items
    ]


def rank_and_paginate(
    candidates: list[Candidate],
    *,
    page: int,
    page_size: int,
    store: InteractionStore,
    requester_id: str,
) -> FeedPage:
    ranked = sort_candidates(candidates)
    page_items, has_more = paginate(ranked, page, page_size)
    page_items = tag_prior_swipes(store, requester_id, page_items)
    return FeedPage(
        candidates=page_items,
        page=page,
        page_size=page_size,
        total=len(ranked),
        has_more=has_more,
    )
