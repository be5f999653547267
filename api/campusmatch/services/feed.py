from __future__ import annotations

import logging
from datetime import date

from ..config import FEED_DEFAULT_PAGE_SIZE, FEED_MAX_PAGE_SIZE
from ..errors import InputError
from ..schemas import FeedFilters, FeedPage
from ..stores import InteractionStore, UserDirectory
from .pool import build_candidate_pool
from .ranking import rank_and_paginate, to_candidate

logger = logging.getLogger(__name__)


def get_feed(
    directory: UserDirectory,
    store: InteractionStore,
    requester_id: str,
    *,
    page: int = 1,
    page_size: int = FEED_DEFAULT_PAGE_SIZE,
    filters: FeedFilters | None = None,
    today: date | None = None,
) -> FeedPage:
    if not requester_id:
        raise InputError("user_id is required")
    if page < 1:
        raise InputError("page must be >= 1")
    if page_size < 1 or page_size > FEED_MAX_PAGE_SIZE:
        raise InputError(f"page_size must be between 1 and {FEED_MAX_PAGE_SIZE}")

    today = today or date.today()
    pool = build_candidate_pool(directory, store, requester_id, filters, today=today)
    scored = [to_candidate(pool.requester, user, today) for user in pool.candidates]
    result = rank_and_paginate(
        scored,
        page=page,
        page_size=page_size,
        store=store,
        requester_id=pool.requester.id,
    )
    logger.info(
        "[FEED] user_id=%s page=%s page_size=%s total=%s returned=%s degraded=%s",
        pool.requester.id,
        page,
        page_size,
        result.total,
        len(result.candidates),
        pool.exclusions_degraded,
    )
    return result
