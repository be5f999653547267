from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from ..errors import DependencyFailure, NotFoundError
from ..schemas import EligibilityCriteria, FeedFilters, UserRecord
from ..stores import InteractionStore, UserDirectory

logger = logging.getLogger(__name__)

# Fixed two-value orientation policy. Requesters outside this map see every gender.
OPPOSITE_GENDER = {"male": "female", "female": "male"}


@dataclass
class CandidatePool:
    requester: UserRecord
    candidates: list[UserRecord] = field(default_factory=list)
    exclusions_degraded: bool = False


def compute_age(birth_date: date, today: date) -> int:
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 on a non-leap target year
        return today.replace(year=today.year - years, day=28)


def birth_date_bounds(min_age: int, max_age: int, today: date) -> tuple[date, date]:
    """Return (born_after, born_on_or_before) such that the age lies in [min_age, max_age]."""
    return _years_before(today, max_age + 1), _years_before(today, min_age)


def orientation_target(gender: str | None) -> str | None:
    if not gender:
        return None
    return OPPOSITE_GENDER.get(gender.strip().lower())


def load_swipe_exclusions(store: InteractionStore, requester_id: str) -> tuple[set[str], bool]:
    """Ids the requester already swiped on, and whether the lookup had to be skipped."""
    if not store.available:
        logger.warning("[FEED] interaction store absent; serving feed without swipe exclusions user_id=%s", requester_id)
        return set(), True
    try:
        edges = store.list_swipe_edges(requester_id)
    except DependencyFailure:
        logger.warning("[FEED] swipe lookup failed; serving feed without swipe exclusions user_id=%s", requester_id)
        return set(), True
    return {e.target_id for e in edges}, False


def is_eligible(
    requester: UserRecord,
    candidate: UserRecord,
    filters: FeedFilters,
    excluded_ids: set[str],
    today: date,
) -> bool:
    if candidate.id == requester.id or candidate.id in excluded_ids:
        return False
    if candidate.is_restricted:
        return False

    target_gender = orientation_target(requester.gender)
    if target_gender is not None and candidate.gender != target_gender:
        return False

    bounds = filters.age_bounds()
    if bounds is not None:
        if candidate.birth_date is None:
            return False
        born_after, born_on_or_before = birth_date_bounds(bounds[0], bounds[1], today)
        if not (born_after < candidate.birth_date <= born_on_or_before):
            return False

    if filters.same_school and requester.school and candidate.school != requester.school:
        return False
    if filters.same_program and requester.program and candidate.program != requester.program:
        return False
    return True


def build_candidate_pool(
    directory: UserDirectory,
    store: InteractionStore,
    requester_id: str,
    filters: FeedFilters | None = None,
    *,
    today: date | None = None,
) -> CandidatePool:
    """Return every eligible candidate for the requester; ranking needs the whole pool."""
    filters = filters or FeedFilters()
    today = today or date.today()

    requester = directory.get_user(requester_id)
    if requester is None:
        raise NotFoundError("Requester not found")

    swiped_ids, degraded = load_swipe_exclusions(store, requester.id)
    blocked_ids = directory.list_block_exclusions(requester.id)
    excluded_ids = swiped_ids | blocked_ids

    born_after = born_on_or_before = None
    bounds = filters.age_bounds()
    if bounds is not None:
        born_after, born_on_or_before = birth_date_bounds(bounds[0], bounds[1], today)

    criteria = EligibilityCriteria(
        requester_id=requester.id,
        exclude_ids=excluded_ids,
        gender=orientation_target(requester.gender),
        school=requester.school if filters.same_school and requester.school else None,
        program=requester.program if filters.same_program and requester.program else None,
        born_after=born_after,
        born_on_or_before=born_on_or_before,
    )
    fetched = directory.list_eligible_users(criteria)
    candidates = [c for c in fetched if is_eligible(requester, c, filters, excluded_ids, today)]

    logger.debug(
        "[FEED] pool user_id=%s fetched=%s eligible=%s swiped=%s blocked=%s degraded=%s",
        requester.id,
        len(fetched),
        len(candidates),
        len(swiped_ids),
        len(blocked_ids),
        degraded,
    )
    return CandidatePool(requester=requester, candidates=candidates, exclusions_degraded=degraded)
