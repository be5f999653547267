from datetime import date, datetime, timezone

import pytest

from campusmatch.errors import DependencyFailure, NotFoundError
from campusmatch.schemas import FeedFilters, SwipeEdge, UserRecord
from campusmatch.services.pool import birth_date_bounds, build_candidate_pool, compute_age, orientation_target
from campusmatch.stores import InMemoryInteractionStore, InMemoryUserDirectory, NullInteractionStore

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _user(
    user_id: str,
    gender: str | None = "female",
    birth_date: date | None = date(2004, 1, 1),
    school: str = "",
    program: str = "",
    is_restricted: bool = False,
) -> UserRecord:
    return UserRecord(
        id=user_id,
        gender=gender,
        birth_date=birth_date,
        school=school,
        program=program,
        is_restricted=is_restricted,
    )


def _ids(pool) -> set[str]:
    return {c.id for c in pool.candidates}


def _swipe(swiper_id: str, target_id: str, action: str) -> SwipeEdge:
    return SwipeEdge(swiper_id=swiper_id, target_id=target_id, action=action, swiped_at=NOW)


def test_compute_age_respects_birthday_not_yet_reached():
    assert compute_age(date(2004, 10, 19), TODAY) == 22
    assert compute_age(date(2004, 10, 20), TODAY) == 21


def test_birth_date_bounds_cover_inclusive_age_range():
    born_after, born_on_or_before = birth_date_bounds(21, 22, TODAY)
    assert born_on_or_before == date(2005, 10, 19)
    assert born_after == date(2003, 10, 19)


def test_orientation_target_mapping():
    assert orientation_target("male") == "female"
    assert orientation_target("Female") == "male"
    assert orientation_target("non-binary") is None
    assert orientation_target(None) is None


def test_pool_excludes_self_restricted_and_same_gender():
    directory = InMemoryUserDirectory(
        [
            _user("req", gender="male"),
            _user("f1"),
            _user("f2", is_restricted=True),
            _user("m1", gender="male"),
        ]
    )
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)
    assert _ids(pool) == {"f1"}
    assert pool.exclusions_degraded is False


def test_unknown_requester_gender_passes_every_gender_through():
    directory = InMemoryUserDirectory(
        [_user("req", gender="non-binary"), _user("f1"), _user("m1", gender="male"), _user("x1", gender=None)]
    )
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)
    assert _ids(pool) == {"f1", "m1", "x1"}


def test_pool_excludes_liked_and_skipped_targets():
    directory = InMemoryUserDirectory([_user("req", gender="male"), _user("f1"), _user("f2"), _user("f3")])
    store = InMemoryInteractionStore()
    store.upsert_swipe_edge(_swipe("req", "f1", "like"))
    store.upsert_swipe_edge(_swipe("req", "f2", "skip"))
    # swipes *toward* the requester do not hide anyone
    store.upsert_swipe_edge(_swipe("f3", "req", "like"))

    pool = build_candidate_pool(directory, store, "req", today=TODAY)
    assert _ids(pool) == {"f3"}


def test_pool_excludes_blocked_in_both_directions():
    directory = InMemoryUserDirectory(
        [_user("req", gender="male"), _user("f1"), _user("f2"), _user("f3")],
        blocks=[("req", "f1"), ("f2", "req")],
    )
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)
    assert _ids(pool) == {"f3"}


def test_age_filter_uses_birth_dates():
    directory = InMemoryUserDirectory(
        [
            _user("req", gender="male"),
            _user("age20", birth_date=date(2006, 1, 1)),
            _user("age21", birth_date=date(2004, 10, 20)),
            _user("age22", birth_date=date(2004, 10, 19)),
            _user("age23", birth_date=date(2003, 10, 19)),
            _user("unknown", birth_date=None),
        ]
    )
    filters = FeedFilters(min_age=21, max_age=22)
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", filters, today=TODAY)
    assert _ids(pool) == {"age21", "age22"}


def test_full_default_age_range_does_not_filter():
    directory = InMemoryUserDirectory([_user("req", gender="male"), _user("unknown", birth_date=None)])
    filters = FeedFilters(min_age=18, max_age=100)
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", filters, today=TODAY)
    assert _ids(pool) == {"unknown"}


def test_same_school_and_program_filters():
    directory = InMemoryUserDirectory(
        [
            _user("req", gender="male", school="X", program="Eng"),
            _user("x_eng", school="X", program="Eng"),
            _user("x_law", school="X", program="Law"),
            _user("y_eng", school="Y", program="Eng"),
        ]
    )
    store = InMemoryInteractionStore()
    assert _ids(build_candidate_pool(directory, store, "req", FeedFilters(same_school=True), today=TODAY)) == {"x_eng", "x_law"}
    assert _ids(build_candidate_pool(directory, store, "req", FeedFilters(same_program=True), today=TODAY)) == {"x_eng", "y_eng"}
    both = FeedFilters(same_school=True, same_program=True)
    assert _ids(build_candidate_pool(directory, store, "req", both, today=TODAY)) == {"x_eng"}


def test_same_school_filter_ignored_when_requester_school_empty():
    directory = InMemoryUserDirectory([_user("req", gender="male", school=""), _user("f1", school="X"), _user("f2", school="Y")])
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", FeedFilters(same_school=True), today=TODAY)
    assert _ids(pool) == {"f1", "f2"}


def test_missing_requester_raises_not_found():
    with pytest.raises(NotFoundError):
        build_candidate_pool(InMemoryUserDirectory(), InMemoryInteractionStore(), "ghost", today=TODAY)


def test_absent_interaction_store_degrades_to_empty_exclusions():
    directory = InMemoryUserDirectory([_user("req", gender="male"), _user("f1")])
    pool = build_candidate_pool(directory, NullInteractionStore(), "req", today=TODAY)
    assert _ids(pool) == {"f1"}
    assert pool.exclusions_degraded is True


def test_unreachable_interaction_store_degrades_to_empty_exclusions():
    class _BrokenStore(InMemoryInteractionStore):
        def list_swipe_edges(self, *args, **kwargs):
            raise DependencyFailure("down")

    directory = InMemoryUserDirectory([_user("req", gender="male"), _user("f1")])
    store = _BrokenStore()
    store.upsert_swipe_edge(_swipe("req", "f1", "like"))
    pool = build_candidate_pool(directory, store, "req", today=TODAY)
    assert _ids(pool) == {"f1"}
    assert pool.exclusions_degraded is True


def test_directory_failure_surfaces():
    class _BrokenDirectory(InMemoryUserDirectory):
        def list_eligible_users(self, criteria):
            raise DependencyFailure("directory down")

    directory = _BrokenDirectory([_user("req", gender="male")])
    with pytest.raises(DependencyFailure):
        build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)


def test_pool_returns_every_eligible_candidate():
    directory = InMemoryUserDirectory([_user("req", gender="male")] + [_user(f"f{i:02d}") for i in range(30)])
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)
    assert len(pool.candidates) == 30


def test_age_bounds_are_pushed_into_directory_query():
    seen = []

    class _RecordingDirectory(InMemoryUserDirectory):
        def list_eligible_users(self, criteria):
            seen.append(criteria)
            return super().list_eligible_users(criteria)

    directory = _RecordingDirectory([_user("req", gender="male"), _user("f1", birth_date=date(2004, 10, 19))])
    filters = FeedFilters(min_age=21, max_age=22)
    pool = build_candidate_pool(directory, InMemoryInteractionStore(), "req", filters, today=TODAY)

    assert _ids(pool) == {"f1"}
    assert seen[0].born_after == date(2003, 10, 19)
    assert seen[0].born_on_or_before == date(2005, 10, 19)

    build_candidate_pool(directory, InMemoryInteractionStore(), "req", today=TODAY)
    assert seen[1].born_after is None and seen[1].born_on_or_before is None
