from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import AGE_CEILING, AGE_FLOOR


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class SwipeAction(str, Enum):
    LIKE = "like"
    SKIP = "skip"


class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _normalize_gender(value: Any) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    return v or None


class UserRecord(_Record):
    id: str = Field(min_length=1)
    display_name: str | None = None
    birth_date: date | None = None
    gender: str | None = None
    school: str = ""
    program: str = ""
    preference_text: str = ""
    bio: str = ""
    verification_state: VerificationState = VerificationState.UNVERIFIED
    is_restricted: bool = False
    report_count: int = Field(default=0, ge=0)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> str | None:
        return _normalize_gender(value)

    @field_validator("school", "program", "preference_text", "bio", mode="before")
    @classmethod
    def _blank_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()


class SwipeEdge(_Record):
    swiper_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)
    action: SwipeAction
    swiped_at: datetime


class MatchRecord(_Record):
    id: str
    user_a_id: str
    user_b_id: str
    matched_at: datetime

    def other_user(self, user_id: str) -> str:
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id


class FeedFilters(_Record):
    same_school: bool = False
    same_program: bool = False
    min_age: int | None = Field(default=None, ge=AGE_FLOOR)
    max_age: int | None = Field(default=None, le=AGE_CEILING)

    @model_validator(mode="after")
    def _age_order(self) -> "FeedFilters":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")
        return self

    def age_bounds(self) -> tuple[int, int] | None:
        """Return (min, max) when the range is narrower than the default [18, 100]."""
        lo = self.min_age if self.min_age is not None else AGE_FLOOR
        hi = self.max_age if self.max_age is not None else AGE_CEILING
        if lo <= AGE_FLOOR and hi >= AGE_CEILING:
            return None
        return lo, hi


class EligibilityCriteria(_Record):
    """Store-side filters handed to ``UserDirectory.list_eligible_users``."""

    requester_id: str
    exclude_ids: set[str] = Field(default_factory=set)
    gender: str | None = None
    school: str | None = None
    program: str | None = None
    # Age window as birth dates: born_after < birth_date <= born_on_or_before.
    born_after: date | None = None
    born_on_or_before: date | None = None


class Candidate(_Record):
    id: str
    display_name: str | None = None
    age: int | None = None
    gender: str | None = None
    school: str = ""
    program: str = ""
    bio: str = ""
    verification_state: VerificationState
    is_verified: bool
    report_count: int = 0
    score: int
    # No interest data source is wired up yet; always empty.
    shared_interests: list[str] = Field(default_factory=list)
    is_liked: bool = False
    is_skipped: bool = False


class FeedPage(_Record):
    candidates: list[Candidate] = Field(default_factory=list)
    page: int
    page_size: int
    total: int
    has_more: bool


class SwipeRequest(_Record):
    swiper_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)
    action: SwipeAction


class SwipeResult(_Record):
    accepted: bool
    action: SwipeAction
    is_match: bool = False
    match_id: str | None = None
    created: bool = False
    match_created: bool = False


class MatchedUser(_Record):
    id: str
    display_name: str | None = None
    age: int | None = None
    gender: str | None = None
    school: str = ""
    program: str = ""
    bio: str = ""
    verification_state: VerificationState = VerificationState.UNVERIFIED
    is_verified: bool = False


class MatchSummary(_Record):
    match_id: str
    matched_at: datetime
    user: MatchedUser


class ReconcileSummary(_Record):
    pairs_checked: int = 0
    matches_created: int = 0
    failures: int = 0
