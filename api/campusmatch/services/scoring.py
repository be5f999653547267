from __future__ import annotations

from ..schemas import UserRecord, VerificationState

BASE_SCORE = 50
VERIFIED_BONUS = 20
SAME_SCHOOL_BONUS = 10
SAME_PROGRAM_BONUS = 5
PREFERENCE_TOKEN_POINTS = 2
PREFERENCE_BONUS_CAP = 15
PREFERENCE_MIN_TOKEN_LEN = 4
REPORT_PENALTY = 5


def _tokens(value: str) -> list[str]:
    return value.lower().split()


def preference_overlap(requester_text: str, candidate_text: str) -> int:
    """Count candidate tokens (every occurrence) longer than 3 chars that the requester also used."""
    if not requester_text or not candidate_text:
        return 0
    requester_tokens = set(_tokens(requester_text))
    return sum(
        1
        for token in _tokens(candidate_text)
        if len(token) >= PREFERENCE_MIN_TOKEN_LEN and token in requester_tokens
    )


def score_breakdown(requester: UserRecord, candidate: UserRecord) -> dict[str, int]:
    verified = VERIFIED_BONUS if candidate.verification_state == VerificationState.VERIFIED else 0
    school = SAME_SCHOOL_BONUS if candidate.school and candidate.school == requester.school else 0
    program = SAME_PROGRAM_BONUS if candidate.program and candidate.program == requester.program else 0
    overlap = preference_overlap(requester.preference_text, candidate.preference_text)
    preferences = min(overlap * PREFERENCE_TOKEN_POINTS, PREFERENCE_BONUS_CAP)
    reports = -REPORT_PENALTY * candidate.report_count

    raw = BASE_SCORE + verified + school + program + preferences + reports
    return {
        "base": BASE_SCORE,
        "verified": verified,
        "same_school": school,
        "same_program": program,
        "preferences": preferences,
        "reports": reports,
        "total": max(0, raw),
    }


def score(requester: UserRecord, candidate: UserRecord) -> int:
    return score_breakdown(requester, candidate)["total"]
