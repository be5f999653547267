from campusmatch.schemas import UserRecord
from campusmatch.services.scoring import preference_overlap, score, score_breakdown


def _user(
    user_id: str,
    school: str = "",
    program: str = "",
    preference_text: str = "",
    verification_state: str = "unverified",
    report_count: int = 0,
) -> UserRecord:
    return UserRecord(
        id=user_id,
        school=school,
        program=program,
        preference_text=preference_text,
        verification_state=verification_state,
        report_count=report_count,
    )


def test_base_score_without_bonuses():
    assert score(_user("r"), _user("c")) == 50


def test_verified_school_and_program_bonuses_stack():
    requester = _user("r", school="X", program="Eng")
    assert score(requester, _user("c1", verification_state="verified")) == 70
    assert score(requester, _user("c2", school="X")) == 60
    assert score(requester, _user("c3", program="Eng")) == 55
    assert score(requester, _user("c4", school="X", program="Eng", verification_state="verified")) == 85


def test_program_bonus_is_independent_of_school():
    requester = _user("r", school="X", program="Eng")
    assert score(requester, _user("c", school="Y", program="Eng")) == 55


def test_empty_school_never_matches_empty_school():
    requester = _user("r", school="", program="")
    assert score(requester, _user("c", school="", program="")) == 50


def test_pending_verification_gets_no_bonus():
    assert score(_user("r"), _user("c", verification_state="pending")) == 50


def test_preference_overlap_counts_candidate_occurrences_and_skips_short_tokens():
    requester_text = "Loves hiking and coffee"
    candidate_text = "hiking HIKING coffee and tea"
    assert preference_overlap(requester_text, candidate_text) == 3
    out = score_breakdown(_user("r", preference_text=requester_text), _user("c", preference_text=candidate_text))
    assert out["preferences"] == 6
    assert out["total"] == 56


def test_preference_bonus_is_capped():
    requester = _user("r", preference_text="music travel coffee hiking")
    candidate = _user("c", preference_text="music travel coffee hiking music travel coffee hiking")
    assert score_breakdown(requester, candidate)["preferences"] == 15


def test_preference_bonus_requires_both_texts():
    assert preference_overlap("", "music travel") == 0
    assert preference_overlap("music travel", "") == 0


def test_report_penalty_scenario():
    assert score(_user("r"), _user("c", report_count=6)) == 20


def test_score_is_floored_at_zero():
    assert score(_user("r"), _user("c", report_count=40)) == 0


def test_score_is_deterministic():
    requester = _user("r", school="X", program="Eng", preference_text="coffee music")
    candidate = _user("c", school="X", preference_text="music music coffee", report_count=1, verification_state="verified")
    assert score(requester, candidate) == score(requester, candidate)
    assert score_breakdown(requester, candidate) == score_breakdown(requester, candidate)


def test_score_never_negative_across_report_counts():
    requester = _user("r", school="X", program="Eng", preference_text="music travel")
    for reports in range(0, 30):
        for state in ("unverified", "verified"):
            candidate = _user("c", school="X", verification_state=state, report_count=reports)
            assert score(requester, candidate) >= 0
