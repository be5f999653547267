import random
import uuid
from collections import Counter
from datetime import date, timedelta
from typing import Any

from sqlalchemy import text

SCHOOLS = ["Chulalongkorn University", "Mahidol University", "Thammasat University", "Kasetsart University"]
PROGRAMS = ["Engineering", "Medicine", "Economics", "Law", "Arts", "Science", "Architecture"]
GENDERS = ["male", "female", "male", "female", "non-binary"]
VERIFICATION_WEIGHTS = {"verified": 0.55, "pending": 0.2, "unverified": 0.2, "rejected": 0.05}
PREFERENCE_WORDS = [
    "music", "travel", "coffee", "hiking", "movies", "reading", "cooking", "gaming",
    "photography", "football", "yoga", "honest", "funny", "kind", "ambitious", "calm",
]


def _weighted_choice(rng: random.Random, weight_map: dict[str, float]) -> str:
    values = list(weight_map.keys())
    return rng.choices(values, weights=[weight_map[v] for v in values], k=1)[0]


def _birth_date(rng: random.Random, today: date) -> date:
    age_days = rng.randint(18 * 365 + 5, 30 * 365)
    return today - timedelta(days=age_days)


def _preference_text(rng: random.Random) -> str:
    return " ".join(rng.sample(PREFERENCE_WORDS, k=rng.randint(3, 7)))


def seed_demo_users(
    db,
    n_users: int = 100,
    reset: bool = False,
    seed: int = 42,
    today: date | None = None,
) -> dict[str, Any]:
    rng = random.Random(seed)
    today = today or date.today()

    if reset:
        db.execute(text("DELETE FROM match_record"))
        db.execute(text("DELETE FROM swipe"))
        db.execute(text("DELETE FROM user_block"))
        db.execute(text("DELETE FROM user_account"))
        db.commit()

    gender_counter: Counter[str] = Counter()
    verification_counter: Counter[str] = Counter()
    restricted = 0

    for i in range(n_users):
        gender = rng.choice(GENDERS)
        verification = _weighted_choice(rng, VERIFICATION_WEIGHTS)
        is_restricted = rng.random() < 0.03
        report_count = rng.choices([0, 1, 2, 6], weights=[0.85, 0.08, 0.05, 0.02], k=1)[0]
        db.execute(
            text(
                """
                INSERT INTO user_account (
                  id, display_name, birth_date, gender, school, program, preference_text, bio,
                  verification_status, is_restricted, report_count
                )
                VALUES (
                  :id, :display_name, :birth_date, :gender, :school, :program, :preference_text, :bio,
                  :verification_status, :is_restricted, :report_count
                )
                """
            ),
            {
                "id": str(uuid.uuid4()),
                "display_name": f"Seed {i + 1}",
                "birth_date": _birth_date(rng, today).isoformat(),
                "gender": gender,
                "school": rng.choice(SCHOOLS),
                "program": rng.choice(PROGRAMS),
                "preference_text": _preference_text(rng),
                "bio": "",
                "verification_status": verification,
                "is_restricted": is_restricted,
                "report_count": report_count,
            },
        )
        gender_counter[gender] += 1
        verification_counter[verification] += 1
        restricted += int(is_restricted)

    db.commit()
    return {
        "users_created": n_users,
        "genders": dict(gender_counter),
        "verification": dict(verification_counter),
        "restricted": restricted,
        "reset": reset,
        "seed": seed,
    }
