import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from campusmatch.database import SessionLocal
from campusmatch.main import init_db
from campusmatch.services.seeding import seed_demo_users


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo Campus Match users")
    parser.add_argument("--n-users", type=int, default=100)
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    init_db()
    with SessionLocal() as db:
        summary = seed_demo_users(db=db, n_users=args.n_users, reset=args.reset, seed=args.seed)

    print("Seed completed")
    for k, v in summary.items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
