import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from campusmatch.services.matches import reconcile_matches
from campusmatch.stores import SqlInteractionStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Create match records for mutual likes that are missing one")
    parser.add_argument("--user-id", type=str, default="")
    args = parser.parse_args()

    summary = reconcile_matches(SqlInteractionStore(), args.user_id.strip() or None)

    print("Reconcile completed")
    for k, v in summary.model_dump().items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
