"""Seed a demo semester, campus and pending setups.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

from portal.db.bootstrap import ensure_runtime_schema
from portal.db.seed import SEMESTER, seed_demo_data
from portal.db.session import SessionLocal


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        counts = seed_demo_data(session)
        session.commit()

    print("Demo data seeded successfully.")
    print("")
    print(f"Semester: {SEMESTER}")
    for name, count in counts.items():
        print(f"  {name}: {count}")


if __name__ == "__main__":
    main()
