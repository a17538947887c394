"""
Create tables and seed reference data (roles, token statuses, token types).
Run once before starting the app: python scripts/seed_reference_data.py

Uses DATABASE_URL (or POSTGRES_* settings) from the environment / .env.
Existing rows are left untouched, so the script is safe to re-run.
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import text
from commerce_auth.config import settings
from commerce_auth.core.database import Base, SessionLocal, engine
from commerce_auth.services.reference_data import seed_reference_data


def main():
    url = settings.get_database_url()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print(f"Cannot connect to database at {engine.url!r}: {e}")
        sys.exit(1)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_reference_data(db)
    finally:
        db.close()

    print(f"Seeded {url.split('@')[-1]}: {created}")


if __name__ == "__main__":
    main()
