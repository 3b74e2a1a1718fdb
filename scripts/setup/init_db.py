"""
Initialize database: creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from app.database import create_tables, engine
from app.config import settings


def main():
    parser = argparse.ArgumentParser(description="Create impound database tables")
    parser.add_argument("--seed", action="store_true", help="Also load sample agencies")
    args = parser.parse_args()

    print("Impound DB Initialization")
    print("=" * 40)
    print(f"Database: {engine.url.render_as_string(hide_password=True)}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except SQLAlchemyError as e:
        print(f"Cannot connect to database: {e}")
        print("\nCheck DATABASE_URL in .env and that the server is running:")
        print("  docker-compose up -d db")
        sys.exit(1)

    print("\nCreating tables...")
    create_tables()

    tables = sorted(inspect(engine).get_table_names())
    print(f"\nTables in database ({len(tables)} total):")
    for t in tables:
        print(f"   - {t}")

    if args.seed:
        from scripts.setup.seed_data import seed
        seed()

    print("\nDatabase ready. Start the backend with:")
    print(f"   uvicorn app.main:app --host 0.0.0.0 --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
