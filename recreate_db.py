"""
Drop and recreate every table of the configured database from the models,
then load the development seed data.
For PostgreSQL deployments use `alembic upgrade head` instead.

Usage:
    python recreate_db.py [--no-seed]
"""
import sys
from sqlalchemy import inspect
from app.database import Base, engine, database_url
from app.models import *
from seed_data import seed


def recreate(with_seed: bool = True):
    if not database_url.startswith("sqlite"):
        print(f"[ERROR] Refusing to drop tables on a non-SQLite database: {engine.url.render_as_string()}")
        sys.exit(1)

    print("Dropping order, driver and notification tables...")
    Base.metadata.drop_all(bind=engine)

    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    tables = inspect(engine).get_table_names()
    print(f"Created tables: {', '.join(sorted(tables))}")

    if with_seed:
        seed()


if __name__ == "__main__":
    recreate(with_seed="--no-seed" not in sys.argv[1:])
