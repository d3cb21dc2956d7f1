"""Verify the database has every table the models expect"""
from sqlalchemy import inspect
from app.database import Base, engine
from app.models import *

existing = set(inspect(engine).get_table_names())
expected = set(Base.metadata.tables)

print(f"Database has {len(existing)} tables:")
for table in sorted(existing):
    print(f"  - {table}")

missing = expected - existing
if missing:
    print(f"[ERROR] Missing tables: {', '.join(sorted(missing))}")
    print("   Run: alembic upgrade head")
    exit(1)
print("[OK] All tables present")
