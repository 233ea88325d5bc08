"""
Create the subscriptions schema against DATABASE_URL.

Usage:
  python scripts/init_database.py
"""
from __future__ import annotations

from sqlalchemy import inspect

from app.database import engine, init_db


def main() -> None:
    init_db()
    tables = sorted(inspect(engine).get_table_names())
    print(f"init_db ok tables={tables}")


if __name__ == "__main__":
    main()
