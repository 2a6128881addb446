"""
Check that the fleet tracker database is reachable.

Reads DATABASE_URL (or the DB_* parts) from .env and opens a raw asyncpg
connection, then reports which of the fleet tables already exist.
"""

import asyncio
import os
import sys

import asyncpg
from dotenv import load_dotenv

load_dotenv(".env")

FLEET_TABLES = [
    "departments",
    "users",
    "vehicles",
    "trips",
    "maintenance_schedules",
    "vehicle_inspections",
    "vehicle_status_log",
    "user_sessions",
]


def resolve_dsn() -> str:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        db_url = "postgresql://{user}:{password}@{host}:{port}/{name}".format(
            user=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD", "postgres"),
            host=os.getenv("DB_HOST", "localhost"),
            port=os.getenv("DB_PORT", "5432"),
            name=os.getenv("DB_NAME", "fleet_tracker_dev"),
        )
    # asyncpg wants a plain postgres DSN
    return db_url.replace("+asyncpg", "")


async def check_db(dsn: str) -> int:
    try:
        conn = await asyncpg.connect(dsn)
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Connection failed: {e}")
        return 1

    try:
        rows = await conn.fetch(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = 'public'"
        )
        existing = {row["table_name"] for row in rows}
        print("Connection successful")
        for table in FLEET_TABLES:
            marker = "ok" if table in existing else "missing"
            print(f"  {table:<24} {marker}")
    finally:
        await conn.close()
    return 0


if __name__ == "__main__":
    dsn = resolve_dsn()
    print(f"Testing connection to: {dsn.split('@')[-1]}")
    sys.exit(asyncio.run(check_db(dsn)))
