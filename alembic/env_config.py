"""Database URL for Alembic, read from the .env.{ENV} file"""

import os

from dotenv import load_dotenv

env = os.getenv("ENV", "local")
load_dotenv(f".env.{env}")


def get_database_url(environment: str = None) -> str:
    """
    Sync database URL for migrations.

    DATABASE_URL wins when set, with its async driver swapped for the sync
    one. Otherwise the URL is built from the DB_* variables.
    """
    if environment and environment != env:
        load_dotenv(f".env.{environment}", override=True)

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url.replace("+asyncpg", "").replace("+aiosqlite", "")

    db_port = os.getenv("DB_PORT") or "5432"
    return (
        f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
        f"@{os.getenv('DB_HOST')}:{db_port}/{os.getenv('DB_NAME')}"
    )
