"""Apply SQL schema for local PostgreSQL setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from inittracker.backend.config import load_settings


logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def apply_schema(conn: Any, schema_path: Path = SCHEMA_PATH) -> None:
    """Create the encounters table on an open psycopg connection and commit."""
    schema_sql = schema_path.read_text(encoding="utf-8")
    with conn.cursor() as cur:
        cur.execute(schema_sql)
    conn.commit()
    logger.info("Applied %s", schema_path.name)


def main(database_url: str | None = None) -> None:
    database_url = database_url or load_settings().database_url
    if not database_url:
        raise RuntimeError("INITTRACKER_DATABASE_URL is required for migration")

    import psycopg

    with psycopg.connect(database_url) as conn:
        apply_schema(conn)


if __name__ == "__main__":
    logging.basicConfig(level=load_settings().log_level)
    main()
