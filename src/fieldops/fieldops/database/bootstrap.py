"""Apply database/schema.sql and database/seed.sql to the configured MySQL server."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# The files pin a database name for manual use; the configured one wins here.
_DB_SELECTION = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def _open(config: DBConfig, *, select_db: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if select_db:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def read_statements(path: str | Path) -> Iterator[str]:
    """Yield statements from a file with one ``;`` terminator per statement end."""
    pending: list[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if not line.strip() or line.lstrip().startswith("--"):
            continue
        pending.append(line)
        if line.rstrip().endswith(";"):
            stmt = "\n".join(pending).rstrip().rstrip(";").strip()
            pending = []
            if stmt and not _DB_SELECTION.match(stmt):
                yield stmt
    leftover = "\n".join(pending).strip()
    if leftover and not _DB_SELECTION.match(leftover):
        yield leftover


def _run_file(db_config: dict, path: str | Path) -> int:
    conn = _open(DBConfig.from_dict(db_config))
    count = 0
    try:
        cur = conn.cursor()
        for stmt in read_statements(path):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    conn = _open(config, select_db=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    logger.info("Applied schema %s (%s statements)", schema_path, _run_file(db_config, schema_path))


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    logger.info("Applied seed %s (%s statements)", seed_path, _run_file(db_config, seed_path))


def list_tables(db_config: dict) -> list[str]:
    conn = _open(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
