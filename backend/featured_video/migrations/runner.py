"""Schema migrations for the featured video tables.

Every API worker runs ``MigrationRunner.run_pending`` during startup, so the
runner serializes itself with a Postgres advisory lock held on one
connection for the whole run.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"

# pg_advisory_lock key shared by every worker of this service
LOCK_KEY = 0x46565F4D4947  # "FV_MIG"

# Tables the repositories read and write
REQUIRED_TABLES = (
    "floating_videos",
    "post_videos",
    "widget_documents",
    "site_options",
    "posts",
    "post_terms",
    "terms",
    "media_attachments",
)


class MigrationError(RuntimeError):
    """Raised when the schema is unusable after migrating."""


def checksum(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


class MigrationRunner:
    """Apply ``versions/NNN_description.sql`` files in filename order.

    Applied versions are recorded with the checksum of their SQL. A file
    that changed after it was applied is reported and left alone. Each
    pending file runs in its own transaction together with its tracking row.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def run_pending(self, migrations_dir: Path | None = None) -> list[str]:
        """Apply every pending migration. Returns the newly applied versions."""
        migrations_dir = migrations_dir or VERSIONS_DIR
        async with self.pool.acquire() as conn:
            await conn.execute("SELECT pg_advisory_lock($1)", LOCK_KEY)
            try:
                newly_applied = await self._migrate(conn, migrations_dir)
                missing = await self._missing_tables(conn)
            finally:
                await conn.execute("SELECT pg_advisory_unlock($1)", LOCK_KEY)

        if missing:
            raise MigrationError(f"Schema is missing tables: {', '.join(missing)}")
        if newly_applied:
            logger.info(f"Applied {len(newly_applied)} migration(s): {', '.join(newly_applied)}")
        else:
            logger.info("Featured video schema is up to date")
        return newly_applied

    async def _migrate(self, conn, migrations_dir: Path) -> list[str]:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                version    TEXT PRIMARY KEY,
                checksum   TEXT NOT NULL,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
            """
        )
        rows = await conn.fetch(f"SELECT version, checksum FROM {self.TRACKING_TABLE}")  # noqa: S608
        applied = {row["version"]: row["checksum"] for row in rows}

        newly_applied: list[str] = []
        for sql_path in sorted(migrations_dir.glob("*.sql")):
            version = sql_path.stem
            sql = sql_path.read_text(encoding="utf-8")
            if version in applied:
                if applied[version] != checksum(sql):
                    logger.warning(f"Migration {version} changed after it was applied; not re-running")
                continue

            logger.info(f"Applying migration: {version}")
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, checksum) VALUES ($1, $2)",
                    version,
                    checksum(sql),
                )
            newly_applied.append(version)
        return newly_applied

    async def _missing_tables(self, conn) -> list[str]:
        rows = await conn.fetch(
            """
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_name = ANY($1::text[])
            """,
            list(REQUIRED_TABLES),
        )
        present = {row["table_name"] for row in rows}
        return [name for name in REQUIRED_TABLES if name not in present]
