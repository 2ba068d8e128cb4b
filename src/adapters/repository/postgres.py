"""
PostgreSQL registry adapter - Implements DeviceRegistry protocol.

This module provides the PostgreSQL implementation of the domain's
device registry port using psycopg3 with raw SQL. It is an alternative
to the Firebase Realtime Database for deployments that already keep
device registrations in PostgreSQL.

Rows are exposed in the same record shape the Realtime Database uses
({"fcmToken": ...} keyed by device id) so the domain validates a single
format.

Timeouts:
- Connection checkout is bounded by the pool's `timeout`
- Each statement is bounded by `statement_timeout` on the connection
Both surface as psycopg errors and are translated to RegistryUnavailable.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.exceptions import RegistryUnavailable
from src.domain.models import CancellationOutcome
from src.domain.resolver import TOKEN_FIELD

logger = logging.getLogger(__name__)


class PostgresDeviceRegistry:
    """
    Implements DeviceRegistry protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize registry with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def fetch_devices(self, user_id: str) -> dict[str, dict[str, Any]] | None:
        """
        Read every device registered for a user in one query.

        Returns:
            Records keyed by device id (ordered by device id),
            or None if the user has no registrations
        """
        sql = """
            SELECT device_id, push_token
            FROM device_registrations
            WHERE user_id = %s
            ORDER BY device_id
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (user_id,))
                rows = cursor.fetchall()
        except psycopg.Error as e:
            logger.error("Device registry read failed for user %s: %s", user_id, e)
            raise RegistryUnavailable(f"Device registry read failed: {e}") from e

        if not rows:
            return None
        return {device_id: {TOKEN_FIELD: push_token} for device_id, push_token in rows}

    def remove_stale_registrations(
        self, user_id: str, registrations: Sequence[CancellationOutcome]
    ) -> int:
        """
        Delete stale registrations that still hold the failed token.

        The token predicate in the WHERE clause makes the delete a no-op
        for devices that re-registered after the send.
        """
        sql = """
            DELETE FROM device_registrations
            WHERE user_id = %s AND device_id = %s AND push_token = %s
        """

        removed = 0
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                for registration in registrations:
                    cursor.execute(sql, (user_id, registration.device_id, registration.push_token))
                    removed += cursor.rowcount
                conn.commit()
        except psycopg.Error as e:
            raise RegistryUnavailable(f"Device registry cleanup failed: {e}") from e
        return removed


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
