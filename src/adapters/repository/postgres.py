"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with parameterized SQL.

Atomicity:
----------
1. **create()** relies on the UNIQUE constraint on email together with
   INSERT ... ON CONFLICT DO NOTHING, so concurrent registrations for the
   same email yield exactly one row.

2. **update_by_email()** is a single conditional UPDATE. Expected values
   are compared with IS NOT DISTINCT FROM so NULL timestamps and codes
   participate in the compare-and-swap like any other value. A lost race
   shows up as rowcount 0; the domain reloads and re-evaluates.

Column names for dynamic statements are restricted to the account's
mutable fields and quoted with psycopg.sql.Identifier.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.ports import MUTABLE_FIELDS, Account, Role

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "email",
    "name",
    "phone",
    "role",
    "password_hash",
    "is_active",
    "login_retries",
    "account_locked_until",
    "email_verification_code",
    "email_code_created_at",
    "email_verification_retries",
    "password_reset_code",
    "reset_code_created_at",
    "created_at",
)

_SELECT_LIST = sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS)


def _to_db(value: Any) -> Any:
    return value.value if isinstance(value, Role) else value


def _to_account(row: Mapping[str, Any]) -> Account:
    return Account(**{**row, "role": Role(row["role"])})


def _check_fields(names: set[str]) -> None:
    unknown = names - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {sorted(unknown)}")


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        query = sql.SQL("SELECT {columns} FROM accounts WHERE email = %s").format(
            columns=_SELECT_LIST
        )

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, (email,))
            row = cursor.fetchone()

        return _to_account(row) if row is not None else None

    def create(self, account: Account) -> Account | None:
        """
        Insert a new account unless the email is taken.

        Returns:
            Stored account with id and created_at, or None on conflict
        """
        query = sql.SQL(
            """
            INSERT INTO accounts (
                email, name, phone, role, password_hash, is_active,
                login_retries, account_locked_until,
                email_verification_code, email_code_created_at, email_verification_retries,
                password_reset_code, reset_code_created_at
            )
            VALUES (
                %(email)s, %(name)s, %(phone)s, %(role)s, %(password_hash)s, %(is_active)s,
                %(login_retries)s, %(account_locked_until)s,
                %(email_verification_code)s, %(email_code_created_at)s,
                %(email_verification_retries)s,
                %(password_reset_code)s, %(reset_code_created_at)s
            )
            ON CONFLICT (email) DO NOTHING
            RETURNING {columns}
            """
        ).format(columns=_SELECT_LIST)

        params = {
            "email": account.email,
            "name": account.name,
            "phone": account.phone,
            "role": account.role.value,
            "password_hash": account.password_hash,
            "is_active": account.is_active,
            "login_retries": account.login_retries,
            "account_locked_until": account.account_locked_until,
            "email_verification_code": account.email_verification_code,
            "email_code_created_at": account.email_code_created_at,
            "email_verification_retries": account.email_verification_retries,
            "password_reset_code": account.password_reset_code,
            "reset_code_created_at": account.reset_code_created_at,
        }

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            conn.commit()

        return _to_account(row) if row is not None else None

    def update_by_email(
        self,
        email: str,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        expected = expected or {}
        _check_fields(set(changes) | set(expected))
        if not changes:
            return self.find_by_email(email) is not None

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder())
            for name in changes
        )
        conditions = [sql.SQL("email = {}").format(sql.Placeholder())]
        conditions.extend(
            sql.SQL("{} IS NOT DISTINCT FROM {}").format(sql.Identifier(name), sql.Placeholder())
            for name in expected
        )
        query = sql.SQL("UPDATE accounts SET {assignments} WHERE {conditions}").format(
            assignments=assignments,
            conditions=sql.SQL(" AND ").join(conditions),
        )
        params = [_to_db(v) for v in changes.values()]
        params.append(email)
        params.extend(_to_db(v) for v in expected.values())

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount == 1

    def delete_by_email(self, email: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM accounts WHERE email = %s", (email,))
            conn.commit()
            return cursor.rowcount == 1


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
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e

        logger.info("Migration complete: %s", sql_file.name)
