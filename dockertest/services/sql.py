"""Statement executors for SQL-speaking containers."""

from typing import Awaitable, Callable

import asyncpg


def postgres_executor(
    host: str,
    port: int,
    user: str,
    password: str,
    database: str = "postgres",
    connect_timeout: float = 5.0,
) -> Callable[[str], Awaitable[str]]:
    """Build a coroutine function that runs one statement on a fresh connection.

    Each call connects, executes and disconnects, so a failed attempt
    against a server that is still starting leaves nothing behind and the
    next attempt starts clean.
    """

    async def execute(statement: str) -> str:
        conn = await asyncpg.connect(
            host=host,
            port=port,
            user=user,
            password=password,
            database=database,
            timeout=connect_timeout,
        )
        try:
            return await conn.execute(statement)
        finally:
            await conn.close()

    return execute


def create_database_statement(dbname: str) -> str:
    """CREATE DATABASE with a byte-order collation, independent of the server locale."""
    if not dbname.replace("_", "").isalnum():
        raise ValueError(f"invalid database name {dbname!r}")
    return f"CREATE DATABASE {dbname} LC_COLLATE = 'C' TEMPLATE = template0"
