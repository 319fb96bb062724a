"""
Database Management Module

Owns the single asyncpg connection used by the agent: deferred
connection, schema discovery from information_schema, and statement
execution.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from .config import DEFAULT_SCHEMA

logger = logging.getLogger(__name__)

DB_NAME_PATTERN = re.compile(r"/([^/?]+)(\?|$)")

TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1
"""

COLUMNS_QUERY = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_name = $1 AND table_schema = $2
    ORDER BY ordinal_position
"""


def parse_db_name(db_url: str) -> str:
    """Display name for a connection string: last path segment before any query string"""
    match = DB_NAME_PATTERN.search(db_url)
    return match.group(1) if match else ""


class PostgresDatabase:
    """
    Lazily connected PostgreSQL handle.

    The connection is opened on first use and kept until close(); a later
    call opens a new one. Not safe for concurrent use.
    """

    def __init__(self, db_url: str, schema: str = DEFAULT_SCHEMA):
        self.db_url = db_url
        self.db_name = parse_db_name(db_url)
        self.schema = schema
        self._conn: Optional[asyncpg.Connection] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    async def connect_if_needed(self) -> asyncpg.Connection:
        """Open the connection unless one is already open"""
        if self._conn is None:
            logger.info("Connecting to database '%s'", self.db_name)
            self._conn = await asyncpg.connect(self.db_url)
        return self._conn

    async def close(self):
        """Close the connection; no-op when not connected"""
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()
            logger.info("Closed connection to database '%s'", self.db_name)

    async def fetch_schema(self) -> Dict[str, Dict[str, Any]]:
        """
        Discover tables and columns in the configured schema.

        Returns:
            Dictionary of table name -> {"fields": {column: {"type": data_type}}},
            built fresh on every call
        """
        conn = await self.connect_if_needed()
        tables = await conn.fetch(TABLES_QUERY, self.schema)

        schema_info = {}
        for table in tables:
            table_name = table["table_name"]
            columns = await conn.fetch(COLUMNS_QUERY, table_name, self.schema)
            schema_info[table_name] = {
                "fields": {
                    col["column_name"]: {"type": col["data_type"]}
                    for col in columns
                }
            }

        logger.info("Introspected %d tables from '%s'", len(schema_info), self.db_name)
        return schema_info

    async def fetch(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a statement and return its rows as dictionaries"""
        conn = await self.connect_if_needed()
        logger.debug("Executing SQL: %s | params=%r", sql, list(params))
        records = await conn.fetch(sql, *params)
        return [dict(record) for record in records]
