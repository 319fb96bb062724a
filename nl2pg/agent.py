"""
PostgreSQL Agent Module

Ties schema discovery, plan generation, validation and execution
together behind one object that owns a single database connection.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from . import config
from .compiler import compile_plan
from .database import PostgresDatabase
from .plan import parse_plan, validate_plan
from .planner import generate_postgres_plan

logger = logging.getLogger(__name__)

PlanGenerator = Callable[..., Awaitable[Any]]


@dataclass
class ExecutionResult:
    """Rows returned by a statement and the exact SQL that produced them"""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    raw_query: str = ""
    query_type: str = "sql"

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": self.rows, "rawQuery": self.raw_query, "queryType": self.query_type}


class PostgresAgent:
    """
    Natural language agent for a PostgreSQL database.

    The connection is deferred until the first introspect() or execute()
    call. Table names in plans are matched case-insensitively against the
    names seen by the most recent introspect(); unknown names are used as
    given.

    Usage:
        async with PostgresAgent(url) as agent:
            plan = await agent.generate_plan("list all users")
            if agent.validate(plan):
                result = await agent.execute(plan)
    """

    type = "PostgresAgent"

    def __init__(
        self,
        db_url: str,
        schema: Optional[str] = None,
        plan_generator: PlanGenerator = generate_postgres_plan,
    ):
        self.db = PostgresDatabase(db_url, schema=schema or config.get_schema_name())
        self.plan_generator = plan_generator
        self._table_name_map: Dict[str, str] = {}

    @property
    def db_name(self) -> str:
        return self.db.db_name

    @property
    def connected(self) -> bool:
        return self.db.connected

    async def connect_if_needed(self):
        await self.db.connect_if_needed()

    async def close(self):
        await self.db.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def introspect(self) -> Dict[str, Dict[str, Any]]:
        """Fetch the current schema and rebuild the table name map from it"""
        schema = await self.db.fetch_schema()
        self._table_name_map = {table.lower(): table for table in schema}
        return schema

    async def generate_plan(
        self,
        user_prompt: str,
        provider=config.DEFAULT_PROVIDER,
        model: str = config.DEFAULT_MODEL,
    ) -> Any:
        """
        Ask the language model for a plan. The schema is always
        re-introspected first; the generator's result is returned as is.
        """
        schema = await self.introspect()
        return await self.plan_generator(
            prompt=user_prompt,
            provider=provider,
            model=model,
            schema=schema,
            api_key=config.get_api_key(provider),
        )

    def validate(self, plan: Any) -> bool:
        return validate_plan(plan)

    async def execute(self, plan: Any) -> ExecutionResult:
        """
        Compile a plan into one parameterized statement and run it.

        Raises:
            UnsupportedOperationError: unknown operation; nothing is executed
            PlanError: the plan lacks values or a required predicate
        """
        typed = parse_plan(plan)
        compiled = compile_plan(typed, self.get_actual_table_name(typed.table))

        rows = await self.db.fetch(compiled.sql, compiled.params)
        logger.info("%s on %s returned %d rows", typed.operation, typed.table, len(rows))
        return ExecutionResult(rows=rows, raw_query=compiled.sql)

    def get_actual_table_name(self, requested: str) -> str:
        return self._table_name_map.get(requested.lower(), requested)
