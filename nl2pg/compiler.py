"""
SQL Compiler Module

Translates a query plan into exactly one parameterized PostgreSQL
statement. Pure functions only; execution lives in the agent.

WARNING: ``where`` predicates are interpolated into the statement as raw
text. They come from the plan generator and are NOT escaped, so a plan
built from untrusted input can inject arbitrary SQL. Values in ``values``
are always bound as positional parameters.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .plan import (
    DeletePlan,
    InsertPlan,
    PlanError,
    QueryPlan,
    SelectPlan,
    UnsupportedOperationError,
    UpdatePlan,
    parse_plan,
)


@dataclass
class CompiledQuery:
    """A SQL statement and the parameters bound to its $n placeholders"""
    sql: str
    params: List[Any] = field(default_factory=list)


def quote_identifier(name: str) -> str:
    return f'"{name}"'


def _placeholders(count: int) -> List[str]:
    return [f"${i}" for i in range(1, count + 1)]


def compile_select(plan: SelectPlan, table: str) -> CompiledQuery:
    fields = ", ".join(plan.fields) if plan.fields else "*"
    where = plan.where or "TRUE"
    return CompiledQuery(f"SELECT {fields} FROM {table} WHERE {where}")


def compile_insert(plan: InsertPlan, table: str) -> CompiledQuery:
    if not plan.values:
        raise PlanError("insert plan requires non-empty 'values'")
    columns = list(plan.values.keys())
    placeholders = _placeholders(len(columns))
    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholders)}) RETURNING *"
    )
    return CompiledQuery(sql, list(plan.values.values()))


def compile_update(plan: UpdatePlan, table: str) -> CompiledQuery:
    if not plan.values:
        raise PlanError("update plan requires non-empty 'values'")
    if not plan.where:
        raise PlanError("update plan requires a 'where' predicate")
    assignments = [
        f"{column} = {placeholder}"
        for column, placeholder in zip(plan.values.keys(), _placeholders(len(plan.values)))
    ]
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {plan.where} RETURNING *"
    return CompiledQuery(sql, list(plan.values.values()))


def compile_delete(plan: DeletePlan, table: str) -> CompiledQuery:
    if not plan.where:
        raise PlanError("delete plan requires a 'where' predicate")
    return CompiledQuery(f"DELETE FROM {table} WHERE {plan.where} RETURNING *")


COMPILERS = {
    "select": compile_select,
    "insert": compile_insert,
    "update": compile_update,
    "delete": compile_delete,
}


def compile_plan(plan: Any, table_name: Optional[str] = None) -> CompiledQuery:
    """
    Compile a plan into SQL.

    Args:
        plan: Typed plan or raw plan mapping
        table_name: Resolved (stored-case) table name; defaults to the
            plan's own table

    Returns:
        CompiledQuery with the statement text and its bound parameters

    Raises:
        UnsupportedOperationError: operation is not select/insert/update/delete
        PlanError: required values or predicate are missing
    """
    typed: QueryPlan = parse_plan(plan)
    compiler = COMPILERS.get(typed.operation)
    if compiler is None:
        raise UnsupportedOperationError(typed.operation)
    return compiler(typed, quote_identifier(table_name or typed.table))
