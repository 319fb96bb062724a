"""
Query Plan Module

Structured query plans produced by the plan generator, the shallow
validator applied before execution, and the error types shared by the
rest of the package.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union


class Nl2pgError(Exception):
    """Base class for errors raised by nl2pg"""


class PlanError(Nl2pgError, ValueError):
    """A plan is missing data required to build its statement"""


class UnsupportedOperationError(PlanError):
    """The plan's operation is not one of select, insert, update, delete"""

    def __init__(self, operation: Any):
        self.operation = operation
        super().__init__(f"Unsupported operation: {operation!r}")


@dataclass
class SelectPlan:
    table: str
    fields: List[str] = field(default_factory=list)
    where: Optional[str] = None
    operation: str = field(default="select", init=False)


@dataclass
class InsertPlan:
    table: str
    values: Dict[str, Any] = field(default_factory=dict)
    operation: str = field(default="insert", init=False)


@dataclass
class UpdatePlan:
    table: str
    values: Dict[str, Any] = field(default_factory=dict)
    where: Optional[str] = None
    operation: str = field(default="update", init=False)


@dataclass
class DeletePlan:
    table: str
    where: Optional[str] = None
    operation: str = field(default="delete", init=False)


QueryPlan = Union[SelectPlan, InsertPlan, UpdatePlan, DeletePlan]

PLAN_TYPES = {
    "select": SelectPlan,
    "insert": InsertPlan,
    "update": UpdatePlan,
    "delete": DeletePlan,
}

MUTATING_OPERATIONS = frozenset({"insert", "update", "delete"})


def _get(plan: Any, name: str) -> Any:
    if isinstance(plan, Mapping):
        return plan.get(name)
    return getattr(plan, name, None)


def validate_plan(plan: Any) -> bool:
    """
    Check that a plan has the minimum shape needed for execution.

    Only ``operation`` and ``table`` are checked: both must be present and
    non-empty. Whether the operation is supported, and whether the fields
    it needs are present, is left to the compiler.
    """
    if plan is None:
        return False
    return bool(_get(plan, "operation")) and bool(_get(plan, "table"))


def _check_table(table: Any) -> str:
    if not isinstance(table, str):
        raise PlanError(f"Plan 'table' must be a string, got {type(table).__name__}")
    return table


def _check_where(where: Any) -> Optional[str]:
    if where is None or where == "":
        return None
    if not isinstance(where, str):
        raise PlanError(f"Plan 'where' must be SQL predicate text, got {type(where).__name__}")
    return where


def _check_values(values: Any) -> Dict[str, Any]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise PlanError(f"Plan 'values' must be an object of column -> value, got {type(values).__name__}")
    if not all(isinstance(column, str) for column in values):
        raise PlanError("Plan 'values' keys must be column names")
    return dict(values)


def _check_fields(fields: Any) -> List[str]:
    if not isinstance(fields, (list, tuple)):
        return []
    if not all(isinstance(name, str) for name in fields):
        raise PlanError("Plan 'fields' must be a list of column names")
    return list(fields)


def parse_plan(plan: Any) -> QueryPlan:
    """
    Convert a raw plan (usually a dict decoded from model output) into a
    typed plan.

    Typed plans are checked the same way and returned unchanged. Raises
    UnsupportedOperationError for an unknown operation and PlanError when
    operation or table is missing or a field has the wrong type.
    """
    if not validate_plan(plan):
        raise PlanError("Plan must include a non-empty 'operation' and 'table'")

    operation = _get(plan, "operation")
    plan_type = PLAN_TYPES.get(operation) if isinstance(operation, str) else None
    if plan_type is None:
        raise UnsupportedOperationError(operation)

    table = _check_table(_get(plan, "table"))
    if isinstance(plan, plan_type):
        _check_where(_get(plan, "where"))
        _check_values(_get(plan, "values"))
        _check_fields(_get(plan, "fields"))
        return plan

    if plan_type is SelectPlan:
        return SelectPlan(
            table=table,
            fields=_check_fields(_get(plan, "fields")),
            where=_check_where(_get(plan, "where")),
        )
    if plan_type is InsertPlan:
        return InsertPlan(table=table, values=_check_values(_get(plan, "values")))
    if plan_type is UpdatePlan:
        return UpdatePlan(
            table=table,
            values=_check_values(_get(plan, "values")),
            where=_check_where(_get(plan, "where")),
        )
    return DeletePlan(table=table, where=_check_where(_get(plan, "where")))


def is_mutating(plan: Any) -> bool:
    """True for plans that change data (insert, update, delete)"""
    operation = _get(plan, "operation")
    return isinstance(operation, str) and operation in MUTATING_OPERATIONS
