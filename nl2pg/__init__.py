"""
nl2pg: Natural Language to PostgreSQL Agent

Introspects a PostgreSQL schema, asks a language model for a structured
query plan, and executes the plan as a parameterized SQL statement.
"""

__version__ = "0.1.0"

from .agent import ExecutionResult, PostgresAgent
from .plan import (
    DeletePlan,
    InsertPlan,
    Nl2pgError,
    PlanError,
    SelectPlan,
    UnsupportedOperationError,
    UpdatePlan,
    parse_plan,
    validate_plan,
)

__all__ = [
    "PostgresAgent",
    "ExecutionResult",
    "SelectPlan",
    "InsertPlan",
    "UpdatePlan",
    "DeletePlan",
    "Nl2pgError",
    "PlanError",
    "UnsupportedOperationError",
    "parse_plan",
    "validate_plan",
]
