"""
Execution input and shared-state conventions.

A run starts from an ExecutionInput: named form values that seed the
variable context, plus an optional condition descriptor read by condition
nodes. The variable context itself is a plain dict owned by one run.
"""

from typing import Any, Dict, Optional
from enum import Enum
from pydantic import BaseModel, Field


class ConditionOperator(str, Enum):
    """Comparison operators understood by condition nodes."""
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"


class WellKnownVars:
    """
    Variable names that carry meaning across nodes.

    The integration node produces TEMPERATURE, the condition node reads it
    and writes CONDITION_MET, the traversal driver and email node read
    CONDITION_MET, and the email node sends to EMAIL.
    """
    CONDITION_MET = "conditionMet"
    TEMPERATURE = "temperature"
    EMAIL = "email"
    CITY = "city"


class ConditionSpec(BaseModel):
    """
    Condition evaluated by condition nodes: `temperature <operator> threshold`.

    The operator is kept as a plain string so that unknown operators reach
    the condition node, which falls back to greater_than.
    """

    operator: str = Field(..., description="One of the ConditionOperator values")
    threshold: float = Field(..., description="Value compared against")


class ExecutionInput(BaseModel):
    """Runtime input bundle for one execution."""

    form_data: Dict[str, Any] = Field(
        default_factory=dict,
        alias="formData",
        description="Named values that seed the variable context",
    )
    condition: Optional[ConditionSpec] = Field(
        None,
        description="Condition used by condition nodes",
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "formData": {
                    "name": "Alice",
                    "email": "alice@example.com",
                    "city": "Sydney",
                },
                "condition": {"operator": "greater_than", "threshold": 25},
            }
        }

    def initial_variables(self) -> Dict[str, Any]:
        """A fresh variable context for one run."""
        return dict(self.form_data)
