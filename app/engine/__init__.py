"""
Engine package - Core workflow execution components.
"""

from app.engine.errors import (
    WorkflowEngineError,
    NoStartNodeError,
    NodeExecutionError,
    NodeConfigError,
    IntegrationError,
    ConditionError,
)
from app.engine.state import ConditionOperator, ConditionSpec, ExecutionInput, WellKnownVars
from app.engine.graph import Graph, Node, Edge, NodeType
from app.engine.handlers import NodeContext, NodeOutcome, StepStatus
from app.engine.executor import (
    Executor,
    ExecutionResult,
    ExecutionStatus,
    ExecutionStep,
    execute_graph,
)

__all__ = [
    "WorkflowEngineError",
    "NoStartNodeError",
    "NodeExecutionError",
    "NodeConfigError",
    "IntegrationError",
    "ConditionError",
    "ConditionOperator",
    "ConditionSpec",
    "ExecutionInput",
    "WellKnownVars",
    "Graph",
    "Node",
    "Edge",
    "NodeType",
    "NodeContext",
    "NodeOutcome",
    "StepStatus",
    "Executor",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutionStep",
    "execute_graph",
]
