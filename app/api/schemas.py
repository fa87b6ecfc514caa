"""
Pydantic Schemas for API Request/Response Models.

These schemas define the structure of data flowing through the API,
providing automatic validation and documentation. Field names on the wire
are camelCase, matching the workflow editor's definition format.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.engine.executor import ExecutionStatus
from app.engine.handlers import StepStatus


# ============================================================
# Definition Schemas
# ============================================================

class NodeDataSchema(BaseModel):
    """Presentation and configuration data of a node."""
    label: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        None,
        description="Per-type configuration (outputVariables, apiEndpoint, emailTemplate, ...)",
    )


class NodeSchema(BaseModel):
    """Definition of a node in the workflow."""
    id: str = Field(..., min_length=1, description="Node identifier, unique within the workflow")
    type: str = Field(..., description="start, form, integration, condition, email or end")
    position: Optional[Dict[str, float]] = None
    data: NodeDataSchema = Field(default_factory=NodeDataSchema)


class EdgeSchema(BaseModel):
    """A directed edge between two nodes."""
    id: Optional[str] = None
    source: str
    target: str
    source_handle: Optional[str] = Field(
        None,
        alias="sourceHandle",
        description='"true" or "false" on edges leaving a condition node',
    )
    label: Optional[str] = None
    type: Optional[str] = None
    animated: Optional[bool] = None
    style: Optional[Dict[str, Any]] = None
    label_style: Optional[Dict[str, Any]] = Field(None, alias="labelStyle")

    class Config:
        populate_by_name = True


class WorkflowCreateRequest(BaseModel):
    """Request to create (or replace) a workflow."""
    id: Optional[str] = Field(None, description="Workflow ID (generated if omitted)")
    name: str = Field(..., description="Name of the workflow")
    description: Optional[str] = Field(None, description="What this workflow does")
    nodes: List[NodeSchema] = Field(..., description="Nodes of the workflow")
    edges: List[EdgeSchema] = Field(default_factory=list, description="Edges of the workflow")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Cold Snap Alert",
                "nodes": [
                    {"id": "start", "type": "start", "data": {"label": "Start"}},
                    {
                        "id": "condition",
                        "type": "condition",
                        "data": {"label": "Check Condition"},
                    },
                    {
                        "id": "email",
                        "type": "email",
                        "data": {
                            "label": "Send Alert",
                            "metadata": {
                                "inputVariables": ["city", "temperature"],
                                "emailTemplate": {
                                    "subject": "Cold snap",
                                    "body": "It is {{temperature}}°C in {{city}}",
                                },
                            },
                        },
                    },
                    {"id": "end", "type": "end", "data": {"label": "Complete"}},
                ],
                "edges": [
                    {"source": "start", "target": "condition"},
                    {"source": "condition", "target": "email", "sourceHandle": "true"},
                    {"source": "condition", "target": "end", "sourceHandle": "false"},
                    {"source": "email", "target": "end"},
                ],
            }
        }

    def to_definition(self) -> Dict[str, Any]:
        """The definition dict understood by Graph.from_dict()."""
        return self.model_dump(by_alias=True, exclude_none=True)


class WorkflowCreateResponse(BaseModel):
    """Response after creating a workflow."""
    id: str = Field(..., description="Unique identifier of the workflow")
    name: str
    message: str = Field(default="Workflow created successfully")
    node_count: int = Field(..., alias="nodeCount")

    class Config:
        populate_by_name = True


class WorkflowInfoResponse(BaseModel):
    """Response with workflow information."""
    id: str
    name: str
    description: Optional[str] = None
    node_count: int = Field(..., alias="nodeCount")
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    mermaid_diagram: Optional[str] = Field(
        None,
        alias="mermaidDiagram",
        description="Mermaid diagram of the workflow",
    )

    class Config:
        populate_by_name = True


class WorkflowListResponse(BaseModel):
    """Response listing all workflows."""
    workflows: List[WorkflowInfoResponse]
    total: int


# ============================================================
# Execution Schemas
# ============================================================

class ExecutionStepSchema(BaseModel):
    """A single entry in the execution trace."""
    node_id: str = Field(..., alias="nodeId")
    type: str
    status: StepStatus
    label: str
    description: str
    output: Dict[str, Any]
    error: Optional[str] = None

    class Config:
        populate_by_name = True


class WorkflowExecutionResultSchema(BaseModel):
    """Response after executing a workflow."""
    executed_at: str = Field(..., alias="executedAt")
    status: ExecutionStatus
    steps: List[ExecutionStepSchema]
    error: Optional[str] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "executedAt": "2025-01-01T12:00:00+00:00",
                "status": "completed",
                "steps": [
                    {
                        "nodeId": "condition",
                        "type": "condition",
                        "status": "completed",
                        "label": "Check Condition",
                        "description": "Evaluate temperature threshold",
                        "output": {
                            "message": "Temperature 28.5°C is greater_than 25.0°C - condition met",
                            "conditionMet": True,
                            "threshold": 25.0,
                            "operator": "greater_than",
                            "actualValue": 28.5,
                        },
                        "error": None,
                    }
                ],
                "error": None,
            }
        }


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[Any] = None
