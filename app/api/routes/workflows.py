"""
Workflow API Routes.

Endpoints for creating, managing, and executing workflows.
"""

from typing import Any, Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response
import logging

from app.api.schemas import (
    WorkflowCreateRequest,
    WorkflowCreateResponse,
    WorkflowInfoResponse,
    WorkflowListResponse,
    WorkflowExecutionResultSchema,
    ErrorResponse,
)
from app.config import settings
from app.engine.errors import NoStartNodeError
from app.engine.executor import Executor, ExecutionStatus
from app.engine.graph import Graph
from app.engine.state import ExecutionInput
from app.integrations.http import IntegrationClient
from app.storage.memory import StoredWorkflow, workflow_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def get_integration_client(request: Request) -> Optional[IntegrationClient]:
    """The client shared by all executions, opened in the app lifespan."""
    return getattr(request.app.state, "integration_client", None)


def _error(status_code: int, error: str, detail: Any = None) -> JSONResponse:
    content = {"error": error}
    if detail is not None:
        content["detail"] = detail
    return JSONResponse(status_code=status_code, content=content)


def _not_found() -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Workflow not found")


def _info(stored: StoredWorkflow, with_diagram: bool = True) -> WorkflowInfoResponse:
    definition = stored.definition
    return WorkflowInfoResponse(
        id=stored.workflow_id,
        name=stored.name,
        description=definition.get("description"),
        node_count=len(stored.graph.nodes),
        nodes=definition.get("nodes", []),
        edges=definition.get("edges", []),
        created_at=stored.created_at.isoformat(),
        updated_at=stored.updated_at.isoformat(),
        mermaid_diagram=stored.graph.to_mermaid() if with_diagram else None,
    )


# ============================================================
# Workflow CRUD Endpoints
# ============================================================

@router.post(
    "/",
    response_model=WorkflowCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid workflow definition"}},
)
async def create_workflow(request: WorkflowCreateRequest):
    """
    Create a workflow from an editor definition.

    The definition is checked for a single start node, dangling edges,
    cycles, unknown node types and malformed node configuration.
    """
    try:
        graph = Graph.from_dict(request.to_definition())
    except ValueError as e:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid workflow definition", [str(e)])

    errors = graph.validate()
    if errors:
        logger.info(f"Rejected workflow '{request.name}': {errors}")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid workflow definition", errors)

    stored = await workflow_storage.save(graph)
    logger.info(f"Created workflow: {stored.workflow_id} ({stored.name})")

    return WorkflowCreateResponse(
        id=stored.workflow_id,
        name=stored.name,
        node_count=len(graph.nodes),
    )


@router.get("/", response_model=WorkflowListResponse)
async def list_workflows() -> WorkflowListResponse:
    """List all available workflows."""
    workflows = [_info(stored, with_diagram=False) for stored in await workflow_storage.list_all()]
    return WorkflowListResponse(workflows=workflows, total=len(workflows))


@router.get(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow(workflow_id: str):
    """Get a workflow definition together with its Mermaid diagram."""
    stored = await workflow_storage.get(workflow_id)
    if stored is None:
        return _not_found()
    return _info(stored)


@router.delete(
    "/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(workflow_id: str):
    """Delete a workflow."""
    deleted = await workflow_storage.delete(workflow_id)
    if not deleted:
        return _not_found()
    logger.info(f"Deleted workflow: {workflow_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/{workflow_id}/execute",
    response_model=WorkflowExecutionResultSchema,
    responses={404: {"model": ErrorResponse}},
)
async def execute_workflow(
    workflow_id: str,
    execution_input: Optional[ExecutionInput] = None,
    client: Optional[IntegrationClient] = Depends(get_integration_client),
):
    """
    Execute a workflow with the given form data and condition.

    Node failures do not abort the run: they are reported as failed steps
    and the overall status becomes "failed".
    """
    stored = await workflow_storage.get(workflow_id)
    if stored is None:
        return _not_found()

    executor = Executor(stored.graph, client=client)
    try:
        result = await executor.run(
            execution_input or ExecutionInput(),
            timeout=settings.EXECUTION_TIMEOUT,
        )
    except NoStartNodeError as e:
        logger.error(f"Cannot execute workflow {workflow_id}: {e}")
        return WorkflowExecutionResultSchema(
            executed_at=datetime.now(timezone.utc).isoformat(),
            status=ExecutionStatus.FAILED,
            steps=[],
            error=str(e),
        )

    return result.to_dict()
