"""
Async Workflow Executor.

The executor walks a workflow graph breadth-first from its start node,
dispatches every reachable node to its handler exactly once, and records
one execution step per visited node.
"""

from typing import Any, Dict, List, Optional, Tuple
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import asyncio
import uuid
import time
import logging

from app.config import settings
from app.engine.errors import NoStartNodeError, NodeExecutionError
from app.engine.graph import Edge, Graph, Node, NodeType, HANDLE_FALSE, HANDLE_TRUE
from app.engine.handlers import NodeContext, NodeOutcome, StepStatus, get_handler
from app.engine.state import ExecutionInput, WellKnownVars


# Configure logging
logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
    """Overall status of a workflow execution."""
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExecutionStep:
    """A single step in the execution trace."""
    node_id: str
    type: str
    status: StepStatus = StepStatus.COMPLETED
    label: str = ""
    description: str = ""
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "type": self.type,
            "status": self.status.value,
            "label": self.label,
            "description": self.description,
            "output": self.output,
            "error": self.error,
            "startedAt": self.started_at.isoformat(),
            "durationMs": self.duration_ms,
        }


@dataclass
class ExecutionResult:
    """Result of a workflow execution."""
    run_id: str
    graph_id: str
    status: ExecutionStatus
    steps: List[ExecutionStep] = field(default_factory=list)
    variables: Dict[str, Any] = field(default_factory=dict)
    executed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_duration_ms: Optional[float] = None
    error: Optional[str] = None

    def step_for(self, node_id: str) -> Optional[ExecutionStep]:
        """Get the step recorded for a node, if it was visited."""
        for step in self.steps:
            if step.node_id == node_id:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "workflowId": self.graph_id,
            "executedAt": self.executed_at.isoformat(),
            "status": self.status.value,
            "steps": [step.to_dict() for step in self.steps],
            "totalDurationMs": self.total_duration_ms,
            "error": self.error,
        }


class Executor:
    """
    Breadth-first workflow executor.

    Executes a graph against an input bundle, handling:
    - Dispatch of each node to its type's handler
    - Branch selection after condition nodes
    - At-most-once visitation of every node
    - Per-step error recording without aborting the run
    - Whole-run timeout and external cancellation

    Usage:
        executor = Executor(graph)
        result = await executor.run(ExecutionInput(formData={"city": "Sydney"}))
    """

    def __init__(
        self,
        graph: Graph,
        client=None,
        mailer=None,
        run_id: Optional[str] = None,
        lookup_max_depth: Optional[int] = None,
    ):
        """
        Initialize the executor.

        Args:
            graph: The workflow graph to execute (never modified)
            client: IntegrationClient for integration nodes; a private one
                is opened and closed per run when omitted
            mailer: Mailer for email nodes (SimulatedMailer when omitted)
            run_id: Optional run ID (generated if not provided)
            lookup_max_depth: Depth of the response search in integration nodes
        """
        self.graph = graph
        self.client = client
        self.mailer = mailer
        self.run_id = run_id or str(uuid.uuid4())
        self.lookup_max_depth = (
            lookup_max_depth if lookup_max_depth is not None else settings.LOOKUP_MAX_DEPTH
        )

        # Execution state
        self._execution_log: List[ExecutionStep] = []
        self._variables: Dict[str, Any] = {}
        self._timeout: Optional[float] = None
        self._deadline: Optional[float] = None

    @property
    def execution_log(self) -> List[ExecutionStep]:
        """Steps recorded so far, also readable after a cancelled run."""
        return self._execution_log

    @property
    def variables(self) -> Dict[str, Any]:
        """The variable context of the current or last run."""
        return self._variables

    async def run(
        self,
        execution_input: Optional[ExecutionInput] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        """
        Execute the workflow.

        Args:
            execution_input: Form values and optional condition
            timeout: Optional limit in seconds for the whole run

        Returns:
            ExecutionResult with the ordered steps

        Raises:
            NoStartNodeError: If the graph has no start node
            asyncio.CancelledError: If the surrounding task is cancelled
        """
        start_time = time.time()
        executed_at = datetime.now(timezone.utc)
        execution_input = execution_input or ExecutionInput()

        starts = self.graph.start_nodes()
        if not starts:
            raise NoStartNodeError()
        if len(starts) > 1:
            logger.warning(
                f"Graph '{self.graph.graph_id}' has {len(starts)} start nodes, "
                f"using '{starts[0].id}'"
            )

        self._execution_log = []
        self._variables = execution_input.initial_variables()
        self._timeout = timeout
        self._deadline = asyncio.get_running_loop().time() + timeout if timeout is not None else None

        client = self.client
        owns_client = client is None
        if owns_client:
            from app.integrations.http import IntegrationClient
            client = IntegrationClient()

        mailer = self.mailer
        if mailer is None:
            from app.integrations.mailer import SimulatedMailer
            mailer = SimulatedMailer()

        ctx = NodeContext(
            variables=self._variables,
            condition=execution_input.condition,
            client=client,
            mailer=mailer,
            lookup_max_depth=self.lookup_max_depth,
        )

        logger.info(f"Starting run {self.run_id} of graph '{self.graph.graph_id}'")
        adjacency = self.graph.adjacency()
        queue = deque([starts[0].id])
        visited = set()
        error = None

        try:
            while queue:
                node_id = queue.popleft()
                if node_id in visited:
                    continue
                visited.add(node_id)

                node = self.graph.nodes.get(node_id)
                if node is None:
                    logger.warning(f"Node '{node_id}' not found in graph, skipping")
                    continue

                step, halted = await self._execute_node(node, ctx)
                if halted:
                    error = step.error
                    break

                queue.extend(self._next_nodes(node, adjacency.get(node_id, []), ctx))
        finally:
            if owns_client:
                await client.aclose()

        failed = any(s.status == StepStatus.FAILED for s in self._execution_log)
        status = ExecutionStatus.FAILED if failed else ExecutionStatus.COMPLETED
        logger.info(f"Run {self.run_id} finished: {status.value} ({len(self._execution_log)} steps)")

        return ExecutionResult(
            run_id=self.run_id,
            graph_id=self.graph.graph_id,
            status=status,
            steps=list(self._execution_log),
            variables=self._variables,
            executed_at=executed_at,
            total_duration_ms=(time.time() - start_time) * 1000,
            error=error,
        )

    async def _execute_node(self, node: Node, ctx: NodeContext) -> Tuple[ExecutionStep, bool]:
        """
        Run one node's handler and record its step.

        Returns:
            The step, and whether the run must stop after it
        """
        step = ExecutionStep(
            node_id=node.id,
            type=node.type_name,
            label=node.label or "",
            description=node.description or "",
        )
        node_start_time = time.time()
        halted = False

        logger.info(f"Executing node: {node.id} ({node.type_name}, step {len(self._execution_log) + 1})")
        registered = get_handler(node.type_name)
        failure_message = registered.failure_message if registered else "Failed to process node"

        try:
            if registered is None:
                logger.warning(f"No handler for node type '{node.type_name}', passing through")
                outcome = NodeOutcome({"message": f"Node type '{node.type_name}' has no handler"})
            else:
                outcome = await self._with_deadline(registered.func(node, ctx))

            step.status = outcome.status
            step.output = outcome.output
            if outcome.description is not None:
                step.description = outcome.description

        except NodeExecutionError as e:
            logger.error(f"Node {node.id} failed: {e}")
            self._fail(step, str(e), failure_message)

        except asyncio.TimeoutError:
            logger.error(f"Run {self.run_id} timed out at node '{node.id}'")
            self._fail(step, f"execution timed out after {self._timeout}s", failure_message)
            halted = True

        except asyncio.CancelledError:
            logger.warning(f"Run {self.run_id} cancelled at node '{node.id}'")
            self._fail(step, "execution cancelled", failure_message)
            self._record(step, node_start_time)
            raise

        except Exception as e:
            logger.exception(f"Node {node.id} raised unexpectedly: {e}")
            self._fail(step, str(e), failure_message)

        self._record(step, node_start_time)
        return step, halted

    async def _with_deadline(self, coro):
        if self._deadline is None:
            return await coro
        remaining = self._deadline - asyncio.get_running_loop().time()
        return await asyncio.wait_for(coro, timeout=max(remaining, 0))

    @staticmethod
    def _fail(step: ExecutionStep, error: str, message: str) -> None:
        step.status = StepStatus.FAILED
        step.error = error
        step.output = {"message": message}

    def _record(self, step: ExecutionStep, node_start_time: float) -> None:
        step.duration_ms = (time.time() - node_start_time) * 1000
        self._execution_log.append(step)

    @staticmethod
    def _next_nodes(node: Node, edges: List[Edge], ctx: NodeContext) -> List[str]:
        """
        Select the successors to enqueue.

        After a condition node, "true" edges are followed only when
        conditionMet is True and "false" edges only when it is not; edges
        without a handle are always followed.
        """
        if node.type != NodeType.CONDITION:
            return [edge.target for edge in edges]

        condition_met = ctx.variables.get(WellKnownVars.CONDITION_MET) is True
        targets = []
        for edge in edges:
            if edge.source_handle is None:
                targets.append(edge.target)
            elif edge.source_handle == HANDLE_TRUE and condition_met:
                targets.append(edge.target)
            elif edge.source_handle == HANDLE_FALSE and not condition_met:
                targets.append(edge.target)
        return targets


async def execute_graph(
    graph: Graph,
    execution_input: Optional[ExecutionInput] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> ExecutionResult:
    """
    Convenience function to execute a graph.

    Args:
        graph: The workflow graph
        execution_input: Form values and optional condition
        timeout: Optional limit in seconds for the whole run
        **kwargs: Passed to Executor (client, mailer, run_id, ...)

    Returns:
        ExecutionResult
    """
    executor = Executor(graph, **kwargs)
    return await executor.run(execution_input, timeout=timeout)
