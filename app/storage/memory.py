"""
In-Memory Storage for Workflow Engine.

Keeps workflow definitions by ID together with the parsed Graph, so every
execution of the same workflow reuses one read-only graph. Can be replaced
with a database-backed implementation with the same async interface.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import asyncio
from dataclasses import dataclass, field

from app.engine.graph import Graph


@dataclass
class StoredWorkflow:
    """A stored workflow definition and its parsed graph."""
    workflow_id: str
    name: str
    definition: Dict[str, Any]
    graph: Graph
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "name": self.name,
            "definition": self.definition,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class WorkflowStorage:
    """
    Async-safe in-memory storage for workflow definitions.

    Stores definitions by their ID, allowing creation, retrieval,
    replacement, and deletion.
    """

    def __init__(self):
        self._workflows: Dict[str, StoredWorkflow] = {}
        self._lock = asyncio.Lock()

    async def save(self, graph: Graph) -> StoredWorkflow:
        """
        Save a workflow graph, replacing any previous one with the same ID.

        Args:
            graph: The parsed workflow graph

        Returns:
            The stored workflow
        """
        async with self._lock:
            previous = self._workflows.get(graph.graph_id)
            stored = StoredWorkflow(
                workflow_id=graph.graph_id,
                name=graph.name,
                definition=graph.to_dict(),
                graph=graph,
            )
            if previous is not None:
                stored.created_at = previous.created_at
            self._workflows[graph.graph_id] = stored
            return stored

    async def get(self, workflow_id: str) -> Optional[StoredWorkflow]:
        """Get a workflow by ID."""
        async with self._lock:
            return self._workflows.get(workflow_id)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._lock:
            if workflow_id in self._workflows:
                del self._workflows[workflow_id]
                return True
            return False

    async def list_all(self) -> List[StoredWorkflow]:
        """List all stored workflows."""
        async with self._lock:
            return list(self._workflows.values())

    async def exists(self, workflow_id: str) -> bool:
        """Check if a workflow exists."""
        async with self._lock:
            return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)


# Global storage instance
workflow_storage = WorkflowStorage()
