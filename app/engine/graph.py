"""
Graph Definition for Workflow Engine.

A workflow graph is a set of typed nodes joined by directed edges. Edges
leaving a condition node may carry a source handle ("true" / "false") that
selects the branch to follow. Graphs are read-only once built and can be
shared between concurrent executions.
"""

from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field
from enum import Enum
import uuid

from app.engine.errors import NodeConfigError
from app.engine.metadata import parse_node_config


class NodeType(str, Enum):
    """Types of nodes in the workflow."""
    START = "start"
    FORM = "form"
    INTEGRATION = "integration"
    CONDITION = "condition"
    EMAIL = "email"
    END = "end"


# Source handles used on edges leaving a condition node
HANDLE_TRUE = "true"
HANDLE_FALSE = "false"


def parse_node_type(value: Union[str, NodeType]) -> Union[NodeType, str]:
    """Return the matching NodeType, or the raw string for unknown types."""
    try:
        return NodeType(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class Node:
    """
    A node in the workflow graph.

    Attributes:
        id: Identifier, unique within the graph
        type: NodeType, or the raw type string when the type is unknown
        label: Human-readable label
        description: Description, may hold {{var}} placeholders
        metadata: Per-type configuration bag
        position: Canvas position ({"x": .., "y": ..}), presentation only
    """

    id: str
    type: Union[NodeType, str]
    label: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    position: Optional[Dict[str, float]] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Node id cannot be empty")

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, NodeType) else str(self.type)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        """Build a node from its {id, type, position, data} representation."""
        node_data = data.get("data") or {}
        metadata = node_data.get("metadata")
        return cls(
            id=data["id"],
            type=parse_node_type(data["type"]),
            label=node_data.get("label"),
            description=node_data.get("description"),
            metadata=metadata if isinstance(metadata, dict) else None,
            position=data.get("position"),
        )

    def to_dict(self) -> Dict[str, Any]:
        node_data: Dict[str, Any] = {}
        if self.label is not None:
            node_data["label"] = self.label
        if self.description is not None:
            node_data["description"] = self.description
        if self.metadata is not None:
            node_data["metadata"] = self.metadata
        result: Dict[str, Any] = {"id": self.id, "type": self.type_name, "data": node_data}
        if self.position is not None:
            result["position"] = self.position
        return result


@dataclass(frozen=True)
class Edge:
    """
    A directed edge between two nodes.

    Only `source`, `target` and `source_handle` matter to the engine; the
    remaining fields are kept so definitions round-trip for the editor.
    """

    source: str
    target: str
    source_handle: Optional[str] = None
    id: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None
    animated: Optional[bool] = None
    style: Optional[Dict[str, Any]] = None
    label_style: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            source=data["source"],
            target=data["target"],
            source_handle=data.get("sourceHandle"),
            id=data.get("id"),
            label=data.get("label"),
            type=data.get("type"),
            animated=data.get("animated"),
            style=data.get("style"),
            label_style=data.get("labelStyle"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "label": self.label,
            "type": self.type,
            "animated": self.animated,
            "style": self.style,
            "labelStyle": self.label_style,
        }
        return {key: value for key, value in result.items() if value is not None}


@dataclass
class Graph:
    """
    A workflow graph consisting of nodes and edges.

    Attributes:
        graph_id: Unique identifier for this graph
        name: Human-readable name
        description: What the workflow does
        nodes: Dict of node id -> Node, in definition order
        edges: List of edges, in definition order
    """

    graph_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Unnamed Workflow"
    description: str = ""
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)

    def add_node(self, node: Node) -> "Graph":
        """
        Add a node to the graph.

        Returns:
            Self for chaining
        """
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.id}' already exists in the graph")
        self.nodes[node.id] = node
        return self

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        **extra: Any,
    ) -> "Graph":
        """
        Add a directed edge from source to target.

        Endpoints are not checked here; dangling edges are reported by
        validate() and skipped at execution time.

        Returns:
            Self for chaining
        """
        self.edges.append(Edge(source=source, target=target, source_handle=source_handle, **extra))
        return self

    def start_nodes(self) -> List[Node]:
        return [n for n in self.nodes.values() if n.type == NodeType.START]

    def start_node(self) -> Optional[Node]:
        """Get the first start node in definition order."""
        starts = self.start_nodes()
        return starts[0] if starts else None

    def outgoing(self, node_id: str) -> List[Edge]:
        """Get the edges leaving a node, in definition order."""
        return [e for e in self.edges if e.source == node_id]

    def adjacency(self) -> Dict[str, List[Edge]]:
        """Build a source id -> outgoing edges index."""
        index: Dict[str, List[Edge]] = {}
        for edge in self.edges:
            index.setdefault(edge.source, []).append(edge)
        return index

    def find_cycle(self) -> Optional[List[str]]:
        """
        Find a cycle reachable anywhere in the graph.

        Returns:
            The node ids forming the cycle (first id repeated at the end),
            or None if the graph is acyclic
        """
        adjacency = self.adjacency()
        done = set()

        for root in self.nodes:
            if root in done:
                continue

            # Explicit stack of (node id, iterator over its successors)
            path: List[str] = [root]
            on_path = {root}
            stack = [(root, iter(adjacency.get(root, [])))]

            while stack:
                node_id, successors = stack[-1]
                edge = next(successors, None)
                if edge is None:
                    stack.pop()
                    path.pop()
                    on_path.discard(node_id)
                    done.add(node_id)
                    continue

                target = edge.target
                if target in on_path:
                    return path[path.index(target):] + [target]
                if target in done:
                    continue
                path.append(target)
                on_path.add(target)
                stack.append((target, iter(adjacency.get(target, []))))

        return None

    def validate(self) -> List[str]:
        """
        Validate the graph structure and node configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        starts = self.start_nodes()
        if not starts:
            errors.append("Graph must have a start node")
        elif len(starts) > 1:
            errors.append(
                f"Graph has {len(starts)} start nodes: {[n.id for n in starts]}"
            )

        for edge in self.edges:
            if edge.source not in self.nodes:
                errors.append(f"Edge source '{edge.source}' is not a valid node")
            if edge.target not in self.nodes:
                errors.append(f"Edge target '{edge.target}' is not a valid node")

        cycle = self.find_cycle()
        if cycle:
            errors.append(f"Graph contains a cycle: {' -> '.join(cycle)}")

        for node in self.nodes.values():
            if not isinstance(node.type, NodeType):
                errors.append(f"Node '{node.id}' has unknown type '{node.type}'")
                continue
            try:
                parse_node_config(node.type_name, node.metadata)
            except NodeConfigError as e:
                errors.append(f"Node '{node.id}': {e}")

        return errors

    @classmethod
    def from_dict(cls, definition: Dict[str, Any]) -> "Graph":
        """Build a graph from a {"nodes": [...], "edges": [...]} definition."""
        graph = cls(
            graph_id=definition.get("id") or str(uuid.uuid4()),
            name=definition.get("name") or "Unnamed Workflow",
            description=definition.get("description") or "",
        )
        for node_data in definition.get("nodes") or []:
            graph.add_node(Node.from_dict(node_data))
        for edge_data in definition.get("edges") or []:
            graph.edges.append(Edge.from_dict(edge_data))
        return graph

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the graph to a dictionary."""
        return {
            "id": self.graph_id,
            "name": self.name,
            "description": self.description,
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def to_mermaid(self) -> str:
        """Generate a Mermaid diagram of the graph."""
        lines = ["graph LR"]

        for node_id, node in self.nodes.items():
            label = (node.label or node_id).replace('"', "'")
            if node.type in (NodeType.START, NodeType.END):
                lines.append(f'    {node_id}(["{label}"])')
            elif node.type == NodeType.CONDITION:
                lines.append(f'    {node_id}{{"{label}"}}')
            else:
                lines.append(f'    {node_id}["{label}"]')

        for edge in self.edges:
            if edge.source_handle:
                lines.append(f"    {edge.source} -->|{edge.source_handle}| {edge.target}")
            else:
                lines.append(f"    {edge.source} --> {edge.target}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Graph(name='{self.name}', nodes={list(self.nodes.keys())})"
