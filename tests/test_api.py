"""
Tests for the FastAPI endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport, MockTransport, Response

from app.main import app
from app.api.routes.workflows import get_integration_client
from app.engine.graph import Graph, Node, NodeType
from app.integrations.http import IntegrationClient
from app.storage.memory import workflow_storage
from app.workflows.weather_alert import WEATHER_ALERT_WORKFLOW_ID


BRANCHING_WORKFLOW = {
    "name": "Heat Check",
    "description": "Alert when it is hot",
    "nodes": [
        {"id": "start", "type": "start", "position": {"x": 0, "y": 0}, "data": {"label": "Start"}},
        {"id": "condition", "type": "condition", "data": {"label": "Check Condition"}},
        {
            "id": "email",
            "type": "email",
            "data": {
                "label": "Send Alert",
                "metadata": {
                    "inputVariables": ["city", "temperature"],
                    "emailTemplate": {
                        "subject": "Heat alert",
                        "body": "It is {{temperature}}°C in {{city}}",
                    },
                },
            },
        },
        {"id": "end", "type": "end", "data": {"label": "Complete"}},
    ],
    "edges": [
        {"id": "e1", "source": "start", "target": "condition"},
        {"id": "e2", "source": "condition", "target": "email", "sourceHandle": "true"},
        {"id": "e3", "source": "condition", "target": "end", "sourceHandle": "false"},
        {"id": "e4", "source": "email", "target": "end"},
    ],
}


# ============================================================
# Sync Test Client (for simple tests)
# ============================================================

@pytest.fixture(scope="module")
def client():
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def weather_api():
    """Answer integration calls with a fixed temperature."""
    requests = []

    def handle(request):
        requests.append(request)
        return Response(200, json={"current_weather": {"temperature": 28.5}})

    mock_client = IntegrationClient(transport=MockTransport(handle))
    app.dependency_overrides[get_integration_client] = lambda: mock_client
    yield requests
    app.dependency_overrides.pop(get_integration_client, None)


class TestRootEndpoints:
    """Tests for root endpoints."""

    def test_root(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert "name" in data
        assert "version" in data
        assert "endpoints" in data
        assert data["demo_workflow"] == WEATHER_ALERT_WORKFLOW_ID

    def test_health(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["workflows_count"] >= 1


class TestWorkflowEndpoints:
    """Tests for workflow CRUD endpoints."""

    def test_list_workflows(self, client):
        """Test listing workflows."""
        response = client.get("/workflows/")
        assert response.status_code == 200

        data = response.json()
        assert "workflows" in data
        assert data["total"] == len(data["workflows"])
        assert WEATHER_ALERT_WORKFLOW_ID in [w["id"] for w in data["workflows"]]

    def test_get_demo_workflow(self, client):
        """Test getting the demo workflow."""
        response = client.get(f"/workflows/{WEATHER_ALERT_WORKFLOW_ID}")
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == WEATHER_ALERT_WORKFLOW_ID
        assert data["name"] == "Weather Alert Workflow"
        assert data["nodeCount"] == 6
        assert len(data["edges"]) == 6
        assert data["mermaidDiagram"].startswith("graph LR")

    def test_get_unknown_workflow(self, client):
        response = client.get("/workflows/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Workflow not found"}

    def test_create_and_delete_workflow(self, client):
        """Test creating, reading back and deleting a workflow."""
        response = client.post("/workflows/", json=BRANCHING_WORKFLOW)
        assert response.status_code == 201

        data = response.json()
        assert data["name"] == "Heat Check"
        assert data["nodeCount"] == 4
        workflow_id = data["id"]

        response = client.get(f"/workflows/{workflow_id}")
        assert response.status_code == 200
        edges = response.json()["edges"]
        assert edges[1]["sourceHandle"] == "true"

        response = client.delete(f"/workflows/{workflow_id}")
        assert response.status_code == 204

        response = client.delete(f"/workflows/{workflow_id}")
        assert response.status_code == 404

    def test_create_with_explicit_id(self, client):
        response = client.post("/workflows/", json={**BRANCHING_WORKFLOW, "id": "heat-check"})
        assert response.status_code == 201
        assert response.json()["id"] == "heat-check"

    def test_create_invalid_workflow(self, client):
        """Test that structural problems are rejected."""
        definition = {
            "name": "Broken",
            "nodes": [
                {"id": "form", "type": "form"},
                {"id": "api", "type": "integration", "data": {"metadata": {"inputVariables": []}}},
            ],
            "edges": [{"source": "form", "target": "ghost"}],
        }
        response = client.post("/workflows/", json=definition)
        assert response.status_code == 400

        data = response.json()
        assert data["error"] == "Invalid workflow definition"
        assert "Graph must have a start node" in data["detail"]
        assert "Edge target 'ghost' is not a valid node" in data["detail"]
        assert "Node 'api': integration node missing options in metadata" in data["detail"]

    def test_create_duplicate_node_ids(self, client):
        definition = {
            "name": "Duplicate",
            "nodes": [{"id": "start", "type": "start"}, {"id": "start", "type": "end"}],
        }
        response = client.post("/workflows/", json=definition)
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"][0]

    def test_create_long_chain(self, client):
        """Test that a long acyclic workflow is accepted."""
        nodes = [{"id": "n0", "type": "start"}]
        nodes += [{"id": f"n{i}", "type": "form"} for i in range(1, 1499)]
        nodes.append({"id": "n1499", "type": "end"})
        edges = [{"source": f"n{i}", "target": f"n{i + 1}"} for i in range(1499)]

        response = client.post("/workflows/", json={"name": "Long chain", "nodes": nodes, "edges": edges})
        assert response.status_code == 201
        assert response.json()["nodeCount"] == 1500


class TestExecuteEndpoint:
    """Tests for workflow execution."""

    def test_execute_demo_workflow(self, client, weather_api):
        """Test running the demo workflow with a stubbed weather API."""
        payload = {
            "formData": {"name": "Alice", "email": "alice@example.com", "city": "Sydney"},
            "condition": {"operator": "greater_than", "threshold": 25},
        }
        response = client.post(f"/workflows/{WEATHER_ALERT_WORKFLOW_ID}/execute", json=payload)
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert "executedAt" in data
        assert [s["nodeId"] for s in data["steps"]] == [
            "start", "form", "weather-api", "condition", "email", "end",
        ]
        assert len(weather_api) == 1

        email = data["steps"][4]
        assert email["status"] == "completed"
        assert email["label"] == "Send Alert"
        assert "Sydney" in email["output"]["emailDraft"]["body"]
        assert "28.5" in email["output"]["emailDraft"]["body"]
        assert email["error"] is None

    def test_execute_condition_not_met(self, client, weather_api):
        payload = {
            "formData": {"name": "Alice", "email": "alice@example.com", "city": "Sydney"},
            "condition": {"operator": "greater_than", "threshold": 40},
        }
        response = client.post(f"/workflows/{WEATHER_ALERT_WORKFLOW_ID}/execute", json=payload)
        data = response.json()

        assert data["status"] == "completed"
        assert [s["nodeId"] for s in data["steps"]] == [
            "start", "form", "weather-api", "condition", "end",
        ]

    def test_execute_reports_failed_steps(self, client, weather_api):
        """Test that node failures come back as failed steps, not errors."""
        payload = {"formData": {"city": "Darwin"}}
        response = client.post(f"/workflows/{WEATHER_ALERT_WORKFLOW_ID}/execute", json=payload)
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "failed"
        steps = {s["nodeId"]: s for s in data["steps"]}
        assert steps["weather-api"]["status"] == "failed"
        assert steps["weather-api"]["error"] == "no matching option found for input values"
        assert steps["condition"]["error"] == "condition configuration is missing"
        assert steps["end"]["status"] == "completed"
        assert weather_api == []

    def test_execute_unknown_workflow(self, client):
        response = client.post("/workflows/does-not-exist/execute", json={})
        assert response.status_code == 404
        assert response.json() == {"error": "Workflow not found"}


# ============================================================
# Async Tests (for async endpoints)
# ============================================================

@pytest.mark.asyncio
async def test_execute_without_integration():
    """Test executing a created workflow that needs no outbound calls."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/workflows/", json=BRANCHING_WORKFLOW)
        assert response.status_code == 201
        workflow_id = response.json()["id"]

        payload = {
            "formData": {"city": "Perth", "temperature": 39.5, "email": "ops@example.com"},
            "condition": {"operator": "greater_than_or_equal", "threshold": 35},
        }
        response = await ac.post(f"/workflows/{workflow_id}/execute", json=payload)
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert [s["nodeId"] for s in data["steps"]] == ["start", "condition", "email", "end"]
        assert data["steps"][2]["output"]["emailDraft"]["body"] == "It is 39.5°C in Perth"


@pytest.mark.asyncio
async def test_execute_without_start_node():
    """Test that a stored workflow without a start node reports a failed run."""
    graph = Graph(graph_id="no-start", name="No start")
    graph.add_node(Node(id="end", type=NodeType.END))
    await workflow_storage.save(graph)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/workflows/no-start/execute", json={"formData": {}})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "failed"
        assert data["steps"] == []
        assert data["error"] == "no start node found in workflow"

    await workflow_storage.delete("no-start")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
