"""
Weather Alert Workflow.

The sample workflow shipped with the service:
1. Collect name, email and city from a form
2. Fetch the current temperature for the city from Open-Meteo
3. Compare it against the caller's threshold
4. Email an alert when the condition is met
"""

import logging

from app.engine.graph import Graph, Node, NodeType, HANDLE_FALSE, HANDLE_TRUE


logger = logging.getLogger(__name__)


WEATHER_ALERT_WORKFLOW_ID = "550e8400-e29b-41d4-a716-446655440000"

OPEN_METEO_ENDPOINT = (
    "https://api.open-meteo.com/v1/forecast"
    "?latitude={lat}&longitude={lon}&current_weather=true"
)

CITY_OPTIONS = [
    {"city": "Sydney", "lat": -33.8688, "lon": 151.2093},
    {"city": "Melbourne", "lat": -37.8136, "lon": 144.9631},
    {"city": "Brisbane", "lat": -27.4698, "lon": 153.0251},
    {"city": "Perth", "lat": -31.9505, "lon": 115.8605},
    {"city": "Adelaide", "lat": -34.9285, "lon": 138.6007},
]


def create_weather_alert_workflow(
    workflow_id: str = WEATHER_ALERT_WORKFLOW_ID,
    api_endpoint: str = OPEN_METEO_ENDPOINT,
) -> Graph:
    """
    Create the Weather Alert workflow graph.

    Workflow flow:
    ```
    start → form → weather-api → condition ─┬─(true)──→ email → end
                                            └─(false)─────────→ end
    ```

    Args:
        workflow_id: ID of the graph
        api_endpoint: URL template of the weather API ({lat}, {lon})

    Returns:
        Configured Graph instance
    """
    graph = Graph(
        graph_id=workflow_id,
        name="Weather Alert Workflow",
        description=(
            "Check weather conditions and send alerts when temperature "
            "exceeds threshold"
        ),
    )

    graph.add_node(Node(
        id="start",
        type=NodeType.START,
        label="Start",
        description="Begin weather check workflow",
        position={"x": -160, "y": 300},
    ))
    graph.add_node(Node(
        id="form",
        type=NodeType.FORM,
        label="User Input",
        description="Process collected data - name, email, location",
        metadata={
            "inputFields": ["name", "email", "city"],
            "outputVariables": ["name", "email", "city"],
        },
        position={"x": 152, "y": 304},
    ))
    graph.add_node(Node(
        id="weather-api",
        type=NodeType.INTEGRATION,
        label="Weather API",
        description="Fetch current temperature for {{city}}",
        metadata={
            "inputVariables": ["city"],
            "apiEndpoint": api_endpoint,
            "options": [dict(option) for option in CITY_OPTIONS],
            "outputVariables": ["temperature"],
        },
        position={"x": 460, "y": 304},
    ))
    graph.add_node(Node(
        id="condition",
        type=NodeType.CONDITION,
        label="Check Condition",
        description="Evaluate temperature threshold",
        metadata={
            "conditionExpression": "temperature {{operator}} {{threshold}}",
            "outputVariables": ["conditionMet"],
        },
        position={"x": 794, "y": 304},
    ))
    graph.add_node(Node(
        id="email",
        type=NodeType.EMAIL,
        label="Send Alert",
        description="Email weather alert notification",
        metadata={
            "inputVariables": ["name", "city", "temperature"],
            "emailTemplate": {
                "subject": "Weather Alert",
                "body": "Weather alert for {{city}}! Temperature is {{temperature}}°C!",
            },
            "outputVariables": ["emailSent"],
        },
        position={"x": 1096, "y": 88},
    ))
    graph.add_node(Node(
        id="end",
        type=NodeType.END,
        label="Complete",
        description="Workflow execution finished",
        position={"x": 1360, "y": 302},
    ))

    graph.add_edge("start", "form", id="e1", label="Initialize")
    graph.add_edge("form", "weather-api", id="e2", label="Submit Data")
    graph.add_edge("weather-api", "condition", id="e3", label="Temperature Data")
    graph.add_edge("condition", "email", HANDLE_TRUE, id="e4", label="✓ Condition Met")
    graph.add_edge("condition", "end", HANDLE_FALSE, id="e5", label="✗ No Alert Needed")
    graph.add_edge("email", "end", id="e6", label="Alert Sent")

    return graph


async def register_weather_alert_workflow() -> Graph:
    """
    Register the Weather Alert workflow in storage.

    This makes the workflow available immediately via the API
    without needing to create it first.
    """
    from app.storage.memory import workflow_storage

    workflow = create_weather_alert_workflow()
    await workflow_storage.save(workflow)

    logger.info(f"Registered Weather Alert workflow with ID: {workflow.graph_id}")
    return workflow
