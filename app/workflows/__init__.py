"""
Workflows package - Sample workflow definitions.
"""

from app.workflows.weather_alert import (
    WEATHER_ALERT_WORKFLOW_ID,
    create_weather_alert_workflow,
    register_weather_alert_workflow,
)

__all__ = [
    "WEATHER_ALERT_WORKFLOW_ID",
    "create_weather_alert_workflow",
    "register_weather_alert_workflow",
]
