"""
nodeflow - FastAPI Application Entry Point.

A single-pass workflow execution engine for form / integration / condition /
email pipelines.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from app.config import settings
from app.api.routes import workflows
from app.integrations.http import IntegrationClient
from app.workflows.weather_alert import (
    WEATHER_ALERT_WORKFLOW_ID,
    register_weather_alert_workflow,
)


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await register_weather_alert_workflow()
    app.state.integration_client = IntegrationClient()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.integration_client.aclose()
    app.state.integration_client = None


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Workflow Execution API

Runs workflows built in a visual editor: a directed graph of typed nodes
traversed once, breadth-first, from its start node.

### Node types
- **start / end**: Entry and completion markers
- **form**: Publishes submitted form values
- **integration**: Calls an HTTP API chosen by the form values
- **condition**: Compares the temperature against a threshold and picks a branch
- **email**: Renders and sends an alert email

### Quick Start
1. List workflows: `GET /workflows/`
2. Create a workflow: `POST /workflows/`
3. Execute it: `POST /workflows/{id}/execute`

### Demo Workflow
A pre-registered Weather Alert workflow is available with ID:
`550e8400-e29b-41d4-a716-446655440000`
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(workflows.router)


# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "A single-pass workflow execution engine",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "workflows": "/workflows",
            "execute": "/workflows/{workflow_id}/execute",
        },
        "demo_workflow": WEATHER_ALERT_WORKFLOW_ID,
    }


@app.get("/health", tags=["Root"])
async def health():
    """Health check endpoint."""
    from app.storage.memory import workflow_storage

    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "workflows_count": len(workflow_storage),
    }


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        },
    )
