"""
API package - FastAPI routes and schemas.
"""

from app.api.routes import workflows

__all__ = ["workflows"]
