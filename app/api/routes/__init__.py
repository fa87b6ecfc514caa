"""
API routes.
"""

from app.api.routes import workflows

__all__ = ["workflows"]
