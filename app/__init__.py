"""
nodeflow - A single-pass workflow execution engine.

Runs declarative graphs of typed steps (start, form, integration, condition,
email, end) breadth-first and returns an ordered execution trace.
"""

__version__ = "1.0.0"
