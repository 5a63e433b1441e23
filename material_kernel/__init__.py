"""
Material Kernel - shared infrastructure for handling-unit tracing and
material disposition.

The kernel holds what every module needs and nothing module-specific:
structured logging, the typed exception hierarchy, the SQLAlchemy base and
engine, the injectable clock and the post-commit event bus.
"""

__version__ = "0.1.0"
