"""
Local package for the edge agent supervisor.

This package provides the runtime environment (`AgentEnvironment`), the
supervisor itself and the console commands that drive it.
"""

from .config import AgentEnvironment

__all__ = ["AgentEnvironment"]
