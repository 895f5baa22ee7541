"""
The Supervisor package.
Manages the lifecycle of the edge agent process inside its container.

This package contains the central AgentSupervisor class and its helper modules,
which together handle config patching, launching, respawning and shutting down
the agent.
"""
from .supervisor import AgentSupervisor

__all__ = ['AgentSupervisor']
