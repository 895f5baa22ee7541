"""
This module initializes the console package, exposing command execution and
the usage text for the supervisor's verbs.
"""

from .process import execute_command
from .handler import print_usage, toggle_verbose_logging

__all__ = ["execute_command", "print_usage", "toggle_verbose_logging"]
