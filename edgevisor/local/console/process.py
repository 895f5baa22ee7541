import logging
from typing import List
import edgevisor.settings as default_settings
from edgevisor.local.console.handler import display_status, print_usage, restart_agent, start_supervisor

log = logging.getLogger(__name__)


def execute_command(command: str, args: List[str]) -> int:
    """
    Executes a single supervisor verb.

    :param command: The verb ('start', 'restart', 'status' or 'block').
    :param args: Arguments following the verb.
    :return: The process exit code.
    :raises SupervisorError: If startup fails.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "start": lambda: start_supervisor(args),
        "restart": restart_agent,
        "status": display_status,
        "block": lambda: start_supervisor(["block"]),
    }

    if command not in command_map:
        print_usage()
        return default_settings.EXIT_USAGE
    return command_map[command]()
