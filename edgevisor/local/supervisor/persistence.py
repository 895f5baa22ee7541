import os
import json
import logging
from pathlib import Path
from typing import Dict, Optional

log = logging.getLogger(__name__)


def read_pid_file(pid_path: Path) -> Optional[Dict[str, int]]:
    """
    Reads the PID file written by a running supervisor.

    :param pid_path: Location of the PID file.
    :return: A mapping like {"supervisor": 1, "agent": 42}, or None if absent or invalid.
    """
    if not pid_path.exists():
        return None
    try:
        with pid_path.open("r") as f:
            pids = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        log.warning(f"Ignoring unreadable PID file '{pid_path}': {e}")
        return None
    if not isinstance(pids, dict):
        log.warning(f"Ignoring malformed PID file '{pid_path}'.")
        return None
    return {name: pid for name, pid in pids.items() if isinstance(pid, int)}


def write_pid_file(pid_path: Path, agent_pid: int) -> None:
    """
    Atomically records the supervisor and current agent PIDs.

    :param pid_path: Location of the PID file.
    :param agent_pid: PID of the agent process just launched.
    """
    pid_dict = {"supervisor": os.getpid(), "agent": agent_pid}
    temp_pid_path = pid_path.with_suffix(".tmp")
    try:
        pid_path.parent.mkdir(parents=True, exist_ok=True)
        with temp_pid_path.open("w") as f:
            json.dump(pid_dict, f, indent=4)
        temp_pid_path.replace(pid_path)
    except OSError as e:
        log.error(f"Failed to write PID file: {e}", exc_info=True)
    finally:
        temp_pid_path.unlink(missing_ok=True)


def remove_pid_file(pid_path: Path) -> None:
    try:
        pid_path.unlink(missing_ok=True)
    except OSError as e:
        log.error(f"Failed to remove PID file '{pid_path}': {e}")


def create_stopping_marker(marker_path: Path) -> None:
    """Creates the stopping marker. Safe to call more than once."""
    marker_path.touch(exist_ok=True)
    log.debug(f"Stopping marker created at '{marker_path}'.")


def check_for_shutdown_signal(marker_path: Path) -> bool:
    """Checks if the stopping marker exists."""
    if marker_path.exists():
        log.info("Stopping marker detected. The agent will not be respawned.")
        return True
    return False


def clear_stale_stopping_marker(marker_path: Path) -> None:
    """
    Removes a marker left behind by a previous run of this container.
    Only called at startup, before the signal handler is installed.
    """
    if marker_path.exists():
        log.warning(f"Removing stale stopping marker from a previous run: '{marker_path}'")
        marker_path.unlink(missing_ok=True)
