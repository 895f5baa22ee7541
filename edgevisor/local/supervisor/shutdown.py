import sys
import signal
import logging
import subprocess
from typing import TYPE_CHECKING
from edgevisor.local.supervisor import persistence

if TYPE_CHECKING:
    from .supervisor import AgentSupervisor

log = logging.getLogger(__name__)


def run_unregister(supervisor: "AgentSupervisor") -> None:
    """
    Runs the external unregistration command once. Failures are logged only;
    there is no retry and no timeout.
    """
    cmd = supervisor.env.UNREGISTER_COMMAND
    log.info(f"Unregistering agent: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, check=False)
    except OSError as e:
        log.error(f"Failed to run unregistration command: {e}")
        return
    if result.returncode != 0:
        log.error(f"Unregistration command exited with status {result.returncode}.")
    else:
        log.info("Agent unregistered.")


def handle_termination(supervisor: "AgentSupervisor", signum: int) -> None:
    """
    Stops respawning for the rest of this run, then decides whether the agent
    should be unregistered before the supervisor exits with status 0.

    :param supervisor: The running AgentSupervisor.
    :param signum: The signal that was received.
    :raises SystemExit: With status 0, on the first signal only.
    """
    if supervisor.shutdown_signal_received.is_set():
        # A shutdown is already in progress; it will exit once unregistration returns.
        log.info(f"Received {signal.Signals(signum).name} again. Shutdown already in progress.")
        return

    log.info(f"Received {signal.Signals(signum).name}. Stopping supervisor...")
    supervisor.shutdown_signal_received.set()
    try:
        persistence.create_stopping_marker(supervisor.env.STOPPING_MARKER_PATH)
    except OSError as e:
        log.error(f"Failed to create stopping marker: {e}")

    if supervisor.env.SKIP_UNREGISTER_PATH.exists():
        log.info("Skip-unregister marker present. Restart in progress, leaving the agent registered.")
    else:
        run_unregister(supervisor)

    sys.exit(0)


def install_signal_handler(supervisor: "AgentSupervisor") -> None:
    """Routes SIGTERM to `handle_termination` for the given supervisor."""
    signal.signal(signal.SIGTERM, lambda signum, frame: handle_termination(supervisor, signum))
    log.debug("SIGTERM handler installed.")


def terminate_agent(proc: subprocess.Popen, timeout: float = 10) -> None:
    """Terminates the agent child, escalating to SIGKILL if it does not exit in time."""
    if proc.poll() is not None:
        return
    log.info(f"Terminating agent (PID {proc.pid})...")
    proc.terminate()
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        log.warning(f"Agent (PID {proc.pid}) did not terminate gracefully. Killing it.")
        proc.kill()
        proc.wait()
