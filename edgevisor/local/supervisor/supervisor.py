import time
import logging
import threading
import subprocess
from typing import TYPE_CHECKING, Optional
import edgevisor.settings as default_settings
from edgevisor.local.supervisor import persistence, process_utils, shutdown, startup

if TYPE_CHECKING:
    from edgevisor.local.config import AgentEnvironment

log = logging.getLogger(__name__)

# Returned in place of an exit status when the agent binary could not be executed.
LAUNCH_FAILED_STATUS = 127


class AgentSupervisor:
    """
    Keeps a single edge agent process running inside the container.

    The agent is launched, waited on and relaunched after every exit until a
    termination signal has been received (shutdown event or stopping marker)
    or the optional invocation ceiling is reached.
    """

    def __init__(self, env: "AgentEnvironment") -> None:
        """Initializes the supervisor state."""
        self.env = env
        self.invocations = 0
        self.agent_proc: Optional[subprocess.Popen] = None
        self.last_exit_code: Optional[int] = None
        self.shutdown_signal_received = threading.Event()

    def start(self, idle: bool = False) -> int:
        """
        Runs the supervisor until the agent should no longer be respawned.

        :param idle: If True, skip all setup and sleep forever for manual debugging.
        :return: The exit code for the supervisor process.
        :raises SupervisorError: If a setup step fails.
        """
        if idle:
            shutdown.install_signal_handler(self)
            self.idle_forever()

        log.info("=" * 20 + " Edge Agent Supervisor Starting " + "=" * 20)
        startup.setup_initial_environment(self)
        return self.supervision_loop()

    def idle_forever(self) -> None:
        """Blocks without ever launching the agent. Only a signal ends this."""
        log.warning("Block mode requested. The agent will not be started; the container idles for manual intervention.")
        while True:
            time.sleep(default_settings.IDLE_SLEEP_INTERVAL)

    def supervision_loop(self) -> int:
        """Launches the agent and respawns it after each exit until told to stop."""
        try:
            while True:
                self.last_exit_code = self._run_agent_once()
                self._log_exit(self.last_exit_code)

                if not self._should_respawn():
                    break

                log.info(f"Respawning agent in {self.env.RESPAWN_DELAY}s...")
                time.sleep(self.env.RESPAWN_DELAY)
        except KeyboardInterrupt:
            log.info("Supervisor loop interrupted by user.")
            if self.agent_proc is not None:
                shutdown.terminate_agent(self.agent_proc)
            return default_settings.EXIT_INTERRUPTED
        finally:
            persistence.remove_pid_file(self.env.PID_FILE_PATH)

        log.info(f"Supervisor stopping after {self.invocations} agent invocation(s).")
        return default_settings.EXIT_OK

    def _run_agent_once(self) -> int:
        """Launches the agent and blocks until it has actually exited."""
        self.invocations += 1
        try:
            self.agent_proc = process_utils.launch_agent(self.env)
        except OSError as e:
            log.error(f"Failed to start agent (invocation #{self.invocations}): {e}")
            self.agent_proc = None
            return LAUNCH_FAILED_STATUS

        persistence.write_pid_file(self.env.PID_FILE_PATH, self.agent_proc.pid)
        return self.wait_for_exit(self.agent_proc)

    def wait_for_exit(self, proc: subprocess.Popen) -> int:
        """
        Blocks until the given agent process exits.

        An interrupted wait does not mean the agent is gone, so the wait is
        repeated for as many wake-ups as it takes.
        """
        while True:
            try:
                return proc.wait()
            except InterruptedError:
                # CPython retries EINTR inside wait(); this covers any wake-up that still surfaces.
                log.debug(f"Wait on agent (PID {proc.pid}) interrupted. Waiting again.")

    def _log_exit(self, exit_code: int) -> None:
        if exit_code == 0:
            log.info(f"Agent exited cleanly (invocation #{self.invocations}).")
        elif exit_code < 0:
            log.warning(f"Agent was killed by signal {-exit_code} (invocation #{self.invocations}).")
        else:
            log.warning(f"Agent exited with status {exit_code} (invocation #{self.invocations}).")

    def _should_respawn(self) -> bool:
        """Decides, after an agent exit, whether to launch it again."""
        if self.shutdown_signal_received.is_set() or persistence.check_for_shutdown_signal(self.env.STOPPING_MARKER_PATH):
            return False

        max_invocations = self.env.MAX_INVOCATIONS
        if max_invocations is not None and self.invocations >= max_invocations:
            log.info(f"Reached the maximum of {max_invocations} agent invocation(s).")
            return False
        return True
