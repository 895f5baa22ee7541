import os
import sys
import psutil
import setproctitle
import logging
import edgevisor.settings as default_settings
from edgevisor.local.config import AgentEnvironment
from edgevisor.local.supervisor import AgentSupervisor, persistence, process_utils, startup

log = logging.getLogger(__name__)


def _describe_process(proc: psutil.Process, label: str) -> str:
    """Formats one status line with resource usage."""
    try:
        cpu = proc.cpu_percent(interval=0.1)
        mem = proc.memory_info().rss
        return (f"  - {proc.name() + ' (' + label + ')':<32} : PID {proc.pid:<8} | "
                f"Status: {proc.status().upper()} | CPU: {cpu:.1f}% | MEM: {mem/1024/1024:.1f} MB")
    except psutil.NoSuchProcess:
        return f"  - {label:<32} : PID {proc.pid:<8} | Status: STOPPED"
    except psutil.AccessDenied:
        return f"  - {label:<32} : PID {proc.pid:<8} | Status: {process_utils.get_proc_status_string(proc).upper()}"


def display_status() -> int:
    """Prints the supervisor's view of the agent and every agent process found."""
    env = AgentEnvironment()
    pids = persistence.read_pid_file(env.PID_FILE_PATH)

    print("\n--- Edge Agent Status ---")
    if not pids:
        print("Supervisor: no PID file found.")
    else:
        for name, pid in sorted(pids.items()):
            if process_utils.pid_exists(pid):
                print(_describe_process(process_utils.get_process_from_pid(pid), name))
            else:
                print(f"  - {name:<32} : PID {pid:<8} | Status: STALE")

    agents = process_utils.find_agent_processes(env.AGENT_BINARY_PATH)
    print(f"\nProcesses running '{env.AGENT_BINARY_PATH}': {len(agents)}")
    for proc in agents:
        try:
            print(f"  {proc.pid:<8} {' '.join(proc.cmdline())}")
        except psutil.Error:
            print(f"  {proc.pid:<8} <unavailable>")
    print("-------------------------\n")
    return default_settings.EXIT_OK


def restart_agent() -> int:
    """
    Terminates the running agent so the supervisor respawns it.
    Nothing is relaunched from here.
    """
    env = AgentEnvironment()
    pids = persistence.read_pid_file(env.PID_FILE_PATH) or {}
    agent_pid = pids.get("agent")

    if agent_pid is None or not process_utils.pid_exists(agent_pid):
        log.error("No running agent recorded by the supervisor. Is it started?")
        return default_settings.EXIT_USAGE

    try:
        proc = process_utils.get_process_from_pid(agent_pid)
        if not process_utils.is_agent_process(proc, env.AGENT_BINARY_PATH):
            log.error(f"PID {agent_pid} is not the agent binary '{env.AGENT_BINARY_PATH}'. Refusing to signal it.")
            return default_settings.EXIT_USAGE
        proc.terminate()
    except psutil.NoSuchProcess:
        log.error(f"Agent (PID {agent_pid}) exited before it could be restarted.")
        return default_settings.EXIT_USAGE

    log.info(f"Sent SIGTERM to agent (PID {agent_pid}). The supervisor will respawn it.")
    return default_settings.EXIT_OK


def start_supervisor(args) -> int:
    """
    Loads the optional environment file and runs the supervisor.

    :param args: Extra arguments; a leading 'block' requests idle mode.
    :return: The supervisor's exit code.
    :raises SupervisorError: If a setup step fails.
    """
    setproctitle.setproctitle(default_settings.PROCESS_TITLE)

    startup.load_environment_file(default_settings.ENV_FILE_PATH)
    env = AgentEnvironment()
    if env.VERBOSE_LOGGING:
        toggle_verbose_logging()

    idle = bool(args) and args[0] == "block"
    log.debug(f"Supervisor PID {os.getpid()}, idle={idle}")
    return AgentSupervisor(env).start(idle=idle)


def toggle_verbose_logging() -> None:
    """Switches the console handlers to DEBUG."""
    for handler in logging.getLogger().handlers:
        handler.setLevel(logging.DEBUG)
    log.debug("Verbose logging enabled.")


def print_usage() -> None:
    prog = os.path.basename(sys.argv[0]) or "edgevisor"
    print(f"Usage: {prog} {{start|restart|status|block}}", file=sys.stderr)
    print("  start [block]  - Patch the agent config and keep the agent running", file=sys.stderr)
    print("  restart        - Kill the running agent; the supervisor respawns it", file=sys.stderr)
    print("  status         - Show the supervisor and agent processes", file=sys.stderr)
    print("  block          - Idle forever without starting the agent", file=sys.stderr)
