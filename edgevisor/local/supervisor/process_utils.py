import psutil
import logging
import threading
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from edgevisor.local.config import AgentEnvironment

log = logging.getLogger(__name__)


#* --- Process Status & Lookup ---
def pid_exists(pid: int) -> bool:
    """A wrapper for psutil.pid_exists for easy testing/mocking if needed."""
    return psutil.pid_exists(pid)

def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)

def get_proc_status_string(proc: psutil.Process) -> str:
    """Gets a string representation of a process status."""
    try:
        if proc.status() == psutil.STATUS_ZOMBIE:
            return "zombie"
        return "running"
    except psutil.NoSuchProcess:
        return "stopped"
    except psutil.Error:
        return "unknown"

def is_agent_process(proc: psutil.Process, binary_path: Path) -> bool:
    """True if the process was started from the agent binary."""
    try:
        cmdline = proc.cmdline()
        exe = proc.exe()
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        return False
    except psutil.AccessDenied:
        cmdline, exe = [], ""
    if exe and Path(exe) == binary_path:
        return True
    return bool(cmdline) and cmdline[0] == str(binary_path)

def find_agent_processes(binary_path: Path) -> List[psutil.Process]:
    """Lists every process whose executable or argv[0] is the agent binary."""
    return [p for p in psutil.process_iter() if is_agent_process(p, binary_path)]


#* --- Process Creation ---
def _read_pipe(pipe, process_name: str, level: int, line_handler: Optional[Callable] = None):
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            if line_handler:
                line_handler(line)
            else:
                proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()

def log_process_output(process: subprocess.Popen, name: str, line_handler: Optional[Callable] = None):
    """Starts background threads to consume and log a process's stdout/stderr."""
    # The agent logs to stderr by design, so both streams are relayed at INFO.
    if process.stdout:
        threading.Thread(target=_read_pipe, args=(process.stdout, name, logging.INFO, line_handler), daemon=True).start()
    if process.stderr:
        threading.Thread(target=_read_pipe, args=(process.stderr, name, logging.INFO, line_handler), daemon=True).start()

def launch_agent(env: "AgentEnvironment") -> subprocess.Popen:
    """
    Launches the agent binary with its fixed argument template.

    The child stays in the supervisor's process group so that signals
    delivered to the group also reach it.

    :param env: The runtime environment.
    :return: The Popen handle of the started agent.
    :raises OSError: If the binary cannot be executed.
    """
    args = env.agent_command()
    log.info(f"Starting agent: {' '.join(args)}")
    p = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, stdin=subprocess.DEVNULL)
    log_process_output(p, env.AGENT_BINARY_PATH.name)
    log.info(f"Agent started with PID: {p.pid}")
    return p
