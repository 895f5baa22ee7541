import io
import os
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict
from dotenv import dotenv_values
from dotenv.parser import parse_stream
from edgevisor.local.supervisor import config_patch, persistence, shutdown
from edgevisor.local.supervisor.errors import EnvironmentFileError

if TYPE_CHECKING:
    from .supervisor import AgentSupervisor

log = logging.getLogger(__name__)


def load_environment_file(env_path: Path) -> Dict[str, str]:
    """
    Exports the variables of the optional environment file into `os.environ`.
    A missing file is not an error; an unreadable or malformed one is fatal.

    :param env_path: Path to a dotenv-style file.
    :return: The variables that were exported.
    :raises EnvironmentFileError: If the file exists but cannot be read or parsed.
    """
    if not env_path.exists():
        log.debug(f"No environment file at '{env_path}'.")
        return {}

    try:
        text = env_path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise EnvironmentFileError(f"Failed to load environment file '{env_path}': {e}") from e

    # dotenv skips lines it cannot parse; a partially loaded file must not start the agent.
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            line = binding.original.line
            raise EnvironmentFileError(f"Malformed environment file '{env_path}' at line {line}: {binding.original.string.strip()!r}")

    values = dotenv_values(stream=io.StringIO(text))

    exported = {key: value for key, value in values.items() if value is not None}
    os.environ.update(exported)
    log.info(f"Loaded {len(exported)} variables from '{env_path}'.")
    return exported


def setup_initial_environment(supervisor: "AgentSupervisor") -> None:
    """
    Prepares the container for the first agent launch: clears a stale stopping
    marker, patches the agent config unless asked to keep it, and installs the
    SIGTERM handler.

    :param supervisor: The AgentSupervisor instance.
    :raises ConfigPatchError: If the config document cannot be patched.
    """
    env = supervisor.env
    persistence.clear_stale_stopping_marker(env.STOPPING_MARKER_PATH)

    if env.KEEP_CONFIG:
        log.info("EDGE_AGENT_KEEP_CONFIG is set. Keeping the existing agent config.")
    else:
        config_patch.patch_config(env.CONFIG_PATH, env)

    shutdown.install_signal_handler(supervisor)
