import os
import logging
from pathlib import Path
from typing import Mapping, Optional

import edgevisor.settings as default_settings
from edgevisor.local.supervisor.errors import SupervisorConfigError

log = logging.getLogger(__name__)


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in default_settings.TRUTHY_VALUES


class AgentEnvironment:
    """
    The runtime view of the supervisor's configuration.

    Fixed paths come from `settings.py`; everything the container operator can
    change per run is read from the environment when this object is created.
    It must therefore be built *after* the optional environment file has been
    loaded, and is then passed explicitly to the patcher and the supervisor.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        :param environ: The environment to read from. Defaults to `os.environ`.
        """
        env = os.environ if environ is None else environ

        # Fixed layout
        self.AGENT_BINARY_PATH: Path = default_settings.AGENT_BINARY_PATH
        self.CONFIG_PATH: Path = default_settings.CONFIG_PATH
        self.PID_FILE_PATH: Path = default_settings.PID_FILE_PATH
        self.SKIP_UNREGISTER_PATH: Path = default_settings.SKIP_UNREGISTER_PATH
        self.STOPPING_MARKER_PATH: Path = Path.home() / default_settings.STOPPING_MARKER_NAME
        self.INSTANCE_BASE_DIR: Path = default_settings.INSTANCE_BASE_DIR
        self.MAC_SHARED_ROOT: Path = default_settings.MAC_SHARED_ROOT
        self.UNREGISTER_COMMAND = list(default_settings.UNREGISTER_COMMAND)
        self.RESPAWN_DELAY: float = default_settings.RESPAWN_DELAY

        # Per-run values
        self.AGENT_LOG_LEVEL: str = env.get("EDGE_AGENT_LOG_LEVEL") or default_settings.DEFAULT_AGENT_LOG_LEVEL
        self.DOCKER_ENDPOINT: Optional[str] = env.get("DOCKER_ENDPOINT") or None
        self.DOCKER_MAC_HOST: Optional[str] = env.get("DOCKER_MAC_HOST") or None
        self.CONTAINER_NAME: str = env.get("CONTAINER_NAME") or default_settings.DEFAULT_CONTAINER_NAME
        self.HOST_OS: str = (env.get("HOST_OS") or "").strip().lower()
        self.KEEP_CONFIG: bool = _is_truthy(env.get("EDGE_AGENT_KEEP_CONFIG"))
        self.VERBOSE_LOGGING: bool = _is_truthy(env.get("EDGE_SUPERVISOR_VERBOSE"))
        self.MAX_INVOCATIONS: Optional[int] = self._parse_max_invocations(env.get("EDGE_AGENT_MAX_INVOCATIONS"))

    @staticmethod
    def _parse_max_invocations(raw: Optional[str]) -> Optional[int]:
        """Empty or zero means no ceiling; anything else must be a positive integer."""
        if raw is None or not raw.strip():
            return None
        try:
            value = int(raw)
        except ValueError:
            raise SupervisorConfigError(f"EDGE_AGENT_MAX_INVOCATIONS must be an integer, got '{raw}'")
        if value < 0:
            raise SupervisorConfigError(f"EDGE_AGENT_MAX_INVOCATIONS must not be negative, got {value}")
        return value or None

    @property
    def is_mac_host(self) -> bool:
        return self.HOST_OS in default_settings.MAC_HOST_OS_VALUES

    @property
    def instance_dir(self) -> Path:
        """The per-instance base directory, keyed by container name."""
        return self.INSTANCE_BASE_DIR / self.CONTAINER_NAME

    @property
    def docker_endpoint(self) -> Optional[str]:
        """The explicit override wins; the legacy mac host is composed into a TCP URL."""
        if self.DOCKER_ENDPOINT:
            return self.DOCKER_ENDPOINT
        if self.DOCKER_MAC_HOST:
            return f"tcp://{self.DOCKER_MAC_HOST}:{default_settings.DOCKER_MAC_PORT}"
        return None

    def agent_command(self) -> list:
        """The fixed argument template the agent binary is launched with."""
        return [
            str(self.AGENT_BINARY_PATH),
            f"-v={self.AGENT_LOG_LEVEL}",
            default_settings.AGENT_LOG_TARGET_FLAG,
            f"-config={self.CONFIG_PATH}",
        ]
