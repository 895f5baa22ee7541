"""
This module contains the fixed paths and default values for the edge agent supervisor.
Values that describe the container layout can be overridden through the environment;
everything read per-run (log level, endpoints, limits) lives in `local.config`.
"""

import os
import pathlib

#* --- Agent Binary & Config Paths ---
AGENT_BINARY_PATH = pathlib.Path(os.getenv("EDGE_AGENT_BINARY", "/usr/local/bin/edge-agent"))
CONFIG_PATH = pathlib.Path(os.getenv("EDGE_AGENT_CONFIG_PATH", "/etc/edge-agent/config.json"))
CONFIG_BACKUP_SUFFIX = ".orig"
ENV_FILE_PATH = pathlib.Path(os.getenv("EDGE_AGENT_ENV_FILE", "/etc/edge-agent/env"))

#* --- Runtime Markers ---
RUN_DIR = pathlib.Path(os.getenv("EDGE_AGENT_RUN_DIR", "/var/run/edge-agent"))
PID_FILE_PATH = RUN_DIR / "supervisor.pid"
SKIP_UNREGISTER_PATH = RUN_DIR / "skip-unregister"
STOPPING_MARKER_NAME = ".edge-agent-stopping"

#* --- Per-Instance Directories ---
INSTANCE_BASE_DIR = pathlib.Path(os.getenv("EDGE_AGENT_BASE_DIR", "/var/lib/edge-agent"))
DEFAULT_CONTAINER_NAME = "edge-agent"
# Docker for Mac can only share paths under /private, so the instance tree is aliased there.
MAC_SHARED_ROOT = pathlib.Path("/private")
MAC_HOST_OS_VALUES = {"mac", "macos", "darwin", "osx"}

# Subdirectory name -> (document key path, path inside the subdirectory)
INSTANCE_SUBDIRS = {
    "auth": (("auth", "token_dir"), ""),
    "sock": (("file_sync", "socket_path"), "file-sync.sock"),
    "secrets": (("secrets", "path"), ""),
}

#* --- Config Document Values ---
LISTEN_ADDRESS_KEY = ("api", "listen_address")
LISTEN_ADDRESS = "0.0.0.0:8020"
MULTI_INSTANCE_KEY = ("allow_multiple_instances",)
DOCKER_ENDPOINT_KEY = ("docker", "endpoint")
DOCKER_MAC_PORT = 2375

#* --- Agent Launch Settings ---
DEFAULT_AGENT_LOG_LEVEL = "2"
AGENT_LOG_TARGET_FLAG = "-logtostderr=true"

#* --- Supervisor Settings ---
RESPAWN_DELAY = 1            # seconds between an agent exit and its relaunch
IDLE_SLEEP_INTERVAL = 3600   # seconds per sleep while blocked for manual debugging
UNREGISTER_COMMAND = ["edge-agent-register", "unregister", "--force"]
PROCESS_TITLE = "EdgeAgent - Supervisor"
TRUTHY_VALUES = ('true', '1', 't', 'yes', 'y')

#* --- Exit Codes ---
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ENV_FILE = 2
EXIT_CONFIG_PATCH = 3
EXIT_BAD_ENVIRONMENT = 4
EXIT_INTERRUPTED = 130
