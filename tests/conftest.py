"""Shared test fixtures for the supervisor tests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from edgevisor.local.config import AgentEnvironment
from edgevisor.local.supervisor import shutdown


class FakeAgentProc:
    """Stands in for the Popen handle of a launched agent."""

    _next_pid = 4000

    def __init__(self, exit_code: int = 0, interrupts: int = 0, on_wait=None) -> None:
        FakeAgentProc._next_pid += 1
        self.pid = FakeAgentProc._next_pid
        self.exit_code = exit_code
        self.interrupts = interrupts
        self.on_wait = on_wait
        self.wait_calls = 0
        self.returncode: Optional[int] = None
        self.terminated = False

    def wait(self, timeout=None) -> int:
        self.wait_calls += 1
        if self.interrupts:
            self.interrupts -= 1
            raise InterruptedError
        if self.on_wait:
            self.on_wait(self)
        self.returncode = self.exit_code
        return self.exit_code

    def poll(self) -> Optional[int]:
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    def kill(self) -> None:
        self.returncode = -9


@pytest.fixture
def agent_env(tmp_path: Path) -> AgentEnvironment:
    """An AgentEnvironment whose paths all live under tmp_path."""
    env = AgentEnvironment({})
    env.AGENT_BINARY_PATH = tmp_path / "bin" / "edge-agent"
    env.CONFIG_PATH = tmp_path / "etc" / "config.json"
    env.PID_FILE_PATH = tmp_path / "run" / "supervisor.pid"
    env.SKIP_UNREGISTER_PATH = tmp_path / "run" / "skip-unregister"
    env.STOPPING_MARKER_PATH = tmp_path / "home" / ".edge-agent-stopping"
    env.INSTANCE_BASE_DIR = tmp_path / "lib"
    env.MAC_SHARED_ROOT = tmp_path / "private"
    env.RESPAWN_DELAY = 0
    env.STOPPING_MARKER_PATH.parent.mkdir(parents=True)
    env.CONFIG_PATH.parent.mkdir(parents=True)
    return env


class AgentLauncher:
    """Records launches. Queued procs are handed out first, then clean exits."""

    def __init__(self) -> None:
        self.launched: List[FakeAgentProc] = []
        self.queue: List[FakeAgentProc] = []

    def __call__(self, env) -> FakeAgentProc:
        proc = self.queue.pop(0) if self.queue else FakeAgentProc()
        self.launched.append(proc)
        return proc


@pytest.fixture
def launcher(monkeypatch) -> AgentLauncher:
    """Replaces the agent launcher with an AgentLauncher."""
    from edgevisor.local.supervisor import process_utils

    fake = AgentLauncher()
    monkeypatch.setattr(process_utils, "launch_agent", fake)
    return fake


@pytest.fixture
def sleeps(monkeypatch) -> List[float]:
    """Records respawn pauses instead of sleeping."""
    from edgevisor.local.supervisor import supervisor as supervisor_module

    recorded: List[float] = []
    monkeypatch.setattr(supervisor_module.time, "sleep", recorded.append)
    return recorded


@pytest.fixture
def no_signal_handler(monkeypatch) -> List[object]:
    """Prevents tests from replacing the real SIGTERM handler."""
    installed: List[object] = []
    monkeypatch.setattr(shutdown, "install_signal_handler", installed.append)
    return installed
