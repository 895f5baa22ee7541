"""Tests for the command-line entry point."""

from __future__ import annotations

import pytest

from edgevisor import main as main_module
from edgevisor import settings
from edgevisor.local.console import handler, process
from edgevisor.local.supervisor import startup
from edgevisor.local.supervisor.errors import ConfigPatchError


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch):
    monkeypatch.setattr(main_module, "setup_logging", lambda level=None: None)


@pytest.fixture
def forbidden(monkeypatch):
    """Fails the test if any verb implementation or setup step runs."""

    def fail(*args, **kwargs):
        raise AssertionError("unexpected side effect")

    monkeypatch.setattr(process, "start_supervisor", fail)
    monkeypatch.setattr(process, "restart_agent", fail)
    monkeypatch.setattr(process, "display_status", fail)
    monkeypatch.setattr(startup, "load_environment_file", fail)


class TestUsage:
    def test_unknown_verb_exits_1_without_side_effects(self, forbidden, capsys, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert main_module.main(["stop"]) == settings.EXIT_USAGE

        assert "Usage:" in capsys.readouterr().err
        assert list(tmp_path.iterdir()) == []

    def test_missing_verb_exits_1(self, forbidden, capsys):
        assert main_module.main([]) == settings.EXIT_USAGE
        assert "Usage:" in capsys.readouterr().err


class TestDispatch:
    def test_start_passes_arguments(self, monkeypatch):
        calls = []
        monkeypatch.setattr(process, "start_supervisor", lambda args: calls.append(args) or 0)

        assert main_module.main(["start", "block"]) == 0
        assert calls == [["block"]]

    def test_block_is_start_block(self, monkeypatch):
        calls = []
        monkeypatch.setattr(process, "start_supervisor", lambda args: calls.append(args) or 0)

        main_module.main(["block"])

        assert calls == [["block"]]

    @pytest.mark.parametrize("verb", ["START", "Block", "Status"])
    def test_verbs_are_case_sensitive(self, forbidden, capsys, verb):
        assert main_module.main([verb]) == settings.EXIT_USAGE
        assert "Usage:" in capsys.readouterr().err

    def test_fatal_setup_error_exit_code_is_propagated(self, monkeypatch):
        def failing_start(args):
            raise ConfigPatchError("config.json unreadable")

        monkeypatch.setattr(process, "start_supervisor", failing_start)

        assert main_module.main(["start"]) == settings.EXIT_CONFIG_PATCH


class TestStartSupervisor:
    @pytest.fixture(autouse=True)
    def _no_proctitle(self, monkeypatch):
        monkeypatch.setattr(handler.setproctitle, "setproctitle", lambda title: None)

    def test_env_file_failure_is_fatal(self, tmp_path, monkeypatch):
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        monkeypatch.setattr(settings, "ENV_FILE_PATH", env_dir)

        assert main_module.main(["start"]) == settings.EXIT_ENV_FILE

    def test_block_never_launches_agent(self, tmp_path, monkeypatch, launcher, no_signal_handler):
        from edgevisor.local.supervisor import supervisor as supervisor_module

        class StopIdling(Exception):
            pass

        def sleep(seconds):
            raise StopIdling

        monkeypatch.setattr(settings, "ENV_FILE_PATH", tmp_path / "absent")
        monkeypatch.setattr(supervisor_module.time, "sleep", sleep)
        monkeypatch.setenv("EDGE_AGENT_MAX_INVOCATIONS", "1")

        with pytest.raises(StopIdling):
            main_module.main(["block"])

        assert launcher.launched == []
