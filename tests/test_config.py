"""Tests for reading the runtime environment."""

from __future__ import annotations

import pytest

from edgevisor import settings
from edgevisor.local.config import AgentEnvironment
from edgevisor.local.supervisor.errors import SupervisorConfigError


class TestDefaults:
    def test_defaults_from_empty_environment(self):
        env = AgentEnvironment({})

        assert env.AGENT_LOG_LEVEL == settings.DEFAULT_AGENT_LOG_LEVEL
        assert env.CONTAINER_NAME == settings.DEFAULT_CONTAINER_NAME
        assert env.docker_endpoint is None
        assert env.MAX_INVOCATIONS is None
        assert env.KEEP_CONFIG is False
        assert env.is_mac_host is False
        assert env.instance_dir == settings.INSTANCE_BASE_DIR / settings.DEFAULT_CONTAINER_NAME

    def test_agent_command_template(self):
        env = AgentEnvironment({"EDGE_AGENT_LOG_LEVEL": "5"})

        assert env.agent_command() == [
            str(settings.AGENT_BINARY_PATH),
            "-v=5",
            "-logtostderr=true",
            f"-config={settings.CONFIG_PATH}",
        ]

    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_keep_config_flag(self, value):
        assert AgentEnvironment({"EDGE_AGENT_KEEP_CONFIG": value}).KEEP_CONFIG is True

    @pytest.mark.parametrize("value", ["Darwin", "mac"])
    def test_mac_host_detection(self, value):
        assert AgentEnvironment({"HOST_OS": value}).is_mac_host is True


class TestMaxInvocations:
    @pytest.mark.parametrize("raw, expected", [("", None), ("0", None), ("3", 3), (" 12 ", 12)])
    def test_parsing(self, raw, expected):
        assert AgentEnvironment({"EDGE_AGENT_MAX_INVOCATIONS": raw}).MAX_INVOCATIONS == expected

    @pytest.mark.parametrize("raw", ["many", "-1", "2.5"])
    def test_invalid_values_are_fatal(self, raw):
        with pytest.raises(SupervisorConfigError) as exc_info:
            AgentEnvironment({"EDGE_AGENT_MAX_INVOCATIONS": raw})
        assert exc_info.value.exit_code == settings.EXIT_BAD_ENVIRONMENT
