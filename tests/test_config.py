"""Tests for devops_mcp.core.config — Configuration management."""

import pytest

from devops_mcp.core.config import (
    DEFAULT_TOOL_TIMEOUT_SECONDS,
    DevOpsMCPConfig,
    DispatchConfig,
    ServerConfig,
    SessionConfig,
)

_ENV_VARS = (
    "DEVOPS_MCP_HOST",
    "DEVOPS_MCP_PORT",
    "DEVOPS_MCP_LOG_LEVEL",
    "DEVOPS_MCP_LOG_FILE",
    "DEVOPS_MCP_SESSION_TTL_SEC",
    "DEVOPS_MCP_SESSION_MAX_RETAINED",
    "DEVOPS_MCP_SESSION_SWEEP_INTERVAL_SEC",
    "DEVOPS_MCP_TOOL_TIMEOUT_SEC",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDevOpsMCPConfigDefaults:
    def test_from_env_defaults(self):
        config = DevOpsMCPConfig.from_env()
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 3002
        assert config.server.log_level == "info"
        assert config.server.log_file is None
        assert config.sessions.ttl_seconds == 3600.0
        assert config.sessions.max_retained == 10000
        assert config.sessions.sweep_interval_seconds == 60.0
        assert config.dispatch.tool_timeout_seconds == DEFAULT_TOOL_TIMEOUT_SECONDS

    def test_constructor_defaults_match_from_env(self):
        assert DevOpsMCPConfig() == DevOpsMCPConfig.from_env()

    def test_sub_configs(self):
        assert ServerConfig().port == 3002
        assert SessionConfig().max_retained == 10000
        assert DispatchConfig().tool_timeout_seconds == 30.0


class TestEnvOverrides:
    def test_env_override_host_and_port(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("DEVOPS_MCP_PORT", "8080")
        config = DevOpsMCPConfig.from_env()
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8080

    def test_env_override_log_settings(self, monkeypatch, tmp_path):
        log_file = tmp_path / "server.log"
        monkeypatch.setenv("DEVOPS_MCP_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DEVOPS_MCP_LOG_FILE", str(log_file))
        config = DevOpsMCPConfig.from_env()
        assert config.server.log_level == "debug"
        assert config.server.log_file == str(log_file)

    def test_env_override_session_policy(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_SESSION_TTL_SEC", "120")
        monkeypatch.setenv("DEVOPS_MCP_SESSION_MAX_RETAINED", "50")
        monkeypatch.setenv("DEVOPS_MCP_SESSION_SWEEP_INTERVAL_SEC", "5")
        config = DevOpsMCPConfig.from_env()
        assert config.sessions.ttl_seconds == 120.0
        assert config.sessions.max_retained == 50
        assert config.sessions.sweep_interval_seconds == 5.0

    def test_env_override_tool_timeout(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_TOOL_TIMEOUT_SEC", "2.5")
        assert DevOpsMCPConfig.from_env().dispatch.tool_timeout_seconds == 2.5

    def test_zero_tool_timeout_disables_bound(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_TOOL_TIMEOUT_SEC", "0")
        assert DevOpsMCPConfig.from_env().dispatch.tool_timeout_seconds is None

    def test_blank_log_file_is_none(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_LOG_FILE", "   ")
        assert DevOpsMCPConfig.from_env().server.log_file is None


class TestInvalidValues:
    def test_non_numeric_port_falls_back(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_PORT", "not-a-port")
        assert DevOpsMCPConfig.from_env().server.port == 3002

    def test_below_minimum_falls_back(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_SESSION_TTL_SEC", "0.5")
        monkeypatch.setenv("DEVOPS_MCP_SESSION_MAX_RETAINED", "0")
        config = DevOpsMCPConfig.from_env()
        assert config.sessions.ttl_seconds == 3600.0
        assert config.sessions.max_retained == 10000

    def test_negative_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_TOOL_TIMEOUT_SEC", "-1")
        assert DevOpsMCPConfig.from_env().dispatch.tool_timeout_seconds == DEFAULT_TOOL_TIMEOUT_SECONDS

    def test_invalid_float_falls_back(self, monkeypatch):
        monkeypatch.setenv("DEVOPS_MCP_SESSION_SWEEP_INTERVAL_SEC", "often")
        assert DevOpsMCPConfig.from_env().sessions.sweep_interval_seconds == 60.0

    def test_unsupported_log_level_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("DEVOPS_MCP_LOG_LEVEL", "chatty")
        with caplog.at_level("WARNING", logger="DevOpsMCP.Config"):
            config = DevOpsMCPConfig.from_env()
        assert config.server.log_level == "info"
        assert "Unsupported log level" in caplog.text
