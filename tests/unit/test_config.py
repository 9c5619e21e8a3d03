"""Unit tests for settings and the YAML application config."""

import pytest

from agentOrchestra.config import (
    DEFAULT_CONFIG_PATH,
    BridgeSettings,
    ExecutorSettings,
    load_app_config,
    parse_app_config,
)
from agentOrchestra.tools.mcp import StaticToolCatalog
from agentOrchestra.utils.errors import ConfigError


def _minimal(**overrides):
    data = {
        "models": [{"id": "m", "provider": "openai", "name": "gpt"}],
        "agents": [{"id": "a", "model_id": "m"}],
        "routing": {"rules": [{"if": "x", "route_to": "a"}], "fallback": "a"},
    }
    data.update(overrides)
    return data


class TestAppConfig:
    """Validation and loading of agents.yaml"""

    def test_packaged_config_loads(self):
        config = load_app_config()
        assert DEFAULT_CONFIG_PATH.exists()
        assert {"generalist", "coder", "writer"} <= set(config.agent_map())
        assert config.routing.fallback == "generalist"
        assert config.model_map()["gpt-4o"].fallback.provider == "openrouter"
        assert config.tool_servers["time"].enabled is False

    def test_minimal_config(self):
        config = parse_app_config(_minimal())
        assert config.routing.rules[0].pattern == "x"
        assert config.planner.max_steps == 10
        assert config.tool_servers == {}

    def test_cross_reference_issues_reported_together(self):
        data = _minimal(
            agents=[{"id": "a", "model_id": "missing"}],
            routing={"rules": [{"if": "x", "route_to": "ghost"}], "fallback": "nobody"},
        )
        with pytest.raises(ConfigError) as exc_info:
            parse_app_config(data)

        message = str(exc_info.value)
        assert "unknown model 'missing'" in message
        assert "unknown agent 'ghost'" in message
        assert "unknown agent 'nobody'" in message
        assert message.count("; ") == 2

    def test_field_validation_error(self):
        data = _minimal()
        del data["models"]
        with pytest.raises(ConfigError, match="models"):
            parse_app_config(data)

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ConfigError):
            parse_app_config(["not", "a", "mapping"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_app_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("models: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_app_config(path)

    def test_tool_servers_feed_catalog(self):
        config = parse_app_config(
            _minimal(
                tool_servers={
                    "fs": {
                        "command": "python",
                        "args": ["server.py"],
                        "tools": {
                            "read": {"description": "Read a file", "schema": {"type": "object"}},
                            "write": {"enabled": False},
                        },
                    }
                }
            )
        )
        catalog = StaticToolCatalog.from_config(config.tool_servers)

        assert catalog._servers["fs"].name == "fs"
        tools = catalog._tools
        assert [t.id for t in tools] == ["fs:read", "fs:write"]
        assert tools[0].schema_ == {"type": "object"}
        assert tools[1].enabled is False


class TestSettings:
    """Environment-backed settings groups"""

    def test_executor_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("EXECUTOR_MAX_RETRIES", "5")
        monkeypatch.setenv("EXECUTOR_RETRY_DELAY", "0.25")
        monkeypatch.delenv("EXECUTOR_DEFAULT_AGENT", raising=False)
        monkeypatch.setenv("DEFAULT_AGENT", "coder")

        settings = ExecutorSettings()

        assert settings.max_retries == 5
        assert settings.retry_delay == 0.25
        assert settings.default_agent == "coder"

    def test_bridge_defaults(self, monkeypatch):
        for name in ("TOOL_REQUEST_TIMEOUT", "TOOL_STARTUP_TIMEOUT", "CHAT_MAX_TOOL_ROUNDS"):
            monkeypatch.delenv(name, raising=False)

        settings = BridgeSettings()

        assert settings.request_timeout == 30.0
        assert settings.startup_timeout == 30.0
        assert settings.max_tool_rounds == 3
