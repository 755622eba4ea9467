"""Tests for environment and CLI configuration."""

import pytest

from config import DEFAULT_BRIDGE_URL, DEFAULT_CHANNEL, get_config

ENV_VARS = [
    "BRIDGE_URL",
    "FIGMA_CHANNEL",
    "FIGMA_TOOL_TIMEOUT",
    "PROGRESS_YIELD_SECONDS",
    "STYLE_RULESET",
    "STYLE_EXCLUDED_PREFIXES",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = get_config([])
    assert config.bridge_url == DEFAULT_BRIDGE_URL
    assert config.channel == DEFAULT_CHANNEL
    assert config.command_timeout == 30.0
    assert config.progress_yield_seconds == 0.01
    assert config.ruleset == "baseline"
    assert config.excluded_prefixes == ()
    assert config.log_level == "INFO"
    assert config.export_path is None


def test_environment(monkeypatch):
    monkeypatch.setenv("BRIDGE_URL", "ws://bridge:9000")
    monkeypatch.setenv("FIGMA_CHANNEL", "team-a")
    monkeypatch.setenv("FIGMA_TOOL_TIMEOUT", "12.5")
    monkeypatch.setenv("PROGRESS_YIELD_SECONDS", "0")
    monkeypatch.setenv("STYLE_RULESET", "strict")
    monkeypatch.setenv("STYLE_EXCLUDED_PREFIXES", "Legacy, deprecated ,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = get_config([])

    assert config.bridge_url == "ws://bridge:9000"
    assert config.channel == "team-a"
    assert config.command_timeout == 12.5
    assert config.progress_yield_seconds == 0.0
    assert config.ruleset == "strict"
    assert config.excluded_prefixes == ("legacy", "deprecated")
    assert config.log_level == "DEBUG"


def test_cli_overrides_environment(monkeypatch):
    monkeypatch.setenv("FIGMA_CHANNEL", "team-a")

    config = get_config([
        "--channel=team-b",
        "--bridge-url=ws://other:1",
        "--timeout=5",
        "--yield=0.5",
        "--ruleset=strict",
        "--exclude=draft",
        "--log-level=warning",
        "--export=doc.json",
    ])

    assert config.channel == "team-b"
    assert config.bridge_url == "ws://other:1"
    assert config.command_timeout == 5.0
    assert config.progress_yield_seconds == 0.5
    assert config.ruleset == "strict"
    assert config.excluded_prefixes == ("draft",)
    assert config.log_level == "WARNING"
    assert config.export_path == "doc.json"


def test_empty_channel_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("FIGMA_CHANNEL", "")
    assert get_config([]).channel == DEFAULT_CHANNEL


def test_bad_numbers_keep_defaults(monkeypatch):
    monkeypatch.setenv("FIGMA_TOOL_TIMEOUT", "soon")
    config = get_config(["--yield=fast"])
    assert config.command_timeout == 30.0
    assert config.progress_yield_seconds == 0.01


def test_unknown_arguments_are_ignored():
    config = get_config(["--verbose", "extra"])
    assert config.channel == DEFAULT_CHANNEL


def test_bad_log_level_keeps_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert get_config([]).log_level == "INFO"
    assert get_config(["--log-level=loud"]).log_level == "INFO"
    assert get_config(["--log-level=error"]).log_level == "ERROR"
