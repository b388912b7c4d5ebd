"""Tests for the configuration module."""

import logging

from log_genie.config import AppConfig, load_config, load_yaml_config


def test_defaults():
    cfg = load_config([], environ={})
    assert cfg == AppConfig()
    assert cfg.rate == 10
    assert cfg.verbosity == "info"
    assert cfg.telemetry.enabled is False
    assert cfg.telemetry.endpoint == "collector:4318"
    assert cfg.telemetry.max_batch_size == 10
    assert cfg.telemetry.max_queue_size == 2048


def test_cli_flags():
    cfg = load_config(
        [
            "--rate", "50",
            "--verbosity", "debug",
            "--telemetry",
            "--telemetry-endpoint", "http://otel:4318/v1/logs",
            "--local-logs",
            "--show-responses",
            "--application-id", "app-7",
        ],
        environ={},
    )
    assert cfg.rate == 50
    assert cfg.verbosity == "debug"
    assert cfg.local_logs is True
    assert cfg.telemetry.enabled is True
    assert cfg.telemetry.endpoint == "http://otel:4318/v1/logs"
    assert cfg.telemetry.show_responses is True
    assert cfg.telemetry.application_id == "app-7"


def test_env_overrides_cli():
    env = {
        "LOG_GENIE_RATE": "200",
        "LOG_GENIE_VERBOSITY": "ERROR",
        "LOG_GENIE_TELEMETRY": "1",
        "LOG_GENIE_TELEMETRY_ENDPOINT": "collector:9999",
        "LOG_GENIE_LOCAL_LOGS": "true",
        "LOG_GENIE_SHOW_RESPONSES": "no",
    }
    cfg = load_config(["--rate", "5", "--show-responses"], environ=env)
    assert cfg.rate == 200
    assert cfg.verbosity == "error"
    assert cfg.telemetry.enabled is True
    assert cfg.telemetry.endpoint == "collector:9999"
    assert cfg.local_logs is True
    assert cfg.telemetry.show_responses is False


def test_invalid_values_fall_back():
    cfg = load_config(
        ["--verbosity", "loud", "--rate", "7"],
        environ={"LOG_GENIE_RATE": "fast"},
    )
    assert cfg.verbosity == "info"
    assert cfg.rate == 7


def test_non_positive_rate_uses_default():
    cfg = load_config(["--rate", "0"], environ={})
    assert cfg.rate == 10


def test_yaml_file(tmp_path):
    path = tmp_path / "log-genie.yml"
    path.write_text(
        "rate: 25\n"
        "telemetry:\n"
        "  enabled: true\n"
        "  endpoint: yaml-collector:4318\n"
        "batch:\n"
        "  max_batch_size: 50\n"
        "  export_interval: 2.5\n"
    )
    cfg = load_config(["--config", str(path)], environ={})
    assert cfg.rate == 25
    assert cfg.telemetry.enabled is True
    assert cfg.telemetry.endpoint == "yaml-collector:4318"
    assert cfg.telemetry.max_batch_size == 50
    assert cfg.telemetry.export_interval == 2.5


def test_yaml_path_from_env_and_cli_precedence(tmp_path):
    path = tmp_path / "cfg.yml"
    path.write_text("rate: 25\nverbosity: warn\n")
    cfg = load_config(["--rate", "30"], environ={"LOG_GENIE_CONFIG": str(path)})
    assert cfg.rate == 30
    assert cfg.verbosity == "warn"


def test_missing_yaml_file_returns_empty(tmp_path):
    assert load_yaml_config(str(tmp_path / "nope.yml")) == {}
    assert load_yaml_config(None) == {}


def test_non_numeric_yaml_rate_keeps_default(tmp_path, caplog):
    path = tmp_path / "cfg.yml"
    path.write_text("rate: fast\nverbosity: debug\n")
    with caplog.at_level(logging.WARNING, logger="log_genie.config"):
        cfg = load_config(["--config", str(path)], environ={})
    assert cfg.rate == 10
    assert cfg.verbosity == "debug"
    assert "Invalid YAML value 'fast' for rate" in caplog.text


def test_bad_yaml_batch_value_keeps_default(tmp_path, caplog):
    path = tmp_path / "cfg.yml"
    path.write_text(
        "batch:\n"
        "  max_batch_size: lots\n"
        "  export_timeout: [1, 2]\n"
        "  export_interval: 2.5\n"
    )
    with caplog.at_level(logging.WARNING, logger="log_genie.config"):
        cfg = load_config(["--config", str(path)], environ={})
    assert cfg.telemetry.max_batch_size == 10
    assert cfg.telemetry.export_timeout == 5.0
    assert cfg.telemetry.export_interval == 2.5
    assert "max_batch_size" in caplog.text
    assert "export_timeout" in caplog.text


def test_yaml_string_booleans_are_parsed(tmp_path):
    path = tmp_path / "cfg.yml"
    path.write_text("local_logs: 'false'\ntelemetry:\n  enabled: 'yes'\n")
    cfg = load_config(["--config", str(path)], environ={})
    assert cfg.local_logs is False
    assert cfg.telemetry.enabled is True


def test_non_mapping_yaml_document_uses_defaults(tmp_path, caplog):
    path = tmp_path / "cfg.yml"
    path.write_text("- rate\n- 25\n")
    with caplog.at_level(logging.WARNING, logger="log_genie.config"):
        assert load_yaml_config(str(path)) == {}
        cfg = load_config(["--config", str(path)], environ={})
    assert cfg == AppConfig()
    assert "must hold a mapping" in caplog.text


def test_non_mapping_yaml_section_is_ignored(tmp_path):
    path = tmp_path / "cfg.yml"
    path.write_text("rate: 12\ntelemetry: on\nbatch: 50\n")
    cfg = load_config(["--config", str(path)], environ={})
    assert cfg.rate == 12
    assert cfg.telemetry == AppConfig().telemetry


def test_malformed_yaml_uses_defaults(tmp_path):
    path = tmp_path / "cfg.yml"
    path.write_text("rate: [unclosed\n")
    assert load_yaml_config(str(path)) == {}
