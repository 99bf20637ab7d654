"""Tests for config.py and the Hydra bridge — loading, secrets, LLM config."""

from __future__ import annotations

from pathlib import Path

import pytest
from omegaconf import OmegaConf

from latex_report_bot.cli import _to_bot_config
from latex_report_bot.config import (
    _resolve_env_vars,
    build_llm_config,
    load_config,
    require_secrets,
)
from latex_report_bot.errors import StartupConfigError
from latex_report_bot.models import BotConfig, LLMConfig

SAMPLE_CONFIG = Path(__file__).parent / "fixtures" / "sample_config.yaml"


class TestResolveEnvVars:
    def test_string_replacement(self, monkeypatch):
        monkeypatch.setenv("TEST_VAR", "hello")
        assert _resolve_env_vars("${TEST_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch):
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        assert _resolve_env_vars("${NONEXISTENT_VAR}") == ""

    def test_nested(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", "secret")
        assert _resolve_env_vars({"llm": {"api_key": "${MY_KEY}"}, "x": [1]}) == {
            "llm": {"api_key": "secret"}, "x": [1],
        }


class TestLoadConfig:
    def test_load_sample_config(self, monkeypatch):
        monkeypatch.setenv("TEST_TELEGRAM_TOKEN", "123:abc")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        config = load_config(SAMPLE_CONFIG)
        assert config.telegram_token == "123:abc"
        assert config.llm.api_key == "sk-env"
        assert config.retry.max_attempts == 4
        assert config.compiler.timeout == 60
        assert config.compiler.passes == 2
        assert not config.llm.endpoint.endswith("/")

    def test_token_falls_back_to_env(self, monkeypatch):
        monkeypatch.delenv("TEST_TELEGRAM_TOKEN", raising=False)
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "999:zzz")
        config = load_config(SAMPLE_CONFIG)
        assert config.telegram_token == "999:zzz"

    def test_missing_config_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent.yaml")


class TestRequireSecrets:
    def test_both_missing(self):
        with pytest.raises(StartupConfigError) as exc_info:
            require_secrets(BotConfig())
        assert "TELEGRAM_BOT_TOKEN" in str(exc_info.value)
        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_token_missing(self):
        with pytest.raises(StartupConfigError, match="TELEGRAM_BOT_TOKEN"):
            require_secrets(BotConfig(llm={"api_key": "k"}))

    def test_telegram_optional_for_local_runs(self):
        require_secrets(BotConfig(llm={"api_key": "k"}), telegram=False)

    def test_all_present(self):
        require_secrets(BotConfig(telegram_token="t", llm={"api_key": "k"}))


class TestBuildLlmConfig:
    def test_openai_default(self):
        cfg = build_llm_config(LLMConfig(api_key="k"))
        entry = cfg["config_list"][0]
        assert entry == {"model": "gpt-4o-mini", "api_key": "k", "temperature": 0.2, "max_tokens": 2500}
        assert cfg["timeout"] == 120
        assert cfg["cache_seed"] is None

    def test_azure_endpoint(self):
        cfg = build_llm_config(LLMConfig(
            api_key="k", endpoint="https://test.openai.azure.com", api_version="2024-06-01",
        ))
        entry = cfg["config_list"][0]
        assert entry["api_type"] == "azure"
        assert entry["azure_deployment"] == "gpt-4o-mini"
        assert entry["api_version"] == "2024-06-01"

    def test_compatible_endpoint(self):
        cfg = build_llm_config(LLMConfig(api_key="k", endpoint="https://proxy.example.com/v1"))
        entry = cfg["config_list"][0]
        assert "api_type" not in entry
        assert entry["base_url"] == "https://proxy.example.com/v1"


class TestToBotConfig:
    """OmegaConf DictConfig → BotConfig conversion."""

    def _cfg(self, **overrides):
        base = {
            "mode": "run",
            "verbose": False,
            "quiet": False,
            "title": None,
            "description": None,
            "output_dir": "output/",
            "tex_file": None,
            "telegram_token": "",
            "command": "report",
            "scratch_dir": "tmp",
            "error_excerpt_chars": 1000,
            "concurrent_updates": True,
            "drop_pending_updates": False,
            "llm": {"api_key": "", "endpoint": "", "api_version": "", "model": "gpt-4o-mini",
                    "temperature": 0.2, "max_tokens": 2500, "timeout": 120},
            "compiler": {"engine": "pdflatex", "passes": 2, "timeout": 120},
            "retry": {"max_attempts": 3, "delay": 0.0, "backoff": 1.0},
        }
        base.update(overrides)
        return OmegaConf.create(base)

    def test_basic_conversion(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env-token")
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        bc = _to_bot_config(self._cfg(command="proposal"))
        assert isinstance(bc, BotConfig)
        assert bc.command == "proposal"
        assert bc.telegram_token == "env-token"
        assert bc.llm.api_key == "env-key"

    def test_cli_only_fields_stripped(self):
        bc = _to_bot_config(self._cfg(mode="generate", title="x", telegram_token="t"))
        for key in ("mode", "verbose", "title", "tex_file", "output_dir"):
            assert not hasattr(bc, key)
