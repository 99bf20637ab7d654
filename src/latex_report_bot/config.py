"""Configuration loader, secret checks, and LLM config builder.

Reads bot settings from a YAML config file with ``${ENV_VAR}`` interpolation.
Secrets left empty fall back to ``TELEGRAM_BOT_TOKEN`` / ``OPENAI_API_KEY``
(a ``.env`` file in the working directory is loaded first).
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import StartupConfigError
from .models import BotConfig, LLMConfig

load_dotenv()

TELEGRAM_TOKEN_ENV = "TELEGRAM_BOT_TOKEN"
OPENAI_KEY_ENV = "OPENAI_API_KEY"

# ---------------------------------------------------------------------------
# YAML loading with ${ENV_VAR} interpolation
# ---------------------------------------------------------------------------

_ENV_RE = re.compile(r"\$\{([^}]+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${ENV_VAR}`` references in strings."""
    if isinstance(value, str):
        def _replace(m: re.Match) -> str:
            return os.environ.get(m.group(1), "")
        return _ENV_RE.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def apply_env_fallbacks(config: BotConfig) -> BotConfig:
    """Fill empty secrets from environment variables and normalise the endpoint."""
    if not config.telegram_token:
        config.telegram_token = os.getenv(TELEGRAM_TOKEN_ENV, "")
    if not config.llm.api_key:
        config.llm.api_key = os.getenv(OPENAI_KEY_ENV, "")
    config.llm.endpoint = config.llm.endpoint.rstrip("/")
    return config


def load_config(config_path: str | Path) -> BotConfig:
    """Load a ``BotConfig`` from a YAML file.

    Environment variables referenced as ``${VAR_NAME}`` are resolved.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    resolved = _resolve_env_vars(raw)
    config = BotConfig.model_validate(resolved)
    return apply_env_fallbacks(config)


def require_secrets(config: BotConfig, *, telegram: bool = True) -> None:
    """Raise ``StartupConfigError`` if a required secret is empty.

    ``telegram=False`` skips the bot token, for local generation runs.
    """
    missing: list[str] = []
    if telegram and not config.telegram_token:
        missing.append(TELEGRAM_TOKEN_ENV)
    if not config.llm.api_key:
        missing.append(OPENAI_KEY_ENV)
    if missing:
        raise StartupConfigError(f"Set {' and '.join(missing)} in the environment or .env")


# ---------------------------------------------------------------------------
# LLM config builder
# ---------------------------------------------------------------------------

def _is_azure_openai_endpoint(endpoint: str) -> bool:
    """Return True for Azure OpenAI endpoints."""
    lower = endpoint.lower()
    return "openai.azure.com" in lower or "cognitiveservices.azure.com" in lower


def _build_single_entry(llm: LLMConfig) -> dict[str, Any]:
    """Build the AG2 config_list entry for the configured model.

    Azure OpenAI endpoints use deployment-based routing; any other endpoint
    is treated as OpenAI-compatible via ``base_url``. With no endpoint the
    entry targets api.openai.com.
    """
    entry: dict[str, Any] = {
        "model": llm.model,
        "api_key": llm.api_key,
        "temperature": llm.temperature,
        "max_tokens": llm.max_tokens,
    }
    endpoint = llm.endpoint
    if endpoint and _is_azure_openai_endpoint(endpoint):
        entry.update({
            "api_type": "azure",
            "azure_endpoint": endpoint,
            "api_version": llm.api_version,
            "azure_deployment": llm.model,
        })
    elif endpoint:
        entry["base_url"] = endpoint
    return entry


def build_llm_config(llm: LLMConfig) -> dict[str, Any]:
    """Return an AG2-compatible ``llm_config`` dict for the LaTeX writer."""
    return {
        "config_list": [_build_single_entry(llm)],
        "timeout": llm.timeout,
        # No disk cache: every retry must reach the service.
        "cache_seed": None,
    }
