import os
from pathlib import Path
from typing import Optional

import yaml

POST_INLINE_CHOICES = ("high", "mid", "low", "none")
MODEL_CHOICES = ("anthropic", "openai")

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "llm_model": None,  # None = the provider's default model
    "llm_base_url": None,  # OpenAI-compatible endpoint override
    "llm_timeout_seconds": None,
    "upsource_url": None,
    "upsource_query": "state: open",
    "reviewed_label": "ai-reviewed",
    "post_inline": "high",  # lowest severity that gets an inline anchor: high, mid, low, none
    "max_comments_per_review": 10,
    "poll_interval_seconds": 300,
    "max_chars_per_diff": 100000,
    "guidelines": None,  # None = use built-in default; set to a path string to override
}

BUILTIN_GUIDELINES_DIR = Path(__file__).parent / "guidelines"
_BUILTIN_DEFAULT = BUILTIN_GUIDELINES_DIR / "default.md"


class ConfigError(ValueError):
    """A required setting is missing or has an invalid value."""


def load_config(config_path: str = ".upreview.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .upreview.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Credentials never live in the YAML file.
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["upsource_username"] = os.environ.get("UPSOURCE_USERNAME")
    config["upsource_password"] = os.environ.get("UPSOURCE_PASSWORD")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def _positive_int(config: dict, key: str) -> None:
    value = config.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigError(f"{key} must be a positive integer, got {value!r}")


def validate_config(config: dict) -> None:
    """Raise ConfigError for the first missing or invalid setting."""
    for key in ("upsource_url", "upsource_query", "reviewed_label"):
        if not config.get(key):
            raise ConfigError(f"{key} is required")
    if not config.get("upsource_username") or not config.get("upsource_password"):
        raise ConfigError("UPSOURCE_USERNAME and UPSOURCE_PASSWORD environment variables are required")
    if not config.get("github_token"):
        raise ConfigError("GITHUB_TOKEN is not set and no gh CLI session was found")

    model = config.get("model")
    if model not in MODEL_CHOICES:
        raise ConfigError(f"model must be one of: {', '.join(MODEL_CHOICES)}")
    if not config.get(f"{model}_api_key"):
        raise ConfigError(f"{model.upper()}_API_KEY environment variable is not set")

    if config.get("post_inline") not in POST_INLINE_CHOICES:
        raise ConfigError(f"post_inline must be one of: {', '.join(POST_INLINE_CHOICES)}")

    for key in ("max_comments_per_review", "poll_interval_seconds", "max_chars_per_diff"):
        _positive_int(config, key)


def load_guidelines(config: dict) -> str:
    """
    Load review guidelines.

    If ``guidelines`` is set in config, loads from that path (relative to cwd).
    Otherwise falls back to the built-in default.
    """
    custom_path = config.get("guidelines")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Guidelines file not found: {custom_path}")
        return p.read_text()

    if _BUILTIN_DEFAULT.exists():
        return _BUILTIN_DEFAULT.read_text()

    raise FileNotFoundError("No guidelines configured and built-in default is missing.")
