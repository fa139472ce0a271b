"""
Configuration management for the graph editor.

Settings come from the environment first (a .env file is loaded by the app
with python-dotenv), then from config.json next to the project root:

- OPENAI_API_KEY      / openai_api_key   key for the AI graph generator
- GRAPHAI_MODEL       / model            chat model name
- GRAPHAI_TEMPERATURE / temperature      sampling temperature
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import openai
from openai import OpenAI

from graphai.generation import DEFAULT_MODEL, DEFAULT_TEMPERATURE
from graphai.paths import get_config_path

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_api_key(config_path: Optional[Path] = None) -> Optional[str]:
    """
    Get the OpenAI API key.

    Priority:
    1. Environment variable OPENAI_API_KEY
    2. Stored in config.json
    """
    env_key = os.environ.get("OPENAI_API_KEY")
    if env_key:
        return env_key
    return load_config(config_path).get("openai_api_key")


def set_api_key(api_key: str, config_path: Optional[Path] = None) -> None:
    """Save the OpenAI API key to config.json and the current environment."""
    config = load_config(config_path)
    config["openai_api_key"] = api_key
    save_config(config, config_path)
    os.environ["OPENAI_API_KEY"] = api_key


def get_model(config_path: Optional[Path] = None) -> str:
    return os.environ.get("GRAPHAI_MODEL") or load_config(config_path).get("model") or DEFAULT_MODEL


def get_temperature(config_path: Optional[Path] = None) -> float:
    raw = os.environ.get("GRAPHAI_TEMPERATURE")
    if raw is None:
        raw = load_config(config_path).get("temperature", DEFAULT_TEMPERATURE)
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid temperature {raw!r}, using {DEFAULT_TEMPERATURE}")
        return DEFAULT_TEMPERATURE


def validate_api_key(api_key: str) -> tuple[bool, str]:
    """
    Check an OpenAI API key against the models endpoint (costs no tokens).

    Returns:
        (is_valid, message) tuple
    """
    if not api_key:
        return False, "API key is empty"
    if not api_key.startswith("sk-"):
        return False, "API key should start with 'sk-'"

    try:
        models = OpenAI(api_key=api_key).models.list()
    except openai.AuthenticationError:
        return False, "Invalid API key"
    except openai.RateLimitError:
        return False, "Rate limited - but key appears valid"
    except openai.OpenAIError as e:
        logger.warning(f"API key validation failed: {e}")
        return False, f"Validation error: {e}"
    return True, f"API key is valid. Access to {len(list(models))} models."
