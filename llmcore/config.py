"""Backend configuration loaded from backends.yml and the environment."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from llmcore.adapters.chat_adapter import ChatCompletionsAdapter
from llmcore.adapters.ollama_adapter import OllamaAdapter

logger = logging.getLogger(__name__)

BACKEND_ENV_VAR = "TAJNIACY_BACKEND"


def _get_inputs_path() -> Path:
    """Get path to llmcore/inputs directory."""
    return Path(__file__).parent / "inputs"


def load_backend_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load backend definitions from YAML configuration file."""
    if config_file is None:
        config_file = _get_inputs_path() / "backends.yml"

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(f"Backend config file not found: {config_file}")
        raise

    if not isinstance(data.get("backends"), dict):
        raise ValueError(f"Backend config {config_file} has no 'backends' mapping")
    return data


def list_backends(config: Optional[Dict[str, Any]] = None) -> List[str]:
    config = config or load_backend_config()
    return list(config["backends"].keys())


def resolve_backend(name: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Resolve a backend name to its settings.

    Lookup order: explicit name > TAJNIACY_BACKEND > default_backend.
    """
    config = config or load_backend_config()
    name = name or os.getenv(BACKEND_ENV_VAR) or config.get("default_backend")
    if not name:
        raise ValueError("No backend name given and no default_backend configured")

    backends = config["backends"]
    if name not in backends:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(backends)}")

    settings = dict(backends[name])
    settings["name"] = name
    return settings


def get_api_key(env_var: str) -> str:
    """Get an API key from the environment."""
    api_key = os.getenv(env_var)
    if not api_key:
        raise ValueError(f"{env_var} environment variable not set")
    return api_key


def build_generator(name: Optional[str] = None, config_file: Optional[Path] = None):
    """Construct the Generator described by a backend entry."""
    config = load_backend_config(config_file)
    settings = resolve_backend(name, config)
    backend_type = settings.get("type", "chat")

    if backend_type == "chat":
        return ChatCompletionsAdapter(
            api_key=get_api_key(settings["api_key_env"]),
            endpoint=settings["endpoint"],
            model=settings["model"],
            timeout=settings.get("timeout", 120),
            extra_headers=settings.get("headers"),
        )
    if backend_type == "ollama":
        return OllamaAdapter(
            endpoint=settings["endpoint"],
            model=settings["model"],
            timeout=settings.get("timeout", 600),
        )
    raise ValueError(f"Backend '{settings['name']}' has unsupported type '{backend_type}'")
