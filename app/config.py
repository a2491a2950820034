"""
Configuration loader
"""
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from app.models import Settings


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


def apply_env_overrides(data: dict) -> dict:
    """
    Overlay environment variables on top of file values

    MONGO_URI, STORAGE_BACKEND, HOST, PORT, LOG_LEVEL
    """
    storage = data.setdefault("storage", {}) or {}
    server = data.setdefault("server", {}) or {}
    data["storage"], data["server"] = storage, server

    if os.getenv("MONGO_URI"):
        storage["mongo_uri"] = os.environ["MONGO_URI"]
    if os.getenv("STORAGE_BACKEND"):
        storage["backend"] = os.environ["STORAGE_BACKEND"]
    if os.getenv("HOST"):
        server["host"] = os.environ["HOST"]
    if os.getenv("PORT"):
        server["port"] = int(os.environ["PORT"])
    if os.getenv("LOG_LEVEL"):
        data["log_level"] = os.environ["LOG_LEVEL"]
    return data


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML file

    Args:
        config_path: Path to config file. Defaults to $REGISTRATION_CONFIG,
                     then config/settings.yaml

    Returns:
        Settings object

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist
    """
    explicit = config_path or os.getenv("REGISTRATION_CONFIG")
    path = Path(explicit or DEFAULT_CONFIG_PATH)

    data = {}
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {path}")
    else:
        logger.info(f"No config file at {path}, using defaults")

    return Settings(**apply_env_overrides(data))
