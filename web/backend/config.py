#!/usr/bin/env python3
"""
Configuration management for the dispatch web application.
"""

import os
from pathlib import Path
from functools import lru_cache

from core.config_loader import AppConfig, load_config


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply web server environment variable overrides (WEB_HOST, WEB_PORT)."""
    if 'WEB_HOST' in os.environ:
        config.web.host = os.environ['WEB_HOST']

    if 'WEB_PORT' in os.environ:
        config.web.port = int(os.environ['WEB_PORT'])

    return config


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    Loads from ``CONFIG_PATH`` (default: config.yaml at the project root)
    and applies environment variable overrides.
    """
    config_path = os.environ.get('CONFIG_PATH', str(get_project_root() / 'config.yaml'))
    return _apply_env_overrides(load_config(config_path))


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent
