#!/usr/bin/env python3
"""
Configuration management for PhraseCoach.
Handles API keys, practice preferences, and the local data directory.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, List


DEFAULTS: Dict[str, Any] = {
    'selection_policy': 'first',   # first|random
    'log_level': 'WARNING',
    'db_path': None,               # None -> <config dir>/phrasecoach.db
}


def get_config_dir() -> Path:
    """Get the PhraseCoach config directory (~/.phrasecoach or $PHRASECOACH_HOME)"""
    override = os.getenv('PHRASECOACH_HOME')
    config_dir = Path(override) if override else Path.home() / '.phrasecoach'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the config file path"""
    return get_config_dir() / 'config.json'


def load_config() -> Dict[str, Any]:
    """Load configuration from file"""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to file"""
    config_path = get_config_path()
    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)
    # API keys live here
    config_path.chmod(0o600)


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a specific config value, falling back to the built-in defaults"""
    config = load_config()
    if key in config:
        return config[key]
    if default is None:
        return DEFAULTS.get(key)
    return default


def set_config_value(key: str, value: Any) -> None:
    """Set a specific config value"""
    config = load_config()
    config[key] = value
    save_config(config)


def get_db_path() -> str:
    """Path of the expression database"""
    return get_config_value('db_path') or str(get_config_dir() / 'phrasecoach.db')


def save_api_key(provider: str, api_key: str) -> None:
    """Store a provider key and make that provider the preferred one"""
    from .llm import PROVIDERS

    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider: {provider}")
    api_key = (api_key or '').strip()
    if not api_key:
        raise ValueError("API key cannot be empty")

    config = load_config()
    config[PROVIDERS[provider]['config_key']] = api_key
    config['preferred_provider'] = provider
    save_config(config)


def clear_api_keys(provider: str = None) -> List[str]:
    """Remove stored API key(s); returns the providers whose keys were removed"""
    from .llm import PROVIDERS

    config = load_config()
    targets = [provider] if provider else list(PROVIDERS)
    removed = [p for p in targets if p in PROVIDERS and config.pop(PROVIDERS[p]['config_key'], None)]

    if removed:
        if config.get('preferred_provider') in removed:
            del config['preferred_provider']
        save_config(config)
    return removed
