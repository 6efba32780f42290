"""
Configuration loading utilities for the formflow wizard.

This module loads application configuration from config.yaml and merges it
over built-in defaults, falling back to the defaults when the file is
missing or unreadable.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")

# Global configuration cache
_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Formflow Onboarding',
            'version': '1.0.0',
            'debug': False
        },
        'logging': {
            'level': 'INFO'
        },
        'schema': {
            'directory': 'schemas',
            'fallback_industry': 'default'
        },
        'wizard': {
            'default_industry': 'automotive',
            'strict_working_hours': False,
            'currency': 'TRY',
            'language': 'tr'
        },
        'ui': {
            'page_title': 'Sesli Asistan Kurulumu',
            'page_icon': '🎙️'
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    if config_path is None:
        config_path = CONFIG_FILE

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config


def get_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the cached configuration, loading it on first use."""
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config(config_path)
    return _config_cache


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Read a single configuration value.

    Args:
        section: Top-level section name
        key: Key inside the section
        default: Value returned when the section or key is missing
    """
    section_values = get_config().get(section)
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and required fields.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ['app', 'logging', 'schema', 'wizard', 'ui']

    for section in required_sections:
        if not isinstance(config.get(section), dict):
            logger.warning(f"Missing required configuration section: {section}")
            return False

    app = config['app']
    if 'name' not in app or 'version' not in app:
        logger.warning("Missing required app configuration (name or version)")
        return False

    level = config['logging'].get('level', 'INFO')
    if not isinstance(level, str) or level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        logger.warning(f"Invalid logging level: {level}")
        return False

    if not isinstance(config['schema'].get('directory'), str):
        logger.warning("schema.directory must be a string")
        return False

    if not isinstance(config['wizard'].get('strict_working_hours', False), bool):
        logger.warning("wizard.strict_working_hours must be true or false")
        return False

    return True
