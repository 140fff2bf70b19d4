import copy
import os
import logging

import yaml

from notesync.constants import CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")

# Environment variables that win over the YAML file
ENV_OVERRIDES = {
    "DATABASE_URL": ("database", "uri"),
    "JWT_SECRET": ("auth", "jwt_secret"),
    "JWT_REFRESH_SECRET": ("auth", "jwt_refresh_secret"),
    "REMINDER_INTERVAL_SECONDS": ("reminders", "interval_seconds"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "SOCKETIO_MESSAGE_QUEUE": ("realtime", "message_queue"),
}

# Cache variable
_cached_settings = None


def _merge_settings(defaults, overrides):
    merged = copy.deepcopy(defaults)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def _apply_env_overrides(settings):
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        if key == "interval_seconds":
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"Ignoring non-integer {env_name}={value!r}")
                continue
        settings.setdefault(section, {})[key] = value
    return settings


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force and config_file is None:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            file_settings = yaml.safe_load(yaml_file) or {}
        settings = _merge_settings(DEFAULT_SETTINGS, file_settings)
    else:
        logger.debug(f"Configuration file {config_file} not found, using defaults")
        settings = copy.deepcopy(DEFAULT_SETTINGS)

    settings = _apply_env_overrides(settings)
    _cached_settings = settings
    return settings


def save_settings(settings, config_file=None):
    config_file = config_file or CONFIG_FILE
    os.makedirs(os.path.dirname(config_file), exist_ok=True)
    with open(config_file, "w") as yaml_file:
        yaml.dump(settings, yaml_file)
    reload_conf()


def reload_conf():
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True)
