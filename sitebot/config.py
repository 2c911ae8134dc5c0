import json
import logging
import os
from typing import Dict, Optional, Any

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = "config.json"
CONFIG_ENV_VAR = "SITEBOT_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "data_directory": "output",
    "timeout": 30,
    "max_retries": 3,
    "cache_ttl": 300,
    "inter_source_delay": 0.3,
    "feeds": [],
}

NUMERIC_KEYS = ("timeout", "max_retries", "cache_ttl", "inter_source_delay")


def get_config_path() -> str:
    return os.environ.get(CONFIG_ENV_VAR) or CONFIG_FILE_PATH


def load_config(path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Loads the configuration file and fills in defaults for missing keys."""
    path = path or get_config_path()
    if not os.path.exists(path):
        logger.error(f"Configuration file not found: {path}")
        return None
    try:
        with open(path, 'r') as f:
            config_data = json.load(f)
        logger.info(f"Successfully loaded configuration from {path}")
        if not validate_config(config_data):
            return None
        return {**DEFAULT_CONFIG, **config_data}
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {path}: {e}")
        return None
    except Exception as e:
        logger.error(f"An unexpected error occurred while loading config: {e}")
        return None


def validate_config(config: Dict[str, Any]) -> bool:
    """Validates the structure and content of the configuration."""
    if not isinstance(config, dict):
        logger.error("Configuration must be a dictionary.")
        return False

    feeds = config.get("feeds", [])
    if not isinstance(feeds, list):
        logger.error("'feeds' must be a list of sitemap URLs.")
        return False

    for i, feed in enumerate(feeds):
        if not isinstance(feed, str) or not feed.startswith(("http://", "https://")):
            logger.error(f"Feed at index {i} must be an http(s) URL string, got: {feed!r}")
            return False

    for key in NUMERIC_KEYS:
        if key in config:
            value = config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                logger.error(f"'{key}' must be a non-negative number, got: {value!r}")
                return False

    if "data_directory" in config:
        if not isinstance(config["data_directory"], str) or not config["data_directory"].strip():
            logger.error("'data_directory' must be a non-empty string.")
            return False

    if "user_agent" not in config or not isinstance(config["user_agent"], str) or not config["user_agent"].strip():
        logger.warning("'user_agent' key is missing or not a non-empty string. The default browser user agent will be used.")

    logger.info("Configuration validation successful.")
    return True
