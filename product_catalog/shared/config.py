"""
YAML configuration loading shared by the server and the player CLI.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file; a missing file means defaults."""
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return {}

    with open(config_file) as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def setup_logging(config: dict):
    logging.basicConfig(
        level=getattr(logging, config.get("logging", {}).get("level", "INFO").upper()),
        format=LOG_FORMAT,
    )
