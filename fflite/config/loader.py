import logging
from pathlib import Path
from typing import Optional
import yaml
from fflite.config.models import AppConfig

DEFAULT_CONFIG_PATH = Path("conf/fflite.yaml")

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Loads AppConfig from YAML; a missing file means defaults."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.debug(f"Config file {path} not found, using defaults")
        return AppConfig()

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    logger.debug(f"Loaded config from {path}")
    return AppConfig(**data)
