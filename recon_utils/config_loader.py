#!/usr/bin/env python3
"""
Configuration loader and validator for the object reconstruction engine
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from omegaconf import OmegaConf
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/reconstruction_config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'reconstruction': {
        'timestamp_tolerance': 1.0 / 15.0,
        'mask_threshold': 1,
        'max_samples_per_object': 200_000,
        'seed': None,
    },
    'output': {
        'output_dir': 'output/objects',
        'index_file': 'objects_index.json',
    },
    'logging': {
        'level': 'INFO',
        'log_dir': 'logs',
        'save_to_file': False,
    },
}


class ConfigLoader:
    """Load and validate reconstruction configuration"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)
        self.config = None

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file, filling gaps from the defaults"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        self.config = OmegaConf.merge(
            OmegaConf.create(DEFAULT_CONFIG),
            OmegaConf.create(config_dict)
        )

        self._validate()

        logger.info(f"Loaded configuration from {self.config_path}")
        return OmegaConf.to_container(self.config, resolve=True)

    def _validate(self):
        """Validate configuration parameters"""
        recon = self.config.reconstruction

        if recon.timestamp_tolerance is None or recon.timestamp_tolerance <= 0:
            raise ValueError("reconstruction.timestamp_tolerance must be positive")

        if not 0 <= int(recon.mask_threshold) <= 255:
            raise ValueError("reconstruction.mask_threshold must be within 0..255")

        if recon.max_samples_per_object is None or int(recon.max_samples_per_object) <= 0:
            raise ValueError("reconstruction.max_samples_per_object must be positive")

        if not self.config.output.index_file:
            raise ValueError("output.index_file must be specified")

        if str(self.config.logging.level).upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            raise ValueError(f"Invalid logging level: {self.config.logging.level}")

        logger.debug("Configuration validated successfully")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key"""
        if self.config is None:
            self.load()

        return OmegaConf.select(self.config, key, default=default)

    def save(self, output_path: str):
        """Save configuration to file"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            OmegaConf.save(self.config, f)

        logger.info(f"Saved configuration to {output_path}")


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Convenience function to load configuration

    Passing ``None`` returns the built-in defaults without touching disk.
    """
    if config_path is None:
        return OmegaConf.to_container(OmegaConf.create(DEFAULT_CONFIG), resolve=True)

    loader = ConfigLoader(config_path)
    return loader.load()
