"""Configuration management utilities"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from ..errors import ConfigError
from ..schemas.daa_schemas import DEFAULT_LABELS, DEFAULT_UNITS


DEFAULT_CONFIG_FILE = "DANTi_SL3.conf"


@dataclass
class Config:
    """REPL settings"""

    repl: Dict[str, Any] = None
    daa: Dict[str, Any] = None
    daa_server: Dict[str, Any] = None

    def __post_init__(self):
        """Set defaults"""
        repl_defaults = {
            'labels': DEFAULT_LABELS,
            'units': DEFAULT_UNITS,
            'stale_threshold': 10.0,
            'precision': 10,
            'ownship_name': None,
            'wind': {'deg': 0.0, 'knot': 0.0},
        }
        self.repl = {**repl_defaults, **(self.repl or {})}

        daa_defaults = {
            'config_folder': str(Path.cwd() / "daa-config" / "2.x"),
            'config_file': DEFAULT_CONFIG_FILE,
        }
        self.daa = {**daa_defaults, **(self.daa or {})}

        server_defaults = {
            'host': 'localhost',
            'port': 8083,
            'connect_timeout': 5.0,
        }
        self.daa_server = {**server_defaults, **(self.daa_server or {})}

    @classmethod
    def load(cls, config_path: Optional[Path] = None):
        """Load configuration from file"""
        if config_path and config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
                return cls(**config_data)
            except (OSError, yaml.YAMLError, TypeError) as e:
                raise ConfigError(f"Invalid settings file {config_path}: {e}")
        return cls()
