"""Mutable session state of the REPL"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ConfigError
from ..pipeline.rendering import MAX_PRECISION
from ..schemas.daa_schemas import DEFAULT_LABELS, DEFAULT_UNITS, FIELD_ALIASES, CanonicalField, Wind
from ..utils.config import DEFAULT_CONFIG_FILE, Config

logger = logging.getLogger(__name__)


def index_of_time(labels: str) -> int:
    """0-based index of the time column in a labels line, -1 when absent"""
    columns = [label.strip().lower() for label in labels.split(",")]
    for alias in FIELD_ALIASES[CanonicalField.TIME]:
        if alias in columns:
            return columns.index(alias)
    return -1


@dataclass
class SessionState:
    """
    Everything the operator has set during the session.

    Only the command dispatcher writes to it. Computations read a snapshot
    produced by to_daa() and never mutate the session themselves.
    """
    labels: str = DEFAULT_LABELS
    units: str = DEFAULT_UNITS
    time_column: int = 7
    ownship_name: Optional[str] = None
    ownship_line: Optional[str] = None
    traffic: Dict[str, str] = field(default_factory=dict)
    stale_threshold: float = 10.0
    config_folder: Path = field(default_factory=lambda: Path.cwd() / "daa-config" / "2.x")
    config_file: str = DEFAULT_CONFIG_FILE
    config_loaded: bool = False
    precision: int = 10
    wind: Wind = field(default_factory=Wind)
    server_address: str = "localhost"
    server_port: int = 8083
    connect_timeout: float = 5.0

    @classmethod
    def from_config(cls, config: Config) -> "SessionState":
        wind = config.repl.get('wind') or {}
        precision = int(config.repl['precision'])
        if not 0 <= precision <= MAX_PRECISION:
            raise ConfigError(f"precision must be between 0 and {MAX_PRECISION}, got {precision}")
        session = cls(
            labels=config.repl['labels'],
            units=config.repl['units'],
            ownship_name=config.repl.get('ownship_name') or None,
            stale_threshold=float(config.repl['stale_threshold']),
            config_folder=Path(config.daa['config_folder']).absolute(),
            config_file=config.daa['config_file'],
            precision=precision,
            wind=Wind(float(wind.get('deg', 0.0)), float(wind.get('knot', 0.0))),
            server_address=config.daa_server['host'],
            server_port=int(config.daa_server['port']),
            connect_timeout=float(config.daa_server['connect_timeout']),
        )
        session.time_column = index_of_time(session.labels)
        return session

    @property
    def config_path(self) -> Path:
        return (self.config_folder / self.config_file).absolute()

    def set_config_folder(self, folder: str):
        self.config_folder = Path(folder).absolute()
        self.config_loaded = False
        logger.info(f"Setting config folder: {self.config_folder}")

    def set_config_file(self, file_name: str):
        self.config_file = file_name
        self.config_loaded = False
        logger.info(f"Setting config file: {self.config_path}")

    def set_labels(self, labels: str):
        self.labels = labels
        self.time_column = index_of_time(labels)

    def time_label(self) -> str:
        """Name of the time column, used to compare staleness against the ownship"""
        if self.time_column < 0:
            return "<none, all times 0>"
        return self.labels.split(",")[self.time_column].strip()

    def set_traffic(self, line: str) -> str:
        """Store one traffic line keyed by its first field; returns the key"""
        name = line.split(",", 1)[0].strip()
        self.traffic[name] = line
        return name

    def reset(self):
        """Forget ownship and traffic information, keep labels, units and settings"""
        self.ownship_line = None
        self.ownship_name = None
        self.traffic = {}
        logger.info("Resetting ownship and traffic information")

    def data_lines(self) -> List[str]:
        lines = []
        if self.ownship_line:
            lines.append(self.ownship_line)
        lines.extend(self.traffic.values())
        return lines

    def to_daa(self) -> str:
        """Reconstruct the table: labels, units, ownship line, traffic lines"""
        return "\n".join([self.labels, self.units] + self.data_lines()) + "\n"

    def settings(self) -> Dict[str, str]:
        return {
            'config folder': str(self.config_folder),
            'config file': self.config_file,
            'ownship name': self.ownship_name or '<first aircraft>',
            'stale threshold': f"{self.stale_threshold} s",
            'time column': self.time_label(),
            'precision': str(self.precision),
            'wind': f"{{ deg: {self.wind.deg}, knot: {self.wind.knot} }}",
            'DAA server': f"{self.server_address}:{self.server_port}",
        }
