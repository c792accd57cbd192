"""DAA parameter files (key = value [unit]) and in-memory parameter sets"""

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import yaml

from ..errors import ConfigError
from . import units as unit_utils

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r"^\s*([^=\s]+)\s*=\s*(.*?)\s*(?:\[([^\]]*)\])?\s*$")


@dataclass
class ParameterValue:
    """A parameter as text, plus its numeric value in internal units when numeric"""
    text: str
    number: Optional[float] = None
    unit: str = unit_utils.UNSPECIFIED


class DaaParameters:
    """Case-insensitive parameter set, loosely modelled on DAIDALUS ParameterData"""

    def __init__(self, values: Optional[Dict[str, ParameterValue]] = None):
        self._values: Dict[str, ParameterValue] = {}
        self._keys: Dict[str, str] = {}
        for key, value in (values or {}).items():
            self._put(key, value)

    def _put(self, key: str, value: ParameterValue):
        self._keys[key.lower()] = key
        self._values[key.lower()] = value

    def set(self, key: str, value: Any, unit: Optional[str] = None):
        """Store a value; numbers are converted from unit into internal units"""
        if isinstance(value, bool):
            self._put(key, ParameterValue(text=str(value).lower()))
        elif isinstance(value, (int, float)):
            unit = unit_utils.normalize_unit(unit) if unit else unit_utils.UNSPECIFIED
            number = float(value)
            if unit_utils.is_known(unit):
                number = unit_utils.to_internal(number, unit)
            self._put(key, ParameterValue(text=str(value), number=number, unit=unit))
        else:
            text = str(value)
            self._put(key, ParameterValue(text=text, number=_to_float(text),
                                          unit=unit_utils.normalize_unit(unit) if unit else unit_utils.UNSPECIFIED))

    def contains(self, key: str) -> bool:
        return key.lower() in self._values

    def get(self, key: str) -> Optional[ParameterValue]:
        return self._values.get(key.lower())

    def get_value(self, key: str, default: float = float('nan')) -> float:
        entry = self.get(key)
        if entry is None or entry.number is None:
            return default
        return entry.number

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get_value(key)
        return int(value) if math.isfinite(value) else default

    def get_string(self, key: str, default: str = "") -> str:
        entry = self.get(key)
        return entry.text if entry is not None else default

    def get_bool(self, key: str, default: bool = False) -> bool:
        entry = self.get(key)
        if entry is None:
            return default
        return entry.text.strip().lower() == "true"

    def update(self, other: "DaaParameters"):
        for key in other:
            self._put(key, other.get(key))

    def to_dict(self) -> Dict[str, Union[float, str]]:
        return {self._keys[k]: (v.number if v.number is not None else v.text)
                for k, v in self._values.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys[k] for k in self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DaaParameters({self.to_dict()})"


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def parse_daa_parameters(text: str, source: str = "<string>") -> DaaParameters:
    """Parse the DAIDALUS text format: one 'key = value [unit]' per line, '#' comments"""
    params = DaaParameters()
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.split("#", 1)[0].strip()
        if not stripped:
            continue
        match = _LINE_PATTERN.match(stripped)
        if not match:
            raise ConfigError(f"{source}:{number}: expected 'key = value [unit]', got '{stripped}'")
        key, value, unit = match.group(1), match.group(2), match.group(3)
        number_value = _to_float(value)
        if number_value is not None:
            params.set(key, number_value, unit)
        else:
            params.set(key, value, unit)
    return params


def load_daa_parameters(path: Union[str, Path]) -> DaaParameters:
    """
    Load a DAA configuration file.

    YAML files (.yaml/.yml) must contain a flat mapping; any other extension
    is read as the DAIDALUS text format. Raises ConfigError when the file is
    missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (OSError, ValueError) as e:
        raise ConfigError(f"Unable to read configuration file {path}: {e}")

    if path.suffix.lower() in ('.yaml', '.yml'):
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        params = DaaParameters()
        for key, value in data.items():
            if isinstance(value, dict):
                params.set(str(key), value.get('value'), value.get('unit'))
            else:
                params.set(str(key), value)
    else:
        params = parse_daa_parameters(content, source=str(path))

    logger.info(f"Loaded {len(params)} parameters from {path}")
    return params
