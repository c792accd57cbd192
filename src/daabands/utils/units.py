"""Unit conversion for state tables and DAA parameter files"""

import math
from typing import Dict, Optional, Tuple

# unit -> (dimension, factor to SI)
_UNITS: Dict[str, Tuple[str, float]] = {
    # angle
    'deg': ('angle', math.pi / 180.0),
    'degree': ('angle', math.pi / 180.0),
    'degrees': ('angle', math.pi / 180.0),
    'rad': ('angle', 1.0),
    # length
    'm': ('length', 1.0),
    'km': ('length', 1000.0),
    'ft': ('length', 0.3048),
    'nmi': ('length', 1852.0),
    'nm': ('length', 1852.0),
    'mi': ('length', 1609.344),
    # speed
    'm/s': ('speed', 1.0),
    'mps': ('speed', 1.0),
    'knot': ('speed', 1852.0 / 3600.0),
    'knots': ('speed', 1852.0 / 3600.0),
    'kn': ('speed', 1852.0 / 3600.0),
    'kts': ('speed', 1852.0 / 3600.0),
    'kt': ('speed', 1852.0 / 3600.0),
    'fpm': ('speed', 0.3048 / 60.0),
    'ft/min': ('speed', 0.3048 / 60.0),
    'km/h': ('speed', 1000.0 / 3600.0),
    'kph': ('speed', 1000.0 / 3600.0),
    'mph': ('speed', 1609.344 / 3600.0),
    # time
    's': ('time', 1.0),
    'sec': ('time', 1.0),
    'ms': ('time', 0.001),
    'min': ('time', 60.0),
    'h': ('time', 3600.0),
    'hr': ('time', 3600.0),
}

# Internal unit for each dimension
INTERNAL_UNITS = {
    'angle': 'deg',
    'length': 'ft',
    'speed': 'knot',
    'time': 's',
}

UNSPECIFIED = 'unspecified'
UNITLESS = 'unitless'


def normalize_unit(token: Optional[str]) -> str:
    """Normalize a unit token from a units line, e.g. '[deg]' -> 'deg', '-' -> 'unspecified'"""
    if token is None:
        return UNITLESS
    unit = token.strip().strip('[]').strip()
    if unit in ('', '-', 'none'):
        return UNSPECIFIED
    return unit


def is_known(unit: str) -> bool:
    return unit.lower() in _UNITS


def dimension(unit: str) -> Optional[str]:
    entry = _UNITS.get(unit.lower())
    return entry[0] if entry else None


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert value between two units of the same dimension.

    Unknown or unspecified source units leave the value untouched, the value
    is then assumed to be expressed in to_unit already.
    """
    source = _UNITS.get(from_unit.lower()) if from_unit else None
    target = _UNITS.get(to_unit.lower())
    if source is None or target is None:
        return value
    if source[0] != target[0]:
        raise ValueError(f"Incompatible units: {from_unit} -> {to_unit}")
    return value * source[1] / target[1]


def to_internal(value: float, unit: str) -> float:
    """Convert value into the internal unit of its dimension (deg, ft, knot, s)"""
    dim = dimension(unit) if unit else None
    if dim is None:
        return value
    return convert(value, unit, INTERNAL_UNITS[dim])
