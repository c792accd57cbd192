"""JSON rendering of engine results and LLA snapshots"""

import math
from typing import Any, Dict, List, Optional

from ..detection.engine import BandsParameters, BandsResult
from ..schemas.daa_schemas import AircraftRecord
from ..utils.geo import GeoUtils

SCENARIO_NAME = "<REPL>"

# Significant digits of a double
MAX_PRECISION = 17

# Section name in the published JSON -> BandsResult attribute
BANDS_SECTIONS = (
    ("Ownship", "ownship"),
    ("Alerts", "alerts"),
    ("Metrics", "metrics"),
    ("Heading Bands", "heading_bands"),
    ("Horizontal Speed Bands", "horizontal_speed_bands"),
    ("Vertical Speed Bands", "vertical_speed_bands"),
    ("Altitude Bands", "altitude_bands"),
    ("Horizontal Direction Resolution", "horizontal_direction_resolution"),
    ("Horizontal Speed Resolution", "horizontal_speed_resolution"),
    ("Vertical Speed Resolution", "vertical_speed_resolution"),
    ("Altitude Resolution", "altitude_resolution"),
    ("Contours", "contours"),
    ("Hazard Zones", "hazard_zones"),
    ("Monitors", "monitors"),
)


def round_floats(data: Any, precision: int) -> Any:
    """Round every float in a JSON-like structure; non-finite values become null"""
    if isinstance(data, float):
        if not math.isfinite(data):
            return None
        return round(data, precision)
    if isinstance(data, dict):
        return {key: round_floats(value, precision) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [round_floats(value, precision) for value in data]
    return data


def format_time(time: float, precision: int) -> str:
    return f"{time:.{precision}f}"


def render_bands(result: BandsResult, params: BandsParameters, precision: int,
                 engine_version: str, scenario: str = SCENARIO_NAME) -> Dict[str, Any]:
    """Render a BandsResult as the 'val' of a bands message"""
    rendered: Dict[str, Any] = {
        'Info': {
            'version': engine_version,
            'configuration': params.configuration,
        },
        'Scenario': scenario,
        'Wind': params.wind.to_dict(),
    }
    for section, attribute in BANDS_SECTIONS:
        rendered[section] = list(getattr(result, attribute))
    return round_floats(rendered, precision)


def _lla_entry(record: AircraftRecord) -> Dict[str, Any]:
    lat, lon, alt = GeoUtils.to_lla(record.position)
    return {
        'id': record.name,
        's': {'lat': lat, 'lon': lon, 'alt': alt},
        'v': {'x': record.velocity.vx_kt, 'y': record.velocity.vy_kt, 'z': record.velocity.vs_fpm},
    }


def _daa_row(record: AircraftRecord, time: float) -> Dict[str, Any]:
    lat, lon, alt = GeoUtils.to_lla(record.position)
    return {
        'time': time,
        'name': record.name,
        'lat': lat,
        'lon': lon,
        'alt': alt,
        'vx': record.velocity.vx_kt,
        'vy': record.velocity.vy_kt,
        'vz': record.velocity.vs_fpm,
    }


def render_lla(ownship: AircraftRecord, traffic: List[AircraftRecord], precision: int,
               time: Optional[float] = None, scenario: str = SCENARIO_NAME) -> Dict[str, Any]:
    """Render one time step of ownship and traffic positions in lat/lon/alt"""
    if time is None:
        time = ownship.time
    step = format_time(time, precision)
    rendered = {
        'scenarioName': scenario,
        'length': 1,
        'daa': [_daa_row(record, time) for record in [ownship] + list(traffic)],
        'lla': {
            step: {
                'ownship': _lla_entry(ownship),
                'traffic': [_lla_entry(record) for record in traffic],
            }
        },
        'steps': [step],
    }
    return round_floats(rendered, precision)
