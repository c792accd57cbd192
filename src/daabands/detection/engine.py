"""Detect-and-avoid engine interface and a proximity-based reference engine"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..schemas.daa_schemas import AircraftRecord, Wind
from ..utils.daa_config import DaaParameters
from ..utils.geo import FT_PER_NM, GeoUtils

logger = logging.getLogger(__name__)

UNCERTAINTY_COLUMNS = ('s_EW_std', 's_NS_std', 's_EN_std', 'sz_std',
                       'v_EW_std', 'v_NS_std', 'v_EN_std', 'vz_std')

ALERT_REGIONS = {0: "NONE", 1: "FAR", 2: "MID", 3: "NEAR"}


@dataclass
class AircraftParameters:
    """Per-aircraft settings taken from the extra columns of a daa table"""
    alerter_index: Optional[int] = None
    s_EW_std: float = 0.0
    s_NS_std: float = 0.0
    s_EN_std: float = 0.0
    sz_std: float = 0.0
    v_EW_std: float = 0.0
    v_NS_std: float = 0.0
    v_EN_std: float = 0.0
    vz_std: float = 0.0
    extra: DaaParameters = field(default_factory=DaaParameters)


@dataclass
class EngineAircraft:
    """Aircraft state handed to the engine"""
    record: AircraftRecord
    params: AircraftParameters = field(default_factory=AircraftParameters)

    @property
    def name(self) -> str:
        return self.record.name


@dataclass
class BandsParameters:
    """Global inputs of one engine call"""
    daa: DaaParameters = field(default_factory=DaaParameters)
    wind: Wind = field(default_factory=Wind)
    configuration: str = ""


@dataclass
class BandsResult:
    """Engine output, one list per published section"""
    time: float = 0.0
    ownship: List[Dict[str, Any]] = field(default_factory=list)
    alerts: List[Dict[str, Any]] = field(default_factory=list)
    metrics: List[Dict[str, Any]] = field(default_factory=list)
    heading_bands: List[Dict[str, Any]] = field(default_factory=list)
    horizontal_speed_bands: List[Dict[str, Any]] = field(default_factory=list)
    vertical_speed_bands: List[Dict[str, Any]] = field(default_factory=list)
    altitude_bands: List[Dict[str, Any]] = field(default_factory=list)
    horizontal_direction_resolution: List[Dict[str, Any]] = field(default_factory=list)
    horizontal_speed_resolution: List[Dict[str, Any]] = field(default_factory=list)
    vertical_speed_resolution: List[Dict[str, Any]] = field(default_factory=list)
    altitude_resolution: List[Dict[str, Any]] = field(default_factory=list)
    contours: List[Dict[str, Any]] = field(default_factory=list)
    hazard_zones: List[Dict[str, Any]] = field(default_factory=list)
    monitors: List[Dict[str, Any]] = field(default_factory=list)


class BandsEngine(ABC):
    """Opaque detect-and-avoid computation"""

    @abstractmethod
    def compute_bands(self, ownship: EngineAircraft, traffic: List[EngineAircraft],
                      params: BandsParameters) -> BandsResult:
        ...

    def version(self) -> str:
        return "unknown"


def horizontal_airspeed(record: AircraftRecord, wind: Wind) -> float:
    """
    Airspeed magnitude in knots from the horizontal velocity components.

    The vertical speed is not part of this magnitude.
    """
    wind_rad = math.radians(wind.deg)
    wind_vector = np.array([wind.knot * math.sin(wind_rad), wind.knot * math.cos(wind_rad)])
    ground = np.array([record.velocity.vx_kt, record.velocity.vy_kt])
    return float(np.linalg.norm(ground - wind_vector))


class ProximityBandsEngine(BandsEngine):
    """
    Reference engine based on straight-line projection to the closest point of approach.

    Produces Ownship, Alerts and Metrics sections. Band intervals, resolutions,
    contours and hazard zones are left empty.
    """

    VERSION = "proximity-1.0"

    # Defaults used when the configuration does not define a parameter (internal units)
    DEFAULTS = {
        'lookahead_time': 180.0,       # s
        'alerting_time': 55.0,         # s
        'early_alerting_time': 75.0,   # s
        'DTHR': 4000.0,                # ft
        'ZTHR': 450.0,                 # ft
        'alerter': 1,
    }

    def version(self) -> str:
        return self.VERSION

    def _param(self, params: BandsParameters, key: str) -> float:
        return params.daa.get_value(key, self.DEFAULTS[key])

    def compute_bands(self, ownship: EngineAircraft, traffic: List[EngineAircraft],
                      params: BandsParameters) -> BandsResult:
        own = ownship.record
        result = BandsResult(time=own.time)

        result.ownship.append({
            'time': own.time,
            'acstate': self._acstate(own, params.wind),
        })

        lookahead = self._param(params, 'lookahead_time')
        alerts = []
        metrics = []
        for intruder in traffic:
            assessment = self._assess_pair(ownship, intruder, params, lookahead)
            alerts.append({
                'ac': intruder.name,
                'alert_level': assessment['alert_level'],
                'alerter': assessment['alerter'],
                'region': ALERT_REGIONS[assessment['alert_level']],
            })
            metrics.append({
                'ac': intruder.name,
                'separation': {
                    'horizontal': {'val': assessment['distance_nm'], 'units': 'NM'},
                    'vertical': {'val': assessment['vertical_ft'], 'units': 'ft'},
                },
                'tcpa': {'val': assessment['tcpa'], 'units': 's'},
                'hmd': {'val': assessment['hmd_nm'], 'units': 'NM'},
                'vmd': {'val': assessment['vmd_ft'], 'units': 'ft'},
                'range': {'val': assessment['range_nm'], 'units': 'NM'},
                'bearing': {'val': assessment['bearing_deg'], 'units': 'deg'},
            })
            logger.debug(f"{intruder.name}: alert level {assessment['alert_level']}, "
                         f"tcpa {assessment['tcpa']:.1f}s, hmd {assessment['hmd_nm']:.2f}NM")

        result.alerts.append({'time': own.time, 'alerts': alerts})
        result.metrics.append({'time': own.time, 'metrics': metrics})
        return result

    def _acstate(self, record: AircraftRecord, wind: Wind) -> Dict[str, Any]:
        lat, lon, alt = GeoUtils.to_lla(record.position)
        return {
            'id': record.name,
            's': {'lat': lat, 'lon': lon, 'alt': alt},
            'v': {'x': record.velocity.vx_kt, 'y': record.velocity.vy_kt, 'z': record.velocity.vs_fpm},
            'heading': {'val': record.velocity.trk, 'units': 'deg'},
            'groundspeed': {'val': record.velocity.gs, 'units': 'knot'},
            'airspeed': {'val': horizontal_airspeed(record, wind), 'units': 'knot'},
            'verticalspeed': {'val': record.velocity.vs, 'units': 'fpm'},
            'altitude': {'val': alt, 'units': 'ft'},
        }

    def _assess_pair(self, ownship: EngineAircraft, intruder: EngineAircraft,
                     params: BandsParameters, lookahead: float) -> Dict[str, Any]:
        own = ownship.record
        other = intruder.record

        # relative state: horizontal in nmi and knots, vertical in ft and fpm
        rel = GeoUtils.relative_position_nm(own.position, other.position)
        s = rel[:2]
        v = np.array([other.velocity.vx_kt - own.velocity.vx_kt,
                      other.velocity.vy_kt - own.velocity.vy_kt]) / 3600.0  # nmi/s
        sz = rel[2]
        vz = (other.velocity.vs_fpm - own.velocity.vs_fpm) / 60.0  # ft/s

        v_sq = float(np.dot(v, v))
        tcpa = 0.0 if v_sq == 0.0 else -float(np.dot(s, v)) / v_sq
        tcpa = min(max(tcpa, 0.0), lookahead)
        hmd = float(np.linalg.norm(s + v * tcpa))
        vmd = abs(sz + vz * tcpa)

        # inflate thresholds by two sigma of the reported position uncertainty (ft)
        h_sigma = math.hypot(intruder.params.s_EW_std, intruder.params.s_NS_std)
        dthr_nm = (self._param(params, 'DTHR') + 2.0 * h_sigma) / FT_PER_NM
        zthr = self._param(params, 'ZTHR') + 2.0 * intruder.params.sz_std

        distance = float(np.linalg.norm(s))
        range_nm, bearing = GeoUtils.range_bearing(own.position, other.position)
        conflict = hmd < dthr_nm and vmd < zthr
        if distance < dthr_nm and abs(sz) < zthr:
            level = 3
        elif conflict and tcpa <= self._param(params, 'alerting_time'):
            level = 2
        elif conflict and tcpa <= self._param(params, 'early_alerting_time'):
            level = 1
        else:
            level = 0

        alerter = intruder.params.alerter_index
        if alerter is None:
            alerter = int(self._param(params, 'alerter'))

        return {
            'alert_level': level,
            'alerter': alerter,
            'distance_nm': distance,
            'vertical_ft': abs(float(sz)),
            'tcpa': tcpa,
            'hmd_nm': hmd,
            'vmd_ft': float(vmd),
            'range_nm': range_nm,
            'bearing_deg': bearing,
        }
