"""DAA state table schemas and record classes"""

import bisect
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class CanonicalField(Enum):
    """Semantic columns of a daa state table"""
    NAME = "name"
    LAT_SX = "lat_sx"
    LON_SY = "lon_sy"
    ALT_SZ = "alt_sz"
    TRK_VX = "trk_vx"
    GS_VY = "gs_vy"
    VS_VZ = "vs_vz"
    TIME = "time"


# Aliases are checked in priority order, first match wins
FIELD_ALIASES: Dict[CanonicalField, Tuple[str, ...]] = {
    CanonicalField.NAME: ("name", "aircraft", "id"),
    CanonicalField.LAT_SX: ("sx", "lat", "latitude"),
    CanonicalField.LON_SY: ("sy", "lon", "long", "longitude"),
    CanonicalField.ALT_SZ: ("sz", "alt", "altitude"),
    CanonicalField.TRK_VX: ("trk", "vx", "track"),
    CanonicalField.GS_VY: ("gs", "vy", "groundspeed", "groundspd"),
    CanonicalField.VS_VZ: ("vs", "vz", "verticalspeed", "hdot"),
    CanonicalField.TIME: ("clock", "time", "tm", "st"),
}

# Fields that must resolve for a table to be readable (time defaults to 0)
REQUIRED_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.NAME,
    CanonicalField.LAT_SX,
    CanonicalField.LON_SY,
    CanonicalField.ALT_SZ,
    CanonicalField.TRK_VX,
    CanonicalField.GS_VY,
    CanonicalField.VS_VZ,
)

# Mode probes
LATLON_ALIASES: Tuple[str, ...] = ("lat", "lon", "long", "latitude")
TRKGSVS_ALIASES: Tuple[str, ...] = ("trk", "track")
CLOCK_ALIASES: Tuple[str, ...] = ("clock",)

DEFAULT_LABELS = "name, lat, lon, alt, vx, vy, vz, time"
DEFAULT_UNITS = "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s]"


@dataclass
class ExtraColumn:
    """User column that does not match any canonical alias"""
    label: str
    index: int
    unit: str


@dataclass
class Schema:
    """Resolved mapping from header tokens to canonical fields"""
    labels: List[str]
    units: List[str]
    columns: Dict[CanonicalField, int]
    latlon: bool = True    # geodetic positions (deg) vs local Cartesian (nmi)
    trkgsvs: bool = False  # track/groundspeed/vs vs velocity components
    clock: bool = False    # time column labelled 'clock'
    extra_columns: List[ExtraColumn] = field(default_factory=list)

    def index_of(self, canonical: CanonicalField) -> int:
        return self.columns.get(canonical, -1)

    def unit_of(self, index: int) -> str:
        if 0 <= index < len(self.units):
            return self.units[index]
        return "unitless"

    def field_labels(self) -> Dict[CanonicalField, str]:
        """Header label (lower case) each canonical field resolved to"""
        return {f: self.labels[i].lower() for f, i in self.columns.items()}

    def extra_labels(self) -> List[str]:
        return [col.label for col in self.extra_columns]

    def extra_unit(self, label: str) -> Optional[str]:
        for col in self.extra_columns:
            if col.label.lower() == label.lower():
                return col.unit
        return None


class ExtraValueKind(Enum):
    NUMBER = "number"
    BOOL = "bool"
    TEXT = "text"


@dataclass(frozen=True)
class ExtraValue:
    """Typed value of an extra column; the raw text is always retained"""
    kind: ExtraValueKind
    raw: str
    number: Optional[float] = None
    boolean: Optional[bool] = None

    @classmethod
    def from_text(cls, raw: str, number: Optional[float] = None) -> "ExtraValue":
        if number is not None:
            return cls(ExtraValueKind.NUMBER, raw, number=number)
        if raw.strip().lower() == "true":
            return cls(ExtraValueKind.BOOL, raw, boolean=True)
        return cls(ExtraValueKind.TEXT, raw)

    def as_number(self) -> float:
        return self.number if self.number is not None else float('nan')

    def as_bool(self) -> bool:
        return bool(self.boolean)

    def as_text(self) -> str:
        return self.raw


@dataclass
class Position:
    """Geodetic (lat/lon deg, alt ft) or local Cartesian (x/y nmi, z ft) position"""
    latlon: bool
    lat_x: float
    lon_y: float
    alt_ft: float

    @property
    def latitude(self) -> float:
        return self.lat_x

    @property
    def longitude(self) -> float:
        return self.lon_y

    def as_columns(self) -> Tuple[float, float, float]:
        return self.lat_x, self.lon_y, self.alt_ft


@dataclass
class Velocity:
    """Velocity stored as east/north components (knot) and vertical speed (fpm)"""
    vx_kt: float
    vy_kt: float
    vs_fpm: float
    trkgsvs: bool = False
    # columns exactly as read, kept for re-serialization
    source: Optional[Tuple[float, float, float]] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_trk_gs_vs(cls, trk_deg: float, gs_kt: float, vs_fpm: float) -> "Velocity":
        trk = math.radians(trk_deg)
        return cls(gs_kt * math.sin(trk), gs_kt * math.cos(trk), vs_fpm, trkgsvs=True,
                   source=(trk_deg, gs_kt, vs_fpm))

    @classmethod
    def from_components(cls, vx_kt: float, vy_kt: float, vs_fpm: float) -> "Velocity":
        return cls(vx_kt, vy_kt, vs_fpm, trkgsvs=False)

    @property
    def trk(self) -> float:
        """True track in degrees [0, 360)"""
        return math.degrees(math.atan2(self.vx_kt, self.vy_kt)) % 360.0

    @property
    def gs(self) -> float:
        """Ground speed in knots (horizontal only)"""
        return math.hypot(self.vx_kt, self.vy_kt)

    @property
    def vs(self) -> float:
        return self.vs_fpm

    def as_columns(self) -> Tuple[float, float, float]:
        if self.source is not None:
            return self.source
        if self.trkgsvs:
            return self.trk, self.gs, self.vs_fpm
        return self.vx_kt, self.vy_kt, self.vs_fpm


@dataclass
class Wind:
    """Wind vector: direction the wind blows to (deg) and speed (knot)"""
    deg: float = 0.0
    knot: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'deg': self.deg, 'knot': self.knot}


@dataclass
class AircraftRecord:
    """One row of a daa state table"""
    name: str
    time: float
    position: Position
    velocity: Velocity
    extras: Dict[str, ExtraValue] = field(default_factory=dict)
    line_number: int = 0

    def has_extra(self, label: str) -> bool:
        return self._extra_key(label) is not None

    def extra(self, label: str) -> Optional[ExtraValue]:
        key = self._extra_key(label)
        return self.extras[key] if key is not None else None

    def canonical_values(self) -> Tuple[float, ...]:
        """Canonical numeric columns in table order: position, velocity, time"""
        return self.position.as_columns() + self.velocity.as_columns() + (self.time,)

    def _extra_key(self, label: str) -> Optional[str]:
        if label in self.extras:
            return label
        lowered = label.lower()
        for key in self.extras:
            if key.lower() == lowered:
                return key
        return None


class AircraftHistory:
    """Time-ordered, append-only sequence of records for one aircraft"""

    def __init__(self, name: str):
        self.name = name
        self._records: List[AircraftRecord] = []
        self._times: List[float] = []

    def append(self, record: AircraftRecord):
        index = bisect.bisect_right(self._times, record.time)
        self._times.insert(index, record.time)
        self._records.insert(index, record)

    @property
    def records(self) -> List[AircraftRecord]:
        return list(self._records)

    def latest(self) -> Optional[AircraftRecord]:
        return self._records[-1] if self._records else None

    def latest_time(self) -> float:
        latest = self.latest()
        return latest.time if latest else float('-inf')

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"AircraftHistory({self.name!r}, records={len(self._records)})"


@dataclass
class StateTable:
    """Per-aircraft histories built from one parse pass"""
    schema: Schema
    histories: Dict[str, AircraftHistory] = field(default_factory=dict)
    ownship_id: Optional[str] = None

    @property
    def traffic_ids(self) -> List[str]:
        return [name for name in self.histories if name != self.ownship_id]

    def ownship(self) -> Optional[AircraftRecord]:
        history = self.histories.get(self.ownship_id) if self.ownship_id else None
        return history.latest() if history else None

    def traffic(self) -> List[AircraftRecord]:
        records = []
        for name in self.traffic_ids:
            latest = self.histories[name].latest()
            if latest is not None:
                records.append(latest)
        return records

    def remove(self, name: str) -> bool:
        return self.histories.pop(name, None) is not None
