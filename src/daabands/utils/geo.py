"""Geodesy helpers for local projections around the ownship"""

import math
from typing import Tuple

import numpy as np

from ..schemas.daa_schemas import Position

EARTH_RADIUS_NM = 3440.065
NM_PER_DEG = 60.0
FT_PER_NM = 6076.12


class GeoUtils:
    """Geometric utilities for ownship-centred computations"""

    @staticmethod
    def great_circle_distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great circle distance between two points in nautical miles"""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        dlat = lat2_rad - lat1_rad
        dlon = math.radians(lon2 - lon1)

        # Haversine formula
        a = (math.sin(dlat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
        c = 2 * math.asin(math.sqrt(max(0.0, min(1.0, a))))
        return EARTH_RADIUS_NM * c

    @staticmethod
    def great_circle_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Initial bearing from point 1 to point 2 in degrees [0, 360)"""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        dlon = math.radians(lon2 - lon1)

        y = math.sin(dlon) * math.cos(lat2_rad)
        x = (math.cos(lat1_rad) * math.sin(lat2_rad) -
             math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon))
        return (math.degrees(math.atan2(y, x)) + 360) % 360

    @staticmethod
    def relative_position_nm(origin: Position, other: Position) -> np.ndarray:
        """
        East/north offset of other from origin in nmi, and altitude offset in ft.

        Geodetic positions use an equirectangular projection at the origin latitude.
        """
        if origin.latlon and other.latlon:
            mean_lat = math.radians((origin.latitude + other.latitude) / 2.0)
            east = (other.longitude - origin.longitude) * NM_PER_DEG * math.cos(mean_lat)
            north = (other.latitude - origin.latitude) * NM_PER_DEG
        else:
            east = other.lat_x - origin.lat_x
            north = other.lon_y - origin.lon_y
        return np.array([east, north, other.alt_ft - origin.alt_ft])

    @staticmethod
    def to_lla(position: Position) -> Tuple[float, float, float]:
        """
        Latitude, longitude (deg) and altitude (ft) of a position.

        Cartesian positions are projected flat around 0N 0E.
        """
        if position.latlon:
            return position.latitude, position.longitude, position.alt_ft
        return position.lon_y / NM_PER_DEG, position.lat_x / NM_PER_DEG, position.alt_ft

    @staticmethod
    def range_bearing(origin: Position, other: Position) -> Tuple[float, float]:
        """Horizontal range (nmi) and bearing (deg) from origin to other"""
        if origin.latlon and other.latlon:
            return (GeoUtils.great_circle_distance_nm(origin.latitude, origin.longitude,
                                                      other.latitude, other.longitude),
                    GeoUtils.great_circle_bearing(origin.latitude, origin.longitude,
                                                  other.latitude, other.longitude))
        east, north, _ = GeoUtils.relative_position_nm(origin, other)
        return float(math.hypot(east, north)), (math.degrees(math.atan2(east, north)) + 360) % 360
