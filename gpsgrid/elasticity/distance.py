"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 9:30 AM

Separation and signed offsets between points, either in Cartesian user units or,
for longitude/latitude input, in km using a flat Earth approximation.

The offset convention is offset(P0, P1) = P1 - P0, so offset(A, B) = -offset(B, A).
"""
import math

import numpy as np
from numba import njit

# mean Earth radius used for the flat Earth approximation
EARTH_RADIUS_KM = 6371.0087714
KM_PR_DEG = 2.0 * math.pi * EARTH_RADIUS_KM / 360.0


def delta_lon(lon0, lon1) -> np.ndarray:
    """signed longitude difference lon1 - lon0 along the shortest angular path"""
    dlon = np.asarray(lon1, dtype=float) - np.asarray(lon0, dtype=float)
    adlon = np.abs(dlon)
    return np.where(adlon > 180.0, np.copysign(360.0 - adlon, -dlon), dlon)


def offset(x0, y0, x1, y1, geographic: bool = False):
    """
    Signed increments between points P0 = (x0, y0) and P1 = (x1, y1), as seen from P0

    Parameters
    ----------
    x0, y0, x1, y1 : float or np.ndarray
        Coordinates, broadcast against each other. For geographic data x is
        longitude and y is latitude, in degrees.
    geographic : bool
        If True, return the flat Earth increments in km

    Returns
    -------
    dx, dy : np.ndarray
        Increments P1 - P0
    """
    if geographic:
        dx = delta_lon(x0, x1) * np.cos(np.deg2rad(0.5 * (np.asarray(y0) + np.asarray(y1)))) * KM_PR_DEG
        dy = (np.asarray(y1, dtype=float) - np.asarray(y0, dtype=float)) * KM_PR_DEG
    else:
        dx = np.asarray(x1, dtype=float) - np.asarray(x0, dtype=float)
        dy = np.asarray(y1, dtype=float) - np.asarray(y0, dtype=float)

    return dx, dy


def radius(x0, y0, x1, y1, geographic: bool = False) -> np.ndarray:
    """distance between P0 and P1 (user units or km)"""
    dx, dy = offset(x0, y0, x1, y1, geographic)
    return np.hypot(dx, dy)


def wrap_longitudes(lon: np.ndarray, west: float, east: float) -> np.ndarray:
    """shift longitudes by 360 degrees where that brings them inside [west, east]"""
    lon = np.array(lon, dtype=float)

    up = (lon < west) & (lon + 360.0 < east)
    down = (lon > east) & (lon - 360.0 > west)
    lon[up] += 360.0
    lon[down] -= 360.0

    return lon


@njit
def offset_kernel(x0, y0, x1, y1, geographic):
    """scalar version of offset used inside the compiled evaluation loops"""
    if geographic:
        dlon = x1 - x0
        if abs(dlon) > 180.0:
            dlon = math.copysign(360.0 - abs(dlon), -dlon)
        dx = dlon * math.cos(math.radians(0.5 * (y0 + y1))) * KM_PR_DEG
        dy = (y1 - y0) * KM_PR_DEG
    else:
        dx = x1 - x0
        dy = y1 - y0

    return dx, dy
