"""
Geodesic Direct and Inverse Problems.

This module solves the two classical geodesic problems on either a sphere or
a reference ellipsoid:

- Direct problem: start point + initial bearing + distance -> end point
- Inverse problem: two points -> distance + initial/final bearing

Scientific Context
------------------
Domain: Geodesy, differential geometry on curved surfaces
Model: Great circle on a sphere of fixed mean radius, or geodesic on an
oblate ellipsoid solved with Vincenty's reduced-latitude iteration.

Convergence
-----------
Vincenty's iterations converge quickly for almost every configuration but
can stall for nearly antipodal points. Non-convergence is never an error:
the direct solver returns its best estimate, and the inverse solver hands
the pair to `pyproj` (Karney's GeographicLib algorithm) for the estimate.
Both mark the result with ``converged=False`` so callers and tests can see
the approximation.

Longitude Frame
---------------
The solver is frame-agnostic: a positive bearing sine advances the output
longitude. The Position aggregate runs it in an east-negative frame by
negating longitude on the way in and out; that boundary lives in the
aggregate, not here.

References
----------
- Vincenty, T. (1975). Direct and inverse solutions of geodesics on the
  ellipsoid with application of nested equations. Survey Review, 23(176).
- Karney, C.F.F. (2013). Algorithms for geodesics. Journal of Geodesy, 87(1).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import numpy as np

from pyproj import Geod

from common.constants import GeodeticConstants
from common.logging_config import get_logger
from geospatial.coordinate_models import WGS84Ellipsoid, EllipsoidParameters

logger = get_logger(__name__)

_TWO_PI = 2 * np.pi


class Shape(Enum):
    """Earth model used by distance and move calculations."""
    SPHERE = "sphere"
    ELLIPSOID = "ellipsoid"


@dataclass(frozen=True)
class GeodesicConfig:
    """Configuration for the geodesic solver.

    Attributes
    ----------
    max_iterations : int
        Iteration cap of the ellipsoidal direct solution.
    inverse_max_iterations : int
        Iteration cap of the ellipsoidal inverse solution.
    tolerance : float
        Angular convergence tolerance in radians.
    mean_radius_m : float
        Sphere radius used in spherical mode.
    """
    max_iterations: int = 20
    inverse_max_iterations: int = 200
    tolerance: float = 1e-12
    mean_radius_m: float = GeodeticConstants.EARTH_MEAN_RADIUS.value


DEFAULT_GEODESIC_CONFIG = GeodesicConfig()


@dataclass(frozen=True)
class DirectSolution:
    """Result of a direct geodesic problem.

    Attributes
    ----------
    latitude : float
        Destination latitude in radians.
    longitude : float
        Destination longitude in radians, normalised to [-π, π].
    final_bearing : float
        Bearing of travel at the destination in radians, [0, 2π).
    converged : bool
        False if the iteration cap was reached before the tolerance.
    iterations : int
        Number of iterations performed (0 for spherical mode).
    """
    latitude: float
    longitude: float
    final_bearing: float
    converged: bool = True
    iterations: int = 0


@dataclass(frozen=True)
class InverseSolution:
    """Result of an inverse geodesic problem.

    Attributes
    ----------
    distance_m : float
        Geodesic distance in meters.
    initial_bearing : float
        Bearing at the first point towards the second, radians [0, 2π).
    final_bearing : float
        Bearing of travel on arrival at the second point, radians [0, 2π).
    converged : bool
        False if the Vincenty iteration did not converge.
    iterations : int
        Number of iterations performed (0 for spherical mode).
    """
    distance_m: float
    initial_bearing: float
    final_bearing: float
    converged: bool = True
    iterations: int = 0


def normalize_longitude(longitude_rad: float) -> float:
    """Wrap a longitude into [-π, π]."""
    wrapped = (longitude_rad + np.pi) % _TWO_PI - np.pi
    # keep +180° rather than folding it onto -180°
    if wrapped == -np.pi and longitude_rad > 0:
        return float(np.pi)
    return float(wrapped)


def normalize_bearing(bearing_rad: float) -> float:
    """Wrap a bearing into [0, 2π)."""
    wrapped = float(bearing_rad % _TWO_PI)
    if wrapped >= _TWO_PI:
        return 0.0
    return wrapped


def solve_direct(
    lat1_rad: float,
    lon1_rad: float,
    bearing_rad: float,
    distance_m: float,
    shape: Shape = Shape.ELLIPSOID,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid,
    config: GeodesicConfig = DEFAULT_GEODESIC_CONFIG
) -> DirectSolution:
    """Solve the direct geodesic problem.

    Parameters
    ----------
    lat1_rad, lon1_rad : float
        Starting point in radians.
    bearing_rad : float
        Initial bearing in radians, clockwise from north in the solver frame.
    distance_m : float
        Distance to travel in meters.
    shape : Shape
        Sphere or ellipsoid.
    ellipsoid : EllipsoidParameters
        Reference ellipsoid (ignored in spherical mode).
    config : GeodesicConfig
        Iteration cap, tolerance and sphere radius.

    Returns
    -------
    DirectSolution
        Destination point and final bearing.
    """
    if shape is Shape.SPHERE:
        return _direct_sphere(lat1_rad, lon1_rad, bearing_rad, distance_m, config.mean_radius_m)
    return _direct_vincenty(lat1_rad, lon1_rad, bearing_rad, distance_m, ellipsoid, config)


def solve_inverse(
    lat1_rad: float,
    lon1_rad: float,
    lat2_rad: float,
    lon2_rad: float,
    shape: Shape = Shape.ELLIPSOID,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid,
    config: GeodesicConfig = DEFAULT_GEODESIC_CONFIG
) -> InverseSolution:
    """Solve the inverse geodesic problem.

    Parameters
    ----------
    lat1_rad, lon1_rad : float
        First point in radians.
    lat2_rad, lon2_rad : float
        Second point in radians.
    shape : Shape
        Sphere or ellipsoid.
    ellipsoid : EllipsoidParameters
        Reference ellipsoid (ignored in spherical mode).
    config : GeodesicConfig
        Iteration cap, tolerance and sphere radius.

    Returns
    -------
    InverseSolution
        Distance and bearings. Coincident points give a zero distance and
        zero bearings.

    Examples
    --------
    >>> import numpy as np
    >>> result = solve_inverse(
    ...     np.radians(25.0), np.radians(25.0),
    ...     np.radians(28.0), np.radians(30.0),
    ...     shape=Shape.SPHERE
    ... )
    >>> print(f"{result.distance_m / 1000:.2f} km")
    598.93 km
    """
    if lat1_rad == lat2_rad and normalize_longitude(lon1_rad) == normalize_longitude(lon2_rad):
        return InverseSolution(distance_m=0.0, initial_bearing=0.0, final_bearing=0.0)

    if shape is Shape.SPHERE:
        return _inverse_sphere(lat1_rad, lon1_rad, lat2_rad, lon2_rad, config.mean_radius_m)
    return _inverse_vincenty(lat1_rad, lon1_rad, lat2_rad, lon2_rad, ellipsoid, config)


# =========================================================================
# Spherical formulas
# =========================================================================

def _initial_bearing_sphere(
    lat1_rad: float,
    lon1_rad: float,
    lat2_rad: float,
    lon2_rad: float
) -> float:
    dlon = lon2_rad - lon1_rad
    y = np.sin(dlon) * np.cos(lat2_rad)
    x = np.cos(lat1_rad) * np.sin(lat2_rad) - np.sin(lat1_rad) * np.cos(lat2_rad) * np.cos(dlon)
    return normalize_bearing(np.arctan2(y, x))


def _direct_sphere(
    lat1_rad: float,
    lon1_rad: float,
    bearing_rad: float,
    distance_m: float,
    radius_m: float
) -> DirectSolution:
    delta = distance_m / radius_m

    sin_lat2 = (
        np.sin(lat1_rad) * np.cos(delta)
        + np.cos(lat1_rad) * np.sin(delta) * np.cos(bearing_rad)
    )
    lat2 = np.arcsin(np.clip(sin_lat2, -1.0, 1.0))
    lon2 = lon1_rad + np.arctan2(
        np.sin(bearing_rad) * np.sin(delta) * np.cos(lat1_rad),
        np.cos(delta) - np.sin(lat1_rad) * np.sin(lat2)
    )
    lon2 = normalize_longitude(lon2)

    # Final bearing is the reverse of the bearing from the destination back
    final = normalize_bearing(_initial_bearing_sphere(lat2, lon2, lat1_rad, lon1_rad) + np.pi)

    return DirectSolution(latitude=float(lat2), longitude=lon2, final_bearing=final)


def _inverse_sphere(
    lat1_rad: float,
    lon1_rad: float,
    lat2_rad: float,
    lon2_rad: float,
    radius_m: float
) -> InverseSolution:
    # Haversine formula
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = np.sin(dlat / 2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    initial = _initial_bearing_sphere(lat1_rad, lon1_rad, lat2_rad, lon2_rad)
    final = normalize_bearing(_initial_bearing_sphere(lat2_rad, lon2_rad, lat1_rad, lon1_rad) + np.pi)

    return InverseSolution(
        distance_m=float(radius_m * c),
        initial_bearing=initial,
        final_bearing=final
    )


# =========================================================================
# Vincenty (ellipsoidal) formulas
# =========================================================================

def _vincenty_coefficients(cos2_alpha: float, ellipsoid: EllipsoidParameters):
    """Series coefficients A and B of Vincenty's distance integral."""
    a, b = ellipsoid.a, ellipsoid.b
    u2 = cos2_alpha * (a**2 - b**2) / b**2
    A = 1 + u2 / 16384 * (4096 + u2 * (-768 + u2 * (320 - 175 * u2)))
    B = u2 / 1024 * (256 + u2 * (-128 + u2 * (74 - 47 * u2)))
    return A, B


def _delta_sigma(B: float, sin_sigma: float, cos_sigma: float, cos_2sigma_m: float) -> float:
    return B * sin_sigma * (
        cos_2sigma_m + B / 4 * (
            cos_sigma * (-1 + 2 * cos_2sigma_m**2)
            - B / 6 * cos_2sigma_m * (-3 + 4 * sin_sigma**2) * (-3 + 4 * cos_2sigma_m**2)
        )
    )


def _direct_vincenty(
    lat1_rad: float,
    lon1_rad: float,
    bearing_rad: float,
    distance_m: float,
    ellipsoid: EllipsoidParameters,
    config: GeodesicConfig
) -> DirectSolution:
    f = ellipsoid.f
    b = ellipsoid.b

    sin_alpha1 = np.sin(bearing_rad)
    cos_alpha1 = np.cos(bearing_rad)

    # Reduced latitude
    tan_u1 = (1 - f) * np.tan(lat1_rad)
    cos_u1 = 1 / np.sqrt(1 + tan_u1**2)
    sin_u1 = tan_u1 * cos_u1

    sigma1 = np.arctan2(tan_u1, cos_alpha1)
    sin_alpha = cos_u1 * sin_alpha1
    cos2_alpha = 1 - sin_alpha**2

    A, B = _vincenty_coefficients(cos2_alpha, ellipsoid)

    sigma = distance_m / (b * A)
    converged = False
    iterations = 0
    cos_2sigma_m = np.cos(2 * sigma1 + sigma)
    sin_sigma = np.sin(sigma)
    cos_sigma = np.cos(sigma)

    while iterations < config.max_iterations:
        iterations += 1
        cos_2sigma_m = np.cos(2 * sigma1 + sigma)
        sin_sigma = np.sin(sigma)
        cos_sigma = np.cos(sigma)
        sigma_prev = sigma
        sigma = distance_m / (b * A) + _delta_sigma(B, sin_sigma, cos_sigma, cos_2sigma_m)
        if np.abs(sigma - sigma_prev) < config.tolerance:
            converged = True
            break

    if not converged:
        logger.warning(
            f"Direct geodesic did not converge after {iterations} iterations; "
            f"returning best estimate"
        )

    cos_2sigma_m = np.cos(2 * sigma1 + sigma)
    sin_sigma = np.sin(sigma)
    cos_sigma = np.cos(sigma)

    x = sin_u1 * sin_sigma - cos_u1 * cos_sigma * cos_alpha1
    lat2 = np.arctan2(
        sin_u1 * cos_sigma + cos_u1 * sin_sigma * cos_alpha1,
        (1 - f) * np.sqrt(sin_alpha**2 + x**2)
    )
    lam = np.arctan2(
        sin_sigma * sin_alpha1,
        cos_u1 * cos_sigma - sin_u1 * sin_sigma * cos_alpha1
    )
    C = f / 16 * cos2_alpha * (4 + f * (4 - 3 * cos2_alpha))
    L = lam - (1 - C) * f * sin_alpha * (
        sigma + C * sin_sigma * (cos_2sigma_m + C * cos_sigma * (-1 + 2 * cos_2sigma_m**2))
    )

    final = normalize_bearing(np.arctan2(sin_alpha, -x))

    return DirectSolution(
        latitude=float(lat2),
        longitude=normalize_longitude(lon1_rad + L),
        final_bearing=final,
        converged=converged,
        iterations=iterations
    )


def _inverse_vincenty(
    lat1_rad: float,
    lon1_rad: float,
    lat2_rad: float,
    lon2_rad: float,
    ellipsoid: EllipsoidParameters,
    config: GeodesicConfig
) -> InverseSolution:
    f = ellipsoid.f
    b = ellipsoid.b

    L = normalize_longitude(lon2_rad - lon1_rad)
    tan_u1 = (1 - f) * np.tan(lat1_rad)
    cos_u1 = 1 / np.sqrt(1 + tan_u1**2)
    sin_u1 = tan_u1 * cos_u1
    tan_u2 = (1 - f) * np.tan(lat2_rad)
    cos_u2 = 1 / np.sqrt(1 + tan_u2**2)
    sin_u2 = tan_u2 * cos_u2

    lam = L
    converged = False
    iterations = 0
    sin_sigma = cos_sigma = sigma = cos2_alpha = cos_2sigma_m = 0.0
    sin_lam = cos_lam = 0.0

    while iterations < config.inverse_max_iterations:
        iterations += 1
        sin_lam = np.sin(lam)
        cos_lam = np.cos(lam)
        sin_sigma = np.sqrt(
            (cos_u2 * sin_lam)**2
            + (cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam)**2
        )
        if sin_sigma == 0:
            # Coincident after reduction (e.g. both at the same pole)
            return InverseSolution(
                distance_m=0.0, initial_bearing=0.0, final_bearing=0.0,
                iterations=iterations
            )
        cos_sigma = sin_u1 * sin_u2 + cos_u1 * cos_u2 * cos_lam
        sigma = np.arctan2(sin_sigma, cos_sigma)
        sin_alpha = cos_u1 * cos_u2 * sin_lam / sin_sigma
        cos2_alpha = 1 - sin_alpha**2
        # Equatorial line: cos²α = 0
        cos_2sigma_m = cos_sigma - 2 * sin_u1 * sin_u2 / cos2_alpha if cos2_alpha != 0 else 0.0
        C = f / 16 * cos2_alpha * (4 + f * (4 - 3 * cos2_alpha))
        lam_prev = lam
        lam = L + (1 - C) * f * sin_alpha * (
            sigma + C * sin_sigma * (cos_2sigma_m + C * cos_sigma * (-1 + 2 * cos_2sigma_m**2))
        )
        if np.abs(lam) > np.pi:
            # Nearly antipodal: the iteration is diverging
            break
        if np.abs(lam - lam_prev) < config.tolerance:
            converged = True
            break

    if not converged:
        logger.warning(
            f"Inverse geodesic did not converge after {iterations} iterations; "
            f"falling back to Karney's solution"
        )
        return _inverse_karney(lat1_rad, lon1_rad, lat2_rad, lon2_rad, ellipsoid, iterations)

    A, B = _vincenty_coefficients(cos2_alpha, ellipsoid)
    delta_sigma = _delta_sigma(B, sin_sigma, cos_sigma, cos_2sigma_m)
    distance = b * A * (sigma - delta_sigma)

    alpha1 = np.arctan2(cos_u2 * sin_lam, cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam)
    alpha2 = np.arctan2(cos_u1 * sin_lam, -sin_u1 * cos_u2 + cos_u1 * sin_u2 * cos_lam)

    return InverseSolution(
        distance_m=float(distance),
        initial_bearing=normalize_bearing(alpha1),
        final_bearing=normalize_bearing(alpha2),
        converged=True,
        iterations=iterations
    )


def _inverse_karney(
    lat1_rad: float,
    lon1_rad: float,
    lat2_rad: float,
    lon2_rad: float,
    ellipsoid: EllipsoidParameters,
    iterations: int
) -> InverseSolution:
    """Best-estimate inverse solution from pyproj for non-convergent pairs."""
    geod = _geod_for(ellipsoid)
    az_forward_deg, az_back_deg, distance_m = geod.inv(
        np.degrees(lon1_rad), np.degrees(lat1_rad),
        np.degrees(lon2_rad), np.degrees(lat2_rad)
    )

    # pyproj reports the back azimuth at point 2; travel direction is its reverse
    return InverseSolution(
        distance_m=float(distance_m),
        initial_bearing=normalize_bearing(np.radians(az_forward_deg)),
        final_bearing=normalize_bearing(np.radians(az_back_deg) + np.pi),
        converged=False,
        iterations=iterations
    )


_geod_cache: dict = {}


def _geod_for(ellipsoid: EllipsoidParameters) -> Geod:
    key = (ellipsoid.a, ellipsoid.inverse_flattening)
    geod: Optional[Geod] = _geod_cache.get(key)
    if geod is None:
        geod = Geod(a=ellipsoid.a, rf=ellipsoid.inverse_flattening)
        _geod_cache[key] = geod
    return geod
