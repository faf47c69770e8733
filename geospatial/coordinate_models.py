"""
Coordinate Models for Ellipsoidal Earth Geometry.

This module implements the reference ellipsoid and the earth-centered,
earth-fixed (ECEF) conversions used by the Cartesian representation of a
Position. Every function takes the ellipsoid explicitly so that a datum
change on a Position flows into the next conversion without any shared
mutable state.

Scientific Context
------------------
Domain: Geodesy, Earth geometry
Model: Oblate ellipsoid of revolution defined by (a, 1/f)

Datum Handling
--------------
An EllipsoidParameters value is immutable. A Position "changes datum" by
replacing its value and handing the new one to each converter it refreshes;
converters never keep a long-lived alias of a Position's ellipsoid.

References
----------
- NIMA TR8350.2: WGS84 parameters
- Bowring, B.R. (1976). Survey Review, 23(181)
- Snyder, J.P. (1987). Map Projections: A Working Manual, USGS PP 1395
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np

from common.constants import GeodeticConstants
from common.exceptions import InvalidRange


@dataclass(frozen=True)
class EllipsoidParameters:
    """Parameters defining a reference ellipsoid.

    Attributes
    ----------
    a : float
        Semi-major axis (equatorial radius) in meters.
    inverse_flattening : float
        Inverse flattening: 1/f = a / (a - b)
    name : str
        Identifier for the ellipsoid.

    Derived Parameters
    ------------------
    f : float
        Flattening.
    b : float
        Semi-minor axis (polar radius) in meters.
    e2 : float
        First eccentricity squared: e² = (a² - b²) / a²
    ep2 : float
        Second eccentricity squared: e'² = (a² - b²) / b²
    """
    a: float
    inverse_flattening: float
    name: str = "custom"

    def __post_init__(self):
        """Validate ellipsoid parameters."""
        if not (np.isfinite(self.a) and self.a > 0):
            raise InvalidRange(f"Equatorial radius {self.a} must be a positive number of meters")
        if not (np.isfinite(self.inverse_flattening) and self.inverse_flattening > 0):
            raise InvalidRange(
                f"Inverse flattening {self.inverse_flattening} must be positive"
            )

    @property
    def f(self) -> float:
        """Flattening."""
        return 1.0 / self.inverse_flattening

    @property
    def b(self) -> float:
        """Semi-minor axis in meters."""
        return self.a * (1 - self.f)

    @property
    def e2(self) -> float:
        """First eccentricity squared."""
        return self.f * (2 - self.f)

    @property
    def ep2(self) -> float:
        """Second eccentricity squared."""
        return self.e2 / (1 - self.e2)


# WGS84 ellipsoid - the default datum of every Position
WGS84Ellipsoid = EllipsoidParameters(
    a=GeodeticConstants.WGS84_SEMI_MAJOR_AXIS.value,
    inverse_flattening=GeodeticConstants.WGS84_INVERSE_FLATTENING.value,
    name="WGS84"
)


def radius_of_curvature_meridian(
    latitude_rad: float,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid
) -> float:
    """North-south radius of curvature M = a(1 - e²) / W³ in meters.

    W = sqrt(1 - e² sin²φ). M grows from a(1 - e²) at the equator to a²/b
    at the poles.
    """
    w = np.sqrt(1.0 - ellipsoid.e2 * np.sin(latitude_rad) ** 2)
    return float(ellipsoid.a * (1.0 - ellipsoid.e2) / w**3)


def radius_of_curvature_prime_vertical(
    latitude_rad: float,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid
) -> float:
    """East-west radius of curvature N = a / W in meters."""
    w = np.sqrt(1.0 - ellipsoid.e2 * np.sin(latitude_rad) ** 2)
    return float(ellipsoid.a / w)


def geodetic_to_ecef(
    latitude_rad: float,
    longitude_rad: float,
    height_m: float = 0.0,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid
) -> Tuple[float, float, float]:
    """Earth-centered, earth-fixed coordinates of a geodetic position.

    Parameters
    ----------
    latitude_rad, longitude_rad : float
        Geodetic position in radians (east positive).
    height_m : float
        Height above the ellipsoid in meters.
    ellipsoid : EllipsoidParameters
        Datum of the position.

    Returns
    -------
    Tuple[float, float, float]
        (x, y, z) in meters. +x pierces the equator at the prime meridian,
        +y at 90°E and +z the north pole.
    """
    n = radius_of_curvature_prime_vertical(latitude_rad, ellipsoid)
    horizontal = (n + height_m) * np.cos(latitude_rad)

    x = horizontal * np.cos(longitude_rad)
    y = horizontal * np.sin(longitude_rad)
    z = (n * (1.0 - ellipsoid.e2) + height_m) * np.sin(latitude_rad)
    return float(x), float(y), float(z)


def ecef_to_geodetic(
    x: float,
    y: float,
    z: float,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid,
    max_iterations: int = 10,
    tolerance: float = 1e-14
) -> Tuple[float, float, float]:
    """Geodetic latitude, longitude and height of an ECEF point.

    Bowring's formula, iterated on the parametric latitude β until it
    settles. Two passes reach sub-millimeter accuracy for any terrestrial
    point; the height formula has no singularity at the poles.

    Parameters
    ----------
    x, y, z : float
        ECEF coordinates in meters.
    ellipsoid : EllipsoidParameters
        Datum to express the result on.
    max_iterations : int
        Upper bound on passes over β.
    tolerance : float
        Change in β (radians) below which iteration stops.

    Returns
    -------
    Tuple[float, float, float]
        (latitude_rad, longitude_rad, height_m)

    References
    ----------
    Bowring, B.R. (1976). Transformation from spatial to geographical
    coordinates. Survey Review, 23(181), 323-327.
    """
    a, b = ellipsoid.a, ellipsoid.b
    e2, ep2 = ellipsoid.e2, ellipsoid.ep2
    p = np.hypot(x, y)

    beta = np.arctan2(a * z, b * p)
    latitude_rad = beta
    for _ in range(max_iterations):
        latitude_rad = np.arctan2(
            z + ep2 * b * np.sin(beta) ** 3,
            p - e2 * a * np.cos(beta) ** 3
        )
        beta_next = np.arctan2(b * np.sin(latitude_rad), a * np.cos(latitude_rad))
        settled = abs(beta_next - beta) < tolerance
        beta = beta_next
        if settled:
            break

    sin_lat = np.sin(latitude_rad)
    height_m = (
        p * np.cos(latitude_rad) + z * sin_lat
        - a * np.sqrt(1.0 - e2 * sin_lat**2)
    )
    return float(latitude_rad), float(np.arctan2(y, x)), float(height_m)


def geodetic_to_unit_vector(
    latitude_rad: float,
    longitude_rad: float
) -> Tuple[float, float, float]:
    """Convert a geodetic position to a unit vector on a sphere.

    This is the datum-free Cartesian form of a position, used where only the
    direction from the earth's center matters (e.g. great-circle geometry).

    Parameters
    ----------
    latitude_rad, longitude_rad : float
        Position in radians (east positive).

    Returns
    -------
    Tuple[float, float, float]
        (x, y, z) with x² + y² + z² = 1.
    """
    cos_lat = np.cos(latitude_rad)
    return (
        float(cos_lat * np.cos(longitude_rad)),
        float(cos_lat * np.sin(longitude_rad)),
        float(np.sin(latitude_rad)),
    )


def unit_vector_to_geodetic(x: float, y: float, z: float) -> Tuple[float, float]:
    """Convert a (not necessarily normalised) vector to latitude/longitude.

    Parameters
    ----------
    x, y, z : float
        Cartesian components.

    Returns
    -------
    Tuple[float, float]
        (latitude_rad, longitude_rad)
    """
    latitude_rad = np.arctan2(z, np.sqrt(x**2 + y**2))
    longitude_rad = np.arctan2(y, x)
    return float(latitude_rad), float(longitude_rad)
