"""
Geodetic Constants for Position Modeling.

This module provides the reference constants shared by the geodesic solver,
the grid and ECEF converters and the position aggregate. All constants are
defined with SI units and traceable to authoritative sources.

References
----------
- WGS84 parameters: NIMA TR8350.2, Third Edition, 2000
- Spherical-earth mean radius: IUGG, as used by navigation formularies
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Final


@dataclass(frozen=True)
class Constant:
    """A physical constant with uncertainty and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    uncertainty : float
        The standard uncertainty (1-sigma) of the constant.
    unit : str
        The SI unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    uncertainty: float
    unit: str
    source: str
    description: str


class GeodeticConstants:
    """Registry of constants used throughout the system.

    Earth Geometry (WGS84)
    ----------------------
    Default datum of every Position. Other datums are supplied at runtime
    as (equatorial radius, inverse flattening) pairs.

    Spherical Earth
    ---------------
    Radius used when a calculation is explicitly requested on a sphere.
    """

    # =========================================================================
    # WGS84 Ellipsoid Parameters
    # Reference: NIMA TR8350.2, Third Edition, 2000
    # =========================================================================

    WGS84_SEMI_MAJOR_AXIS: Final[Constant] = Constant(
        value=6_378_137.0,
        uncertainty=0.0,  # Defined exactly
        unit="m",
        source="WGS84, NIMA TR8350.2",
        description="Semi-major axis (equatorial radius) of WGS84 ellipsoid"
    )

    WGS84_INVERSE_FLATTENING: Final[Constant] = Constant(
        value=298.257223563,
        uncertainty=0.0,  # Defined exactly
        unit="dimensionless",
        source="WGS84, NIMA TR8350.2",
        description="Inverse flattening of WGS84 ellipsoid: 1/f = a / (a - b)"
    )

    # =========================================================================
    # Spherical Earth
    # =========================================================================

    EARTH_MEAN_RADIUS: Final[Constant] = Constant(
        value=6_371_000.0,
        uncertainty=10.0,
        unit="m",
        source="IUGG mean radius, rounded to the kilometre",
        description="Radius of the sphere used by spherical distance and move"
    )

    # =========================================================================
    # Time
    # =========================================================================

    JULIAN_DAY_UNIX_EPOCH: Final[Constant] = Constant(
        value=2_440_587.5,
        uncertainty=0.0,
        unit="day",
        source="IAU",
        description="Julian day number of 1970-01-01T00:00:00Z"
    )

    JULIAN_DAY_J2000: Final[Constant] = Constant(
        value=2_451_545.0,
        uncertainty=0.0,
        unit="day",
        source="IAU",
        description="Julian day number of the J2000.0 epoch"
    )


# Default observation instant of a Position
DEFAULT_EPOCH: Final[datetime] = datetime(1900, 1, 1, tzinfo=timezone.utc)

UNIX_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=timezone.utc)
