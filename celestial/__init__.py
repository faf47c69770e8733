"""
Celestial Module.

Low-precision solar and lunar computations for a position and instant:
rise/set and twilight times, altitudes and azimuths, lunar phase, distance
and apsides, zodiac signs, and the surrounding solar and lunar eclipses.
"""

from celestial.models import (
    AltAz,
    ApsisEvent,
    AstrologicalSigns,
    AdditionalSolarTimes,
    CelestialResult,
    CelestialStatus,
    Eclipse,
    EclipseEvents,
    LunarApsis,
    MoonIllumination,
)
from celestial.engine import CelestialEngine, compute

__all__ = [
    "AltAz",
    "ApsisEvent",
    "AstrologicalSigns",
    "AdditionalSolarTimes",
    "CelestialResult",
    "CelestialStatus",
    "Eclipse",
    "EclipseEvents",
    "LunarApsis",
    "MoonIllumination",
    "CelestialEngine",
    "compute",
]
