"""
Celestial Result Types.

Frozen value types returned by the celestial engine. A Position caches one
CelestialResult and replaces it wholesale on every resynchronisation, so no
field here is ever mutated after construction.

All times are timezone-aware UTC datetimes. Angles are degrees, azimuths
measured east of north.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CelestialStatus(Enum):
    """Rise/set condition of a body over one UTC day."""
    RISE_AND_SET = "rise_and_set"
    DOWN_ALL_DAY = "down_all_day"
    UP_ALL_DAY = "up_all_day"
    NO_RISE = "no_rise"
    NO_SET = "no_set"


@dataclass(frozen=True)
class AltAz:
    """Horizontal coordinates of a body."""
    altitude: float
    azimuth: float


@dataclass(frozen=True)
class MoonIllumination:
    """Illuminated fraction and phase of the moon.

    Attributes
    ----------
    fraction : float
        Illuminated fraction of the disc, 0 (new) to 1 (full).
    phase : float
        Position in the lunation: 0 new, 0.25 first quarter, 0.5 full,
        0.75 last quarter.
    phase_name : str
        Conventional phase name, e.g. "Waxing Gibbous".
    angle : float
        Position angle of the bright limb in degrees. Negative while waxing.
    """
    fraction: float
    phase: float
    phase_name: str
    angle: float


@dataclass(frozen=True)
class ApsisEvent:
    """One lunar perigee or apogee."""
    time: datetime
    distance_m: float


@dataclass(frozen=True)
class LunarApsis:
    """Most recent and upcoming apsis of one kind."""
    last: ApsisEvent
    next: ApsisEvent


@dataclass(frozen=True)
class AstrologicalSigns:
    zodiac_sign: str
    moon_sign: str
    moon_name: Optional[str] = None


@dataclass(frozen=True)
class Eclipse:
    """One solar or lunar eclipse.

    Attributes
    ----------
    maximum : datetime
        Instant of greatest eclipse.
    kind : str
        "Total", "Annular", "Hybrid", "Partial" (solar) or
        "Total", "Partial", "Penumbral" (lunar).
    gamma : float
        Least distance of the shadow axis from the earth's center, in
        equatorial earth radii.
    magnitude : float, optional
        Eclipse magnitude. Not defined for central solar eclipses.
    """
    maximum: datetime
    kind: str
    gamma: float
    magnitude: Optional[float] = None


@dataclass(frozen=True)
class EclipseEvents:
    """Most recent and upcoming eclipse of one kind."""
    last: Optional[Eclipse]
    next: Optional[Eclipse]


@dataclass(frozen=True)
class AdditionalSolarTimes:
    """Twilight boundaries for the UTC day (None when not reached)."""
    civil_dawn: Optional[datetime] = None
    civil_dusk: Optional[datetime] = None
    nautical_dawn: Optional[datetime] = None
    nautical_dusk: Optional[datetime] = None
    astronomical_dawn: Optional[datetime] = None
    astronomical_dusk: Optional[datetime] = None


@dataclass(frozen=True)
class CelestialResult:
    """Solar and lunar information for one position and instant.

    Rise and set times refer to the UTC day containing the instant. Eclipse
    and apsis events are global (not site-specific).
    """
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    moonrise: Optional[datetime]
    moonset: Optional[datetime]
    sun_altaz: AltAz
    moon_altaz: AltAz
    moon_distance: float
    illumination: MoonIllumination
    perigee: LunarApsis
    apogee: LunarApsis
    astrology: AstrologicalSigns
    solar_eclipse: EclipseEvents
    lunar_eclipse: EclipseEvents
    sun_up: bool
    moon_up: bool
    sun_condition: CelestialStatus
    moon_condition: CelestialStatus
    additional_solar_times: AdditionalSolarTimes
