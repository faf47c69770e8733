"""
Celestial Engine.

Single entry point combining the solar, lunar and event algorithms into one
CelestialResult for a position and instant. The function is pure; a
Position calls it once per resynchronisation of its celestial
representation, and any callable with the same signature can be injected
in its place.
"""

from datetime import datetime, timezone
from typing import Callable

from common.logging_config import get_logger
from celestial.models import AstrologicalSigns, CelestialResult
from celestial import events, lunar, solar

logger = get_logger(__name__)

CelestialEngine = Callable[[float, float, datetime], CelestialResult]


def compute(latitude_deg: float, longitude_deg: float, instant: datetime) -> CelestialResult:
    """Compute solar and lunar information.

    Parameters
    ----------
    latitude_deg, longitude_deg : float
        Observer position in degrees (east positive).
    instant : datetime
        Observation instant. Naive values are taken as UTC.

    Returns
    -------
    CelestialResult
        Rise/set times for the UTC day of ``instant``, current sun and moon
        positions, lunar phase, apsides, signs and eclipses.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    jd = solar.julian_day(instant)

    sunrise, sunset, sun_condition = solar.sun_times(jd, latitude_deg, longitude_deg)
    moonrise, moonset, moon_condition = lunar.moon_times(jd, latitude_deg, longitude_deg)

    sun_altaz = solar.sun_position(jd, latitude_deg, longitude_deg)
    moon_altaz = lunar.moon_position(jd, latitude_deg, longitude_deg)

    illumination = lunar.moon_illumination(jd)
    sun_longitude, _ = solar.sun_ecliptic(jd)
    moon_longitude, _, _ = lunar.moon_ecliptic(jd)
    moon_name = events.full_moon_name(jd) if illumination.phase_name == "Full Moon" else None

    result = CelestialResult(
        sunrise=sunrise,
        sunset=sunset,
        moonrise=moonrise,
        moonset=moonset,
        sun_altaz=sun_altaz,
        moon_altaz=moon_altaz,
        moon_distance=lunar.moon_distance_m(jd),
        illumination=illumination,
        perigee=lunar.lunar_apsis(jd, apogee=False),
        apogee=lunar.lunar_apsis(jd, apogee=True),
        astrology=AstrologicalSigns(
            zodiac_sign=solar.zodiac_sign(sun_longitude),
            moon_sign=solar.zodiac_sign(moon_longitude),
            moon_name=moon_name
        ),
        solar_eclipse=events.eclipses(jd, solar=True),
        lunar_eclipse=events.eclipses(jd, solar=False),
        sun_up=sun_altaz.altitude > solar.SUNRISE_ALTITUDE,
        moon_up=moon_altaz.altitude > lunar.moonrise_altitude(jd),
        sun_condition=sun_condition,
        moon_condition=moon_condition,
        additional_solar_times=solar.twilight_times(jd, latitude_deg, longitude_deg)
    )

    logger.debug(
        f"Celestial state at ({latitude_deg:.4f}, {longitude_deg:.4f}) "
        f"{instant.isoformat()}: sun {sun_altaz.altitude:.2f}°, moon {moon_altaz.altitude:.2f}°"
    )
    return result
