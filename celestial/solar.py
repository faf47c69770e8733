"""
Solar Position and Solar Events.

Low-precision solar ephemeris after the Astronomical Almanac, accurate to
about 0.01° in position and a minute in rise/set times between 1950 and
2050. No ΔT correction is applied: UTC is used as dynamical time.

Scientific Context
------------------
Domain: Positional astronomy
Model: Mean solar elements with the two leading equation-of-center terms.

Sunrise/Sunset
--------------
Rise and set use the hour-angle method with a standard altitude
h0 = -0.833° (refraction plus semi-diameter), refined by the altitude
correction of Meeus ch. 15. Twilight uses h0 = -6°, -12° and -18°.

References
----------
- U.S. Naval Observatory. The Astronomical Almanac, section C.
- Meeus, J. (1998). Astronomical Algorithms (2nd ed.), ch. 12, 13, 15.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
import numpy as np

from common.constants import GeodeticConstants, UNIX_EPOCH
from celestial.models import AltAz, CelestialStatus, AdditionalSolarTimes


JD_UNIX_EPOCH = GeodeticConstants.JULIAN_DAY_UNIX_EPOCH.value
JD_J2000 = GeodeticConstants.JULIAN_DAY_J2000.value

SUNRISE_ALTITUDE = -0.833
CIVIL_TWILIGHT = -6.0
NAUTICAL_TWILIGHT = -12.0
ASTRONOMICAL_TWILIGHT = -18.0

ZODIAC_SIGNS = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)


# =========================================================================
# Time scales
# =========================================================================

def julian_day(instant: datetime) -> float:
    """Julian day of an aware datetime (naive values are taken as UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return (instant - UNIX_EPOCH).total_seconds() / 86400.0 + JD_UNIX_EPOCH


def instant_from_julian_day(jd: float) -> datetime:
    """UTC datetime of a Julian day, rounded to the millisecond."""
    seconds = round((jd - JD_UNIX_EPOCH) * 86400.0, 3)
    return UNIX_EPOCH + timedelta(seconds=seconds)


def day_start(jd: float) -> float:
    """Julian day of 0h UTC of the day containing ``jd``."""
    return float(np.floor(jd - 0.5) + 0.5)


def greenwich_sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time in degrees, [0, 360)."""
    return float((280.46061837 + 360.98564736629 * (jd - JD_J2000)) % 360.0)


# =========================================================================
# Positions
# =========================================================================

def obliquity(jd: float) -> float:
    """Mean obliquity of the ecliptic in degrees."""
    return 23.439 - 0.0000004 * (jd - JD_J2000)


def sun_ecliptic(jd: float) -> Tuple[float, float]:
    """Apparent ecliptic longitude (deg) and distance (AU) of the sun."""
    n = jd - JD_J2000
    L = (280.460 + 0.9856474 * n) % 360.0
    g = np.radians((357.528 + 0.9856003 * n) % 360.0)

    longitude = (L + 1.915 * np.sin(g) + 0.020 * np.sin(2 * g)) % 360.0
    distance_au = 1.00014 - 0.01671 * np.cos(g) - 0.00014 * np.cos(2 * g)
    return float(longitude), float(distance_au)


def ecliptic_to_equatorial(
    longitude_deg: float,
    latitude_deg: float,
    obliquity_deg: float
) -> Tuple[float, float]:
    """Convert ecliptic to equatorial coordinates.

    Returns
    -------
    Tuple[float, float]
        (right_ascension_deg in [0, 360), declination_deg)
    """
    lam = np.radians(longitude_deg)
    beta = np.radians(latitude_deg)
    eps = np.radians(obliquity_deg)

    ra = np.arctan2(
        np.sin(lam) * np.cos(eps) - np.tan(beta) * np.sin(eps),
        np.cos(lam)
    )
    dec = np.arcsin(
        np.sin(beta) * np.cos(eps) + np.cos(beta) * np.sin(eps) * np.sin(lam)
    )
    return float(np.degrees(ra) % 360.0), float(np.degrees(dec))


def sun_equatorial(jd: float) -> Tuple[float, float, float]:
    """Right ascension (deg), declination (deg) and distance (AU) of the sun."""
    longitude, distance_au = sun_ecliptic(jd)
    ra, dec = ecliptic_to_equatorial(longitude, 0.0, obliquity(jd))
    return ra, dec, distance_au


def horizontal(
    ra_deg: float,
    dec_deg: float,
    latitude_deg: float,
    longitude_deg: float,
    jd: float
) -> AltAz:
    """Altitude and azimuth (east of north) of an equatorial position."""
    H = np.radians(greenwich_sidereal_time(jd) + longitude_deg - ra_deg)
    phi = np.radians(latitude_deg)
    delta = np.radians(dec_deg)

    sin_alt = np.sin(phi) * np.sin(delta) + np.cos(phi) * np.cos(delta) * np.cos(H)
    altitude = np.degrees(np.arcsin(np.clip(sin_alt, -1.0, 1.0)))
    azimuth = np.degrees(np.arctan2(
        np.sin(H),
        np.cos(H) * np.sin(phi) - np.sin(delta) * np.cos(phi) / max(np.cos(delta), 1e-15)
    )) + 180.0
    return AltAz(altitude=float(altitude), azimuth=float(azimuth % 360.0))


def sun_position(jd: float, latitude_deg: float, longitude_deg: float) -> AltAz:
    ra, dec, _ = sun_equatorial(jd)
    return horizontal(ra, dec, latitude_deg, longitude_deg, jd)


def zodiac_sign(ecliptic_longitude_deg: float) -> str:
    """Tropical zodiac sign of an ecliptic longitude."""
    return ZODIAC_SIGNS[int((ecliptic_longitude_deg % 360.0) // 30.0)]


# =========================================================================
# Rise, set and twilight
# =========================================================================

def hour_angle_events(
    jd0: float,
    latitude_deg: float,
    longitude_deg: float,
    h0_deg: float,
    equatorial: Callable[[float], Tuple[float, float, float]] = sun_equatorial,
    iterations: int = 3
) -> Tuple[Optional[float], Optional[float], CelestialStatus]:
    """Rise and set of a slowly moving body by the hour-angle method.

    Parameters
    ----------
    jd0 : float
        Julian day of 0h UTC.
    latitude_deg, longitude_deg : float
        Observer position (east positive).
    h0_deg : float
        Standard altitude of the event.
    equatorial : callable
        Function of the Julian day returning (ra_deg, dec_deg, distance).
    iterations : int
        Number of altitude corrections applied to each event.

    Returns
    -------
    Tuple[Optional[float], Optional[float], CelestialStatus]
        Julian days of rise and set within the day (None when the event
        does not occur that day) and the rise/set condition.
    """
    phi = np.radians(latitude_deg)
    h0 = np.radians(h0_deg)
    ra, dec, _ = equatorial(jd0 + 0.5)
    delta = np.radians(dec)

    denominator = np.cos(phi) * np.cos(delta)
    if np.abs(denominator) < 1e-12:
        altitude = horizontal(ra, dec, latitude_deg, longitude_deg, jd0 + 0.5).altitude
        status = CelestialStatus.UP_ALL_DAY if altitude > h0_deg else CelestialStatus.DOWN_ALL_DAY
        return None, None, status

    cos_H0 = (np.sin(h0) - np.sin(phi) * np.sin(delta)) / denominator
    if cos_H0 > 1.0:
        return None, None, CelestialStatus.DOWN_ALL_DAY
    if cos_H0 < -1.0:
        return None, None, CelestialStatus.UP_ALL_DAY

    H0 = np.degrees(np.arccos(cos_H0))
    theta0 = greenwich_sidereal_time(jd0)
    transit = ((ra - longitude_deg - theta0) / 360.0) % 1.0

    def refine(m: float) -> Optional[float]:
        for _ in range(iterations):
            ra_m, dec_m, _ = equatorial(jd0 + m)
            altitude = horizontal(ra_m, dec_m, latitude_deg, longitude_deg, jd0 + m).altitude
            theta = theta0 + 360.985647 * m
            H = np.radians((theta + longitude_deg - ra_m + 180.0) % 360.0 - 180.0)
            step = np.cos(np.radians(dec_m)) * np.cos(phi) * np.sin(H)
            if np.abs(step) < 1e-9:
                break
            m += (altitude - h0_deg) / (360.0 * step)
        if 0.0 <= m < 1.0:
            return jd0 + m
        return None

    rise = refine((transit - H0 / 360.0) % 1.0)
    set_ = refine((transit + H0 / 360.0) % 1.0)

    if rise is None and set_ is None:
        status = CelestialStatus.DOWN_ALL_DAY
    elif rise is None:
        status = CelestialStatus.NO_RISE
    elif set_ is None:
        status = CelestialStatus.NO_SET
    else:
        status = CelestialStatus.RISE_AND_SET
    return rise, set_, status


def _as_instant(jd: Optional[float]) -> Optional[datetime]:
    return instant_from_julian_day(jd) if jd is not None else None


def sun_times(
    jd: float,
    latitude_deg: float,
    longitude_deg: float
) -> Tuple[Optional[datetime], Optional[datetime], CelestialStatus]:
    """Sunrise, sunset and condition for the UTC day containing ``jd``."""
    rise, set_, status = hour_angle_events(day_start(jd), latitude_deg, longitude_deg, SUNRISE_ALTITUDE)
    return _as_instant(rise), _as_instant(set_), status


def twilight_times(jd: float, latitude_deg: float, longitude_deg: float) -> AdditionalSolarTimes:
    """Civil, nautical and astronomical dawn and dusk of the UTC day."""
    jd0 = day_start(jd)
    times = {}
    for name, h0 in (
        ("civil", CIVIL_TWILIGHT),
        ("nautical", NAUTICAL_TWILIGHT),
        ("astronomical", ASTRONOMICAL_TWILIGHT),
    ):
        dawn, dusk, _ = hour_angle_events(jd0, latitude_deg, longitude_deg, h0)
        times[f"{name}_dawn"] = _as_instant(dawn)
        times[f"{name}_dusk"] = _as_instant(dusk)
    return AdditionalSolarTimes(**times)
