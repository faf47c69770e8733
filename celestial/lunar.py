"""
Lunar Position, Phase, Rise/Set and Apsides.

Low-precision lunar ephemeris after the Astronomical Almanac (about 0.3° in
longitude, 0.2° in latitude and 0.003° in parallax), adequate for rise/set
times to a few minutes. No ΔT correction is applied.

Scientific Context
------------------
Domain: Positional astronomy
Model: Truncated trigonometric series in the Julian century T since J2000.

Moonrise/Moonset
----------------
The moon moves about 13° per day, so the solar hour-angle method is not
used. Topocentric altitude is sampled hourly over the UTC day and the
crossings of the standard altitude are interpolated linearly.

References
----------
- U.S. Naval Observatory. The Astronomical Almanac, section D.
- Meeus, J. (1998). Astronomical Algorithms (2nd ed.), ch. 48 and 50.
- Agafonkin, V. SunCalc: moon illumination and bright-limb angle.
"""

from datetime import datetime
from typing import Optional, Tuple
import numpy as np

from common.constants import GeodeticConstants
from celestial.models import (
    AltAz,
    ApsisEvent,
    CelestialStatus,
    LunarApsis,
    MoonIllumination,
)
from celestial.solar import (
    JD_J2000,
    day_start,
    ecliptic_to_equatorial,
    horizontal,
    instant_from_julian_day,
    obliquity,
    sun_equatorial,
)

EARTH_RADIUS_KM = GeodeticConstants.WGS84_SEMI_MAJOR_AXIS.value / 1000.0
ASTRONOMICAL_UNIT_KM = 149_597_870.7

# Refraction at the horizon
HORIZON_REFRACTION = 0.5667


def _sin_deg(x: float) -> float:
    return float(np.sin(np.radians(x)))


def _cos_deg(x: float) -> float:
    return float(np.cos(np.radians(x)))


def julian_century(jd: float) -> float:
    return (jd - JD_J2000) / 36525.0


def moon_ecliptic(jd: float) -> Tuple[float, float, float]:
    """Geocentric ecliptic longitude, latitude and horizontal parallax.

    Returns
    -------
    Tuple[float, float, float]
        (longitude_deg in [0, 360), latitude_deg, parallax_deg)
    """
    T = julian_century(jd)

    longitude = (
        218.32 + 481267.881 * T
        + 6.29 * _sin_deg(135.0 + 477198.87 * T)
        - 1.27 * _sin_deg(259.3 - 413335.36 * T)
        + 0.66 * _sin_deg(235.7 + 890534.22 * T)
        + 0.21 * _sin_deg(269.9 + 954397.74 * T)
        - 0.19 * _sin_deg(357.5 + 35999.05 * T)
        - 0.11 * _sin_deg(186.5 + 966404.03 * T)
    )
    latitude = (
        5.13 * _sin_deg(93.3 + 483202.02 * T)
        + 0.28 * _sin_deg(228.2 + 960400.89 * T)
        - 0.28 * _sin_deg(318.3 + 6003.15 * T)
        - 0.17 * _sin_deg(217.6 - 407332.21 * T)
    )
    parallax = (
        0.9508
        + 0.0518 * _cos_deg(135.0 + 477198.87 * T)
        + 0.0095 * _cos_deg(259.3 - 413335.36 * T)
        + 0.0078 * _cos_deg(235.7 + 890534.22 * T)
        + 0.0028 * _cos_deg(269.9 + 954397.74 * T)
    )
    return longitude % 360.0, latitude, parallax


def moon_equatorial(jd: float) -> Tuple[float, float, float]:
    """Right ascension (deg), declination (deg) and distance (km) of the moon."""
    longitude, latitude, parallax = moon_ecliptic(jd)
    ra, dec = ecliptic_to_equatorial(longitude, latitude, obliquity(jd))
    distance_km = EARTH_RADIUS_KM / _sin_deg(parallax)
    return ra, dec, distance_km


def moon_distance_m(jd: float) -> float:
    _, _, distance_km = moon_equatorial(jd)
    return distance_km * 1000.0


def moon_position(jd: float, latitude_deg: float, longitude_deg: float) -> AltAz:
    """Topocentric altitude (parallax corrected) and azimuth of the moon."""
    ra, dec, distance_km = moon_equatorial(jd)
    geocentric = horizontal(ra, dec, latitude_deg, longitude_deg, jd)
    parallax = np.arcsin(EARTH_RADIUS_KM / distance_km * _cos_deg(geocentric.altitude))
    return AltAz(
        altitude=geocentric.altitude - float(np.degrees(parallax)),
        azimuth=geocentric.azimuth
    )


def moonrise_altitude(jd: float) -> float:
    """Topocentric altitude of the moon's center when its upper limb rises."""
    _, _, parallax = moon_ecliptic(jd)
    semi_diameter = 0.2725 * parallax
    return -(HORIZON_REFRACTION + semi_diameter)


def moon_times(
    jd: float,
    latitude_deg: float,
    longitude_deg: float
) -> Tuple[Optional[datetime], Optional[datetime], CelestialStatus]:
    """Moonrise, moonset and condition for the UTC day containing ``jd``.

    Only the first rise and first set of the day are reported.
    """
    jd0 = day_start(jd)

    def height(hour: int) -> float:
        t = jd0 + hour / 24.0
        return moon_position(t, latitude_deg, longitude_deg).altitude - moonrise_altitude(t)

    samples = [height(hour) for hour in range(25)]
    rise: Optional[float] = None
    set_: Optional[float] = None

    for hour in range(24):
        h1, h2 = samples[hour], samples[hour + 1]
        if (h1 < 0) == (h2 < 0):
            continue
        fraction = h1 / (h1 - h2)
        crossing = jd0 + (hour + fraction) / 24.0
        if h1 < 0 and rise is None:
            rise = crossing
        elif h1 >= 0 and set_ is None:
            set_ = crossing

    if rise is None and set_ is None:
        status = CelestialStatus.UP_ALL_DAY if samples[0] >= 0 else CelestialStatus.DOWN_ALL_DAY
    elif rise is None:
        status = CelestialStatus.NO_RISE
    elif set_ is None:
        status = CelestialStatus.NO_SET
    else:
        status = CelestialStatus.RISE_AND_SET

    return (
        instant_from_julian_day(rise) if rise is not None else None,
        instant_from_julian_day(set_) if set_ is not None else None,
        status,
    )


# =========================================================================
# Phase
# =========================================================================

PHASE_NAMES = (
    (0.025, "New Moon"),
    (0.225, "Waxing Crescent"),
    (0.275, "First Quarter"),
    (0.475, "Waxing Gibbous"),
    (0.525, "Full Moon"),
    (0.725, "Waning Gibbous"),
    (0.775, "Last Quarter"),
    (0.975, "Waning Crescent"),
)


def phase_name(phase: float) -> str:
    """Conventional name of a lunation phase in [0, 1)."""
    for upper, name in PHASE_NAMES:
        if phase < upper:
            return name
    return "New Moon"


def moon_illumination(jd: float) -> MoonIllumination:
    """Illuminated fraction, phase and bright-limb angle of the moon."""
    ra_s, dec_s, distance_au = sun_equatorial(jd)
    ra_m, dec_m, distance_km = moon_equatorial(jd)
    sun_distance_km = distance_au * ASTRONOMICAL_UNIT_KM

    ra_s, dec_s, ra_m, dec_m = np.radians([ra_s, dec_s, ra_m, dec_m])

    # Geocentric elongation
    elongation = np.arccos(np.clip(
        np.sin(dec_s) * np.sin(dec_m) + np.cos(dec_s) * np.cos(dec_m) * np.cos(ra_s - ra_m),
        -1.0, 1.0
    ))
    # Selenocentric phase angle
    inc = np.arctan2(
        sun_distance_km * np.sin(elongation),
        distance_km - sun_distance_km * np.cos(elongation)
    )
    angle = np.arctan2(
        np.cos(dec_s) * np.sin(ra_s - ra_m),
        np.sin(dec_s) * np.cos(dec_m) - np.cos(dec_s) * np.sin(dec_m) * np.cos(ra_s - ra_m)
    )

    fraction = (1 + np.cos(inc)) / 2
    phase = 0.5 + 0.5 * inc * (-1 if angle < 0 else 1) / np.pi
    phase = float(phase % 1.0)

    return MoonIllumination(
        fraction=float(fraction),
        phase=phase,
        phase_name=phase_name(phase),
        angle=float(np.degrees(angle))
    )


# =========================================================================
# Apsides (Meeus ch. 50, main periodic terms)
# =========================================================================

def decimal_year(jd: float) -> float:
    return 2000.0 + (jd - JD_J2000) / 365.25


def _apsis(k: float) -> Tuple[float, float]:
    """Julian day and distance (m) of the apsis with index ``k``.

    Integer ``k`` is a perigee, ``k + 0.5`` an apogee.
    """
    T = k / 1325.55
    jde = (
        2451534.6698 + 27.55454989 * k
        - 0.0006691 * T**2 - 0.000001098 * T**3 + 0.0000000052 * T**4
    )
    D = 171.9179 + 335.9106046 * k - 0.0100383 * T**2 - 0.00001156 * T**3
    M = 347.3477 + 27.1577721 * k - 0.0008130 * T**2 - 0.0000010 * T**3
    F = 316.6109 + 364.5287911 * k - 0.0125053 * T**2 - 0.0000148 * T**3

    if float(k).is_integer():
        jde += (
            -1.6769 * _sin_deg(2 * D)
            + 0.4589 * _sin_deg(4 * D)
            - 0.1856 * _sin_deg(6 * D)
            + 0.0883 * _sin_deg(8 * D)
            + (-0.0773 + 0.00019 * T) * _sin_deg(2 * D - M)
            + (0.0502 - 0.00013 * T) * _sin_deg(M)
            - 0.0460 * _sin_deg(10 * D)
            + (0.0422 - 0.00011 * T) * _sin_deg(4 * D - M)
            - 0.0256 * _sin_deg(6 * D - M)
            + 0.0253 * _sin_deg(12 * D)
            + 0.0237 * _sin_deg(D)
            + 0.0162 * _sin_deg(8 * D - M)
            - 0.0145 * _sin_deg(14 * D)
            + 0.0129 * _sin_deg(2 * F)
            - 0.0112 * _sin_deg(3 * D)
            - 0.0104 * _sin_deg(10 * D - M)
        )
        parallax_arcsec = (
            3629.215
            + 63.224 * _cos_deg(2 * D)
            - 6.990 * _cos_deg(4 * D)
            + (2.834 - 0.0071 * T) * _cos_deg(2 * D - M)
            + 1.927 * _cos_deg(6 * D)
            - 1.263 * _cos_deg(D)
            - 0.702 * _cos_deg(8 * D)
            + (0.696 - 0.0017 * T) * _cos_deg(M)
            - 0.690 * _cos_deg(2 * F)
            + (-0.629 + 0.0016 * T) * _cos_deg(4 * D - M)
        )
    else:
        jde += (
            0.4392 * _sin_deg(2 * D)
            + 0.0684 * _sin_deg(4 * D)
            + (0.0456 - 0.00011 * T) * _sin_deg(M)
            + (0.0426 - 0.00011 * T) * _sin_deg(2 * D - M)
            + 0.0212 * _sin_deg(2 * F)
            - 0.0189 * _sin_deg(D)
            + 0.0144 * _sin_deg(6 * D)
            + 0.0113 * _sin_deg(4 * D - M)
            + 0.0047 * _sin_deg(2 * D + 2 * F)
            + 0.0036 * _sin_deg(D + M)
            + 0.0035 * _sin_deg(8 * D)
            + 0.0034 * _sin_deg(6 * D - M)
            - 0.0034 * _sin_deg(2 * D - 2 * F)
        )
        parallax_arcsec = (
            3245.251
            - 9.147 * _cos_deg(2 * D)
            - 0.841 * _cos_deg(D)
            + 0.697 * _cos_deg(2 * F)
            + (-0.656 + 0.0016 * T) * _cos_deg(M)
            + 0.355 * _cos_deg(4 * D)
            + 0.159 * _cos_deg(2 * D - M)
        )

    distance_km = EARTH_RADIUS_KM / _sin_deg(parallax_arcsec / 3600.0)
    return jde, distance_km * 1000.0


def lunar_apsis(jd: float, apogee: bool = False) -> LunarApsis:
    """Most recent and upcoming perigee (or apogee) around ``jd``."""
    offset = 0.5 if apogee else 0.0
    k = np.floor((decimal_year(jd) - 1999.97) * 13.2555) + offset

    # The linear estimate can be off by one cycle either way
    candidates = [_apsis(k + step) for step in (-2, -1, 0, 1, 2)]
    last = max((c for c in candidates if c[0] <= jd), key=lambda c: c[0])
    upcoming = min((c for c in candidates if c[0] > jd), key=lambda c: c[0])

    return LunarApsis(
        last=ApsisEvent(time=instant_from_julian_day(last[0]), distance_m=last[1]),
        next=ApsisEvent(time=instant_from_julian_day(upcoming[0]), distance_m=upcoming[1])
    )
