"""
Lunations, Eclipses and Full Moon Names.

Eclipses are located with the method of Meeus ch. 54: each new (full) moon
near a lunar node is tested with the shadow-axis distance gamma and the
umbral radius u. Results are geocentric and global; whether an eclipse is
visible from a given site is not evaluated.

References
----------
- Meeus, J. (1998). Astronomical Algorithms (2nd ed.), ch. 49 and 54.
"""

from datetime import datetime
from typing import Optional, Tuple
import numpy as np

from celestial.models import Eclipse, EclipseEvents
from celestial.lunar import decimal_year
from celestial.solar import instant_from_julian_day

# Lunations searched on each side of the instant
MAX_LUNATIONS = 60

FULL_MOON_NAMES = (
    "Wolf Moon", "Snow Moon", "Worm Moon", "Pink Moon", "Flower Moon",
    "Strawberry Moon", "Buck Moon", "Sturgeon Moon", "Corn Moon",
    "Hunter's Moon", "Beaver Moon", "Cold Moon",
)


def _sin(x: float) -> float:
    return float(np.sin(np.radians(x)))


def _cos(x: float) -> float:
    return float(np.cos(np.radians(x)))


def _lunation_arguments(k: float):
    T = k / 1236.85
    E = 1 - 0.002516 * T - 0.0000074 * T**2
    M = 2.5534 + 29.10535670 * k - 0.0000014 * T**2 - 0.00000011 * T**3
    Mp = 201.5643 + 385.81693528 * k + 0.0107582 * T**2 + 0.00001238 * T**3
    F = 160.7108 + 390.67050284 * k - 0.0016118 * T**2 - 0.00000227 * T**3
    omega = 124.7746 - 1.56375588 * k + 0.0020672 * T**2 + 0.00000215 * T**3
    jde = 2451550.09766 + 29.530588861 * k + 0.00015437 * T**2
    return T, E, M, Mp, F, omega, jde


def lunation_time(k: float) -> float:
    """Julian day of the new (integer ``k``) or full (``k + 0.5``) moon.

    Main periodic terms only, accurate to a few minutes.
    """
    _, E, M, Mp, F, omega, jde = _lunation_arguments(k)
    if float(k).is_integer():
        jde += (
            -0.40720 * _sin(Mp) + 0.17241 * E * _sin(M) + 0.01608 * _sin(2 * Mp)
            + 0.01039 * _sin(2 * F) + 0.00739 * E * _sin(Mp - M)
            - 0.00514 * E * _sin(Mp + M) + 0.00208 * E**2 * _sin(2 * M)
        )
    else:
        jde += (
            -0.40614 * _sin(Mp) + 0.17302 * E * _sin(M) + 0.01614 * _sin(2 * Mp)
            + 0.01043 * _sin(2 * F) + 0.00734 * E * _sin(Mp - M)
            - 0.00515 * E * _sin(Mp + M) + 0.00209 * E**2 * _sin(2 * M)
        )
    jde -= 0.00017 * _sin(omega)
    return jde


def lunation_index(jd: float) -> float:
    """Approximate (fractional) lunation number k of a Julian day."""
    return (decimal_year(jd) - 2000.0) * 12.3685


def _eclipse_at(k: float) -> Optional[Tuple[float, Eclipse]]:
    """Eclipse at lunation ``k``, or None when the moon is too far from a node."""
    T, E, M, Mp, F, omega, jde = _lunation_arguments(k)

    if np.abs(_sin(F)) > 0.36:
        return None

    F1 = F - 0.02665 * _sin(omega)
    A1 = 299.77 + 0.107408 * k - 0.009173 * T**2
    solar = float(k).is_integer()

    if solar:
        jde += -0.4075 * _sin(Mp) + 0.1721 * E * _sin(M)
    else:
        jde += -0.4065 * _sin(Mp) + 0.1727 * E * _sin(M)

    jde += (
        0.0161 * _sin(2 * Mp) - 0.0097 * _sin(2 * F1)
        + 0.0073 * E * _sin(Mp - M) - 0.0050 * E * _sin(Mp + M)
        - 0.0023 * _sin(Mp - 2 * F1) + 0.0021 * E * _sin(2 * M)
        + 0.0012 * _sin(Mp + 2 * F1) + 0.0006 * E * _sin(2 * Mp + M)
        - 0.0004 * _sin(3 * Mp) - 0.0003 * E * _sin(M + 2 * F1)
        + 0.0003 * _sin(A1) - 0.0002 * E * _sin(M - 2 * F1)
        - 0.0002 * E * _sin(2 * Mp - M) - 0.0002 * _sin(omega)
    )

    P = (
        0.2070 * E * _sin(M) + 0.0024 * E * _sin(2 * M) - 0.0392 * _sin(Mp)
        + 0.0116 * _sin(2 * Mp) - 0.0073 * E * _sin(Mp + M)
        + 0.0067 * E * _sin(Mp - M) + 0.0118 * _sin(2 * F1)
    )
    Q = (
        5.2207 - 0.0048 * E * _cos(M) + 0.0020 * E * _cos(2 * M)
        - 0.3299 * _cos(Mp) - 0.0060 * E * _cos(Mp + M)
        + 0.0041 * E * _cos(Mp - M)
    )
    W = np.abs(_cos(F1))
    gamma = (P * _cos(F1) + Q * _sin(F1)) * (1 - 0.0048 * W)
    u = (
        0.0059 + 0.0046 * E * _cos(M) - 0.0182 * _cos(Mp)
        + 0.0004 * _cos(2 * Mp) - 0.0005 * _cos(M + Mp)
    )
    abs_gamma = np.abs(gamma)

    if solar:
        if abs_gamma > 1.5433 + u:
            return None
        magnitude: Optional[float] = None
        if abs_gamma < 0.9972:
            if u < 0:
                kind = "Total"
            elif u > 0.0047:
                kind = "Annular"
            else:
                omega_limit = 0.00464 * np.sqrt(1 - gamma**2)
                kind = "Hybrid" if u < omega_limit else "Annular"
        else:
            kind = "Partial"
            magnitude = float((1.5433 + u - abs_gamma) / (0.5461 + 2 * u))
    else:
        penumbral = (1.5573 + u - abs_gamma) / 0.5450
        umbral = (1.0128 - u - abs_gamma) / 0.5450
        if penumbral <= 0:
            return None
        if umbral >= 1:
            kind, magnitude = "Total", float(umbral)
        elif umbral > 0:
            kind, magnitude = "Partial", float(umbral)
        else:
            kind, magnitude = "Penumbral", float(penumbral)

    return jde, Eclipse(
        maximum=instant_from_julian_day(jde),
        kind=kind,
        gamma=float(gamma),
        magnitude=magnitude
    )


def _search(k: float, step: int, jd: float, after: bool) -> Optional[Eclipse]:
    for _ in range(MAX_LUNATIONS):
        found = _eclipse_at(k)
        if found is not None:
            maximum_jd, eclipse = found
            if (maximum_jd > jd) if after else (maximum_jd <= jd):
                return eclipse
        k += step
    return None


def eclipses(jd: float, solar: bool = True) -> EclipseEvents:
    """Most recent and upcoming solar (or lunar) eclipse around ``jd``."""
    offset = 0.0 if solar else 0.5
    k = np.floor(lunation_index(jd)) + offset
    return EclipseEvents(
        last=_search(k + 1, -1, jd, after=False),
        next=_search(k - 1, 1, jd, after=True)
    )


def _nearest_full_moon(jd: float) -> float:
    k = np.floor(lunation_index(jd)) + 0.5
    return min(
        (lunation_time(k + step) for step in (-2, -1, 0, 1)),
        key=lambda t: np.abs(t - jd)
    )


def full_moon_name(jd: float) -> str:
    """Traditional name of the full moon nearest ``jd``.

    The second full moon within one calendar month (UTC) is a Blue Moon.
    """
    full = _nearest_full_moon(jd)
    this_month = instant_from_julian_day(full)
    previous: datetime = instant_from_julian_day(lunation_time(_lunation_k(full) - 1))
    if (previous.year, previous.month) == (this_month.year, this_month.month):
        return "Blue Moon"
    return FULL_MOON_NAMES[this_month.month - 1]


def _lunation_k(full_moon_jd: float) -> float:
    return float(np.round(lunation_index(full_moon_jd) - 0.5) + 0.5)
