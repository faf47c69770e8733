"""
Coordinate Parts.

A CoordinatePart is one axis (latitude or longitude) of a geodetic value,
available both as a signed decimal degree and as degree/minute/second/
hemisphere sub-parts. The two forms always agree: setting the decimal
recomputes the sub-parts and setting any sub-part recomputes the decimal.

A part held by a Position forwards every mutation to its owner, so the
change is validated and propagated to the derived representations like any
other geodetic change. A standalone part simply updates itself.
"""

import weakref
from enum import Enum
from typing import Optional, Tuple, Union
import numpy as np

from common.exceptions import InvalidRange


class CoordinateType(Enum):
    """Axis of a coordinate part."""
    LATITUDE = "latitude"
    LONGITUDE = "longitude"

    @property
    def limit(self) -> float:
        return 90.0 if self is CoordinateType.LATITUDE else 180.0

    @property
    def hemispheres(self) -> Tuple["Hemisphere", "Hemisphere"]:
        """(positive, negative) hemisphere of the axis."""
        if self is CoordinateType.LATITUDE:
            return Hemisphere.NORTH, Hemisphere.SOUTH
        return Hemisphere.EAST, Hemisphere.WEST


class Hemisphere(str, Enum):
    NORTH = "N"
    SOUTH = "S"
    EAST = "E"
    WEST = "W"


# (degrees, minutes, seconds, hemisphere)
DmsParts = Tuple[int, int, float, Hemisphere]

SECONDS_PRECISION = 9


def validate_decimal(value: float, kind: CoordinateType) -> float:
    """Check a signed decimal degree against the range of its axis.

    Raises
    ------
    InvalidRange
        If the value is not finite or outside [-limit, limit].
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidRange(f"{kind.value.capitalize()} {value!r} is not a number") from e
    if not np.isfinite(value) or abs(value) > kind.limit:
        raise InvalidRange(
            f"{kind.value.capitalize()} {value} outside [-{kind.limit:g}, {kind.limit:g}]"
        )
    return value


def decimal_to_dms(value: float, kind: CoordinateType) -> DmsParts:
    """Split a signed decimal degree into unsigned D/M/S and a hemisphere."""
    positive, negative = kind.hemispheres
    hemisphere = negative if value < 0 else positive

    magnitude = abs(value)
    degrees = int(magnitude)
    minutes_float = (magnitude - degrees) * 60.0
    minutes = int(minutes_float)
    seconds = round((minutes_float - minutes) * 60.0, SECONDS_PRECISION)

    # carry rounding overflow
    if seconds >= 60.0:
        seconds -= 60.0
        minutes += 1
    if minutes >= 60:
        minutes -= 60
        degrees += 1

    return degrees, minutes, seconds, hemisphere


def dms_to_decimal(parts: DmsParts, kind: CoordinateType) -> float:
    """Combine D/M/S sub-parts into a validated signed decimal degree."""
    degrees, minutes, seconds, hemisphere = parts
    if not 0 <= degrees <= kind.limit:
        raise InvalidRange(f"Degrees {degrees} outside [0, {kind.limit:g}]")
    if not 0 <= minutes < 60:
        raise InvalidRange(f"Minutes {minutes} outside [0, 60)")
    if not (np.isfinite(seconds) and 0 <= seconds < 60):
        raise InvalidRange(f"Seconds {seconds} outside [0, 60)")
    if hemisphere not in kind.hemispheres:
        raise InvalidRange(f"Hemisphere {hemisphere} is not valid for {kind.value}")

    magnitude = degrees + minutes / 60.0 + seconds / 3600.0
    if magnitude > kind.limit:
        raise InvalidRange(f"{degrees}° {minutes}' {seconds}\" exceeds {kind.limit:g}°")

    sign = -1.0 if hemisphere is kind.hemispheres[1] else 1.0
    return sign * magnitude


def _as_hemisphere(value: Union[str, Hemisphere]) -> Hemisphere:
    if isinstance(value, Hemisphere):
        return value
    try:
        return Hemisphere(str(value).strip().upper())
    except ValueError as e:
        raise InvalidRange(f"Unknown hemisphere {value!r}") from e


class CoordinatePart:
    """One axis of a geodetic position.

    Parameters
    ----------
    value : float
        Signed decimal degrees.
    kind : CoordinateType
        Latitude or longitude.
    owner : object, optional
        Position holding this part. Mutations are forwarded to it.

    Raises
    ------
    InvalidRange
        If ``value`` is outside the axis range.

    Examples
    --------
    >>> part = CoordinatePart(-25.5, CoordinateType.LONGITUDE)
    >>> part.degrees, part.minutes, part.hemisphere.value
    (25, 30, 'W')
    >>> part.hemisphere = 'E'
    >>> part.decimal_degree
    25.5
    """

    def __init__(
        self,
        value: float = 0.0,
        kind: CoordinateType = CoordinateType.LATITUDE,
        owner=None
    ):
        self._kind = kind
        self._owner = weakref.ref(owner) if owner is not None else None
        self._assign(validate_decimal(value, kind))

    @property
    def kind(self) -> CoordinateType:
        return self._kind

    @property
    def owner(self):
        """Owning Position, or None for a standalone part."""
        return self._owner() if self._owner is not None else None

    # ---------------------------------------------------------------------
    # Decimal form
    # ---------------------------------------------------------------------

    @property
    def decimal_degree(self) -> float:
        return self._decimal

    @decimal_degree.setter
    def decimal_degree(self, value: float):
        self._update(validate_decimal(value, self._kind), None)

    def to_radians(self) -> float:
        return float(np.radians(self._decimal))

    # ---------------------------------------------------------------------
    # Sub-parts
    # ---------------------------------------------------------------------

    @property
    def degrees(self) -> int:
        return self._parts[0]

    @degrees.setter
    def degrees(self, value: int):
        if int(value) != value:
            raise InvalidRange(f"Degrees {value} must be a whole number")
        self._set_parts((int(value),) + self._parts[1:])

    @property
    def minutes(self) -> int:
        return self._parts[1]

    @minutes.setter
    def minutes(self, value: int):
        if int(value) != value:
            raise InvalidRange(f"Minutes {value} must be a whole number")
        degrees, _, seconds, hemisphere = self._parts
        self._set_parts((degrees, int(value), seconds, hemisphere))

    @property
    def seconds(self) -> float:
        return self._parts[2]

    @seconds.setter
    def seconds(self, value: float):
        degrees, minutes, _, hemisphere = self._parts
        self._set_parts((degrees, minutes, float(value), hemisphere))

    @property
    def hemisphere(self) -> Hemisphere:
        return self._parts[3]

    @hemisphere.setter
    def hemisphere(self, value: Union[str, Hemisphere]):
        degrees, minutes, seconds, _ = self._parts
        self._set_parts((degrees, minutes, seconds, _as_hemisphere(value)))

    def dms(self) -> DmsParts:
        return self._parts

    # ---------------------------------------------------------------------
    # Internal
    # ---------------------------------------------------------------------

    def _set_parts(self, parts: DmsParts):
        self._update(dms_to_decimal(parts, self._kind), parts)

    def _update(self, decimal: float, parts: Optional[DmsParts]):
        owner = self.owner
        if owner is None:
            self._assign(decimal, parts)
        else:
            owner._update_part(self._kind, decimal, parts)

    def _assign(self, decimal: float, parts: Optional[DmsParts] = None):
        """Store a validated value; the owner calls this on commit."""
        self._decimal = float(decimal)
        self._parts = parts if parts is not None else decimal_to_dms(self._decimal, self._kind)

    def detached(self) -> "CoordinatePart":
        """Standalone copy of this part, not bound to any owner."""
        part = CoordinatePart(self._decimal, self._kind)
        part._parts = self._parts
        return part

    def __float__(self) -> float:
        return self._decimal

    def __eq__(self, other) -> bool:
        if isinstance(other, CoordinatePart):
            return self._kind is other._kind and self._decimal == other._decimal
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        degrees, minutes, seconds, hemisphere = self._parts
        return (
            f"CoordinatePart({self._kind.value}, {self._decimal!r}, "
            f"{hemisphere.value} {degrees}° {minutes}' {seconds:g}\")"
        )
