"""
Coordinate String Parsing Boundary.

Parsing is delegated to a CoordinateParser collaborator that reports a
ParseResult instead of raising. On success the boundary builds a fresh,
fully loaded Position from the parsed value, reapplies the geodetic height
for ECEF input, and stamps the detected format on the Position.

The bundled DecimalDegreeParser understands:

- signed decimal pairs: ``"25.5, -30.25"``
- decimal pairs with hemisphere letters: ``"N 25.5 W 30.25"``, ``"25.5S 30E"``
- Cartesian triples: ``"0.5 0.5 0.7071"`` (unit sphere) or
  ``"4517590.9, 1250156.9, 4307757.4"`` (ECEF meters)
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol
import numpy as np

from common.logging_config import get_logger
from geospatial.coordinate_models import (
    EllipsoidParameters,
    WGS84Ellipsoid,
    ecef_to_geodetic,
    unit_vector_to_geodetic,
)
from positioning.load_policy import LoadPolicy

logger = get_logger(__name__)

# Vectors longer than this are taken as ECEF meters
ECEF_MAGNITUDE_THRESHOLD = 1000.0


class CartesianKind(Enum):
    """Cartesian flavour of a parsed triple."""
    CARTESIAN = "cartesian"
    ECEF = "ecef"


class FormatTag(Enum):
    """Format detected by the parser."""
    DECIMAL = "decimal"
    DECIMAL_HEMISPHERE = "decimal_hemisphere"
    CARTESIAN = "cartesian"
    ECEF = "ecef"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one coordinate string.

    Attributes
    ----------
    success : bool
        Whether a valid geodetic value was produced.
    latitude, longitude : float, optional
        Parsed value in signed decimal degrees.
    cartesian_kind : CartesianKind, optional
        Set when the input was a Cartesian triple.
    format_tag : FormatTag, optional
        Detected input format.
    geodetic_height : float, optional
        Height above the ellipsoid, for ECEF input.
    """
    success: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    cartesian_kind: Optional[CartesianKind] = None
    format_tag: Optional[FormatTag] = None
    geodetic_height: Optional[float] = None

    @classmethod
    def failure(cls) -> "ParseResult":
        return cls(success=False)


class CoordinateParser(Protocol):
    """Collaborator turning text into a geodetic value.

    ECEF input is to be read on ``ellipsoid``, the datum of the Position
    being built.
    """

    def parse(
        self,
        text: str,
        cartesian_kind: Optional[CartesianKind] = None,
        ellipsoid: EllipsoidParameters = WGS84Ellipsoid
    ) -> ParseResult:
        ...


_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
_SEPARATOR = r"(?:\s*[,;]\s*|\s+)"
_DEGREE = r"\s*(?:°|º|deg)?"

_PAIR = re.compile(
    rf"^\s*(?P<lat_prefix>[NSns])?\s*(?P<lat>{_NUMBER}){_DEGREE}\s*(?P<lat_suffix>[NSns])?"
    rf"{_SEPARATOR}"
    rf"(?P<lon_prefix>[EWew])?\s*(?P<lon>{_NUMBER}){_DEGREE}\s*(?P<lon_suffix>[EWew])?\s*$"
)
_TRIPLE = re.compile(
    rf"^\s*(?P<x>{_NUMBER}){_SEPARATOR}(?P<y>{_NUMBER}){_SEPARATOR}(?P<z>{_NUMBER})\s*(?:m)?\s*$"
)


class DecimalDegreeParser:
    """Parser for decimal-degree pairs and Cartesian triples.

    Examples
    --------
    >>> result = DecimalDegreeParser().parse("25.5S, 30E")
    >>> result.latitude, result.longitude, result.format_tag.value
    (-25.5, 30.0, 'decimal_hemisphere')
    """

    def parse(
        self,
        text: str,
        cartesian_kind: Optional[CartesianKind] = None,
        ellipsoid: EllipsoidParameters = WGS84Ellipsoid
    ) -> ParseResult:
        if not isinstance(text, str):
            return ParseResult.failure()

        match = _PAIR.match(text)
        if match is not None:
            return self._parse_pair(match)

        match = _TRIPLE.match(text)
        if match is not None:
            return self._parse_triple(match, cartesian_kind, ellipsoid)

        return ParseResult.failure()

    def _parse_pair(self, match) -> ParseResult:
        values = {}
        hemisphere_used = False
        for axis, negative, limit in (("lat", "S", 90.0), ("lon", "W", 180.0)):
            prefix = match.group(f"{axis}_prefix")
            suffix = match.group(f"{axis}_suffix")
            value = float(match.group(axis))

            if prefix and suffix:
                return ParseResult.failure()
            letter = (prefix or suffix or "").upper()
            if letter:
                # A hemisphere letter carries the sign
                if value < 0:
                    return ParseResult.failure()
                hemisphere_used = True
                if letter == negative:
                    value = -value

            if not np.isfinite(value) or abs(value) > limit:
                return ParseResult.failure()
            values[axis] = value

        return ParseResult(
            success=True,
            latitude=values["lat"],
            longitude=values["lon"],
            format_tag=FormatTag.DECIMAL_HEMISPHERE if hemisphere_used else FormatTag.DECIMAL
        )

    def _parse_triple(
        self,
        match,
        cartesian_kind: Optional[CartesianKind],
        ellipsoid: EllipsoidParameters
    ) -> ParseResult:
        x, y, z = (float(match.group(axis)) for axis in ("x", "y", "z"))
        if not all(np.isfinite(v) for v in (x, y, z)):
            return ParseResult.failure()

        magnitude = float(np.sqrt(x**2 + y**2 + z**2))
        if magnitude == 0.0:
            return ParseResult.failure()

        if cartesian_kind is None:
            cartesian_kind = (
                CartesianKind.ECEF if magnitude > ECEF_MAGNITUDE_THRESHOLD
                else CartesianKind.CARTESIAN
            )

        if cartesian_kind is CartesianKind.ECEF:
            lat_rad, lon_rad, height = ecef_to_geodetic(x, y, z, ellipsoid)
            return ParseResult(
                success=True,
                latitude=float(np.clip(np.degrees(lat_rad), -90.0, 90.0)),
                longitude=float(np.degrees(lon_rad)),
                cartesian_kind=CartesianKind.ECEF,
                format_tag=FormatTag.ECEF,
                geodetic_height=height
            )

        lat_rad, lon_rad = unit_vector_to_geodetic(x, y, z)
        return ParseResult(
            success=True,
            latitude=float(np.degrees(lat_rad)),
            longitude=float(np.degrees(lon_rad)),
            cartesian_kind=CartesianKind.CARTESIAN,
            format_tag=FormatTag.CARTESIAN
        )


DEFAULT_PARSER = DecimalDegreeParser()


def try_parse(
    text: str,
    parser: Optional[CoordinateParser] = None,
    cartesian_kind: Optional[CartesianKind] = None,
    **kwargs
):
    """Parse ``text`` into a new Position on the default instant.

    Returns
    -------
    Position or None
        None when the text does not describe a valid geodetic value.
    """
    return try_parse_with_instant(text, None, parser=parser, cartesian_kind=cartesian_kind, **kwargs)


def try_parse_with_instant(
    text: str,
    instant: Optional[datetime],
    parser: Optional[CoordinateParser] = None,
    cartesian_kind: Optional[CartesianKind] = None,
    **kwargs
):
    """Parse ``text`` into a new, fully loaded Position at ``instant``.

    Parameters
    ----------
    text : str
        Coordinate string.
    instant : datetime, optional
        Observation instant of the new Position.
    parser : CoordinateParser, optional
        Parser collaborator (default: DecimalDegreeParser).
    cartesian_kind : CartesianKind, optional
        How to read a Cartesian triple; detected when omitted.
    **kwargs
        Passed to the Position constructor (e.g. ``celestial_engine``).
        An ``ellipsoid`` is also handed to the parser, so ECEF input is
        read on the datum of the new Position.

    Returns
    -------
    Position or None
    """
    from positioning.position import Position

    parser = parser if parser is not None else DEFAULT_PARSER
    ellipsoid = kwargs.get("ellipsoid")
    ellipsoid = ellipsoid if ellipsoid is not None else WGS84Ellipsoid
    try:
        result = parser.parse(text, cartesian_kind, ellipsoid)
    except Exception as exc:
        logger.debug(f"Parser failed on coordinate {text!r}: {exc}")
        return None

    if not result.success or result.latitude is None or result.longitude is None:
        logger.debug(f"Could not parse coordinate {text!r}")
        return None
    if not (
        np.isfinite(result.latitude) and np.isfinite(result.longitude)
        and abs(result.latitude) <= 90.0 and abs(result.longitude) <= 180.0
    ):
        logger.debug(f"Parsed coordinate {text!r} is out of range")
        return None

    position = Position(
        result.latitude,
        result.longitude,
        instant,
        LoadPolicy.full(),
        **kwargs
    )
    if result.cartesian_kind is CartesianKind.ECEF and result.geodetic_height is not None:
        position.set_geodetic_height(result.geodetic_height)
    position._parse_format = result.format_tag
    return position
