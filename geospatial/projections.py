"""
Grid Projections: UTM, UPS and MGRS.

This module converts geodetic positions to the military/civil grid systems
and back. Every conversion is performed on an explicit reference ellipsoid
so that a Position on a non-WGS84 datum gets grid coordinates for that
datum.

Scientific Context
------------------
Domain: Cartography, mathematical geodesy
Model: Transverse Mercator (UTM) between 80°S and 84°N, Polar
Stereographic (UPS) poleward of those limits.

Zone Exceptions
---------------
- Norway: zone 32V is widened to cover 3°E-12°E between 56°N and 64°N.
- Svalbard: between 72°N and 84°N only the odd zones 31, 33, 35 and 37
  are used, with widened boundaries at 9°E, 21°E and 33°E.

MGRS
----
The 100 km square identifier uses the "AA" lettering scheme: column letters
cycle through three sets of eight letters by zone, row letters cycle through
twenty letters and are offset by five in even zones.

Implementation
--------------
This module wraps `pyproj` for the projection mathematics. Transformers are
cached by projection definition, since building a PROJ pipeline is far more
expensive than applying one.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
- NGA (2014). NGA.SIG.0012: The Universal Grids and the Transverse Mercator
  and Polar Stereographic Map Projections.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple, Optional
import numpy as np

from pyproj import CRS, Transformer

from common.exceptions import InvalidRange
from geospatial.coordinate_models import WGS84Ellipsoid, EllipsoidParameters


UTM_SOUTH_LIMIT = -80.0
UTM_NORTH_LIMIT = 84.0

LATITUDE_BANDS = "CDEFGHJKLMNPQRSTUVWX"

MGRS_COLUMN_SETS = ("ABCDEFGH", "JKLMNPQR", "STUVWXYZ")
MGRS_ROW_LETTERS = "ABCDEFGHJKLMNPQRSTUV"


@dataclass(frozen=True)
class MgrsCoordinate:
    """MGRS reference of a UTM position.

    Attributes
    ----------
    zone : int
        UTM zone number.
    band : str
        Latitude band letter.
    square_id : str
        Two-letter 100 km square identifier.
    easting, northing : int
        Meters within the 100 km square (five digits).
    """
    zone: int
    band: str
    square_id: str
    easting: int
    northing: int

    @property
    def label(self) -> str:
        """Full MGRS reference, e.g. ``'35R LK 03516 65493'``."""
        return (
            f"{self.zone}{self.band} {self.square_id} "
            f"{self.easting:05d} {self.northing:05d}"
        )


@dataclass(frozen=True)
class GridCoordinate:
    """A UTM or UPS grid position.

    Attributes
    ----------
    system : str
        "UTM" or "UPS".
    zone : int
        UTM zone number, 0 for UPS.
    band : str
        Latitude band letter (A/B/Y/Z for UPS).
    hemisphere : str
        "N" or "S".
    easting, northing : float
        Grid coordinates in meters.
    mgrs : MgrsCoordinate, optional
        MGRS reference, present for UTM positions only.
    ellipsoid_name : str
        Name of the ellipsoid the coordinates were computed on.
    """
    system: str
    zone: int
    band: str
    hemisphere: str
    easting: float
    northing: float
    mgrs: Optional[MgrsCoordinate] = None
    ellipsoid_name: str = "WGS84"

    @property
    def is_polar(self) -> bool:
        return self.system == "UPS"

    @property
    def label(self) -> str:
        zone = "" if self.is_polar else str(self.zone)
        return f"{zone}{self.band} {self.easting:.0f}mE {self.northing:.0f}mN"


def utm_zone(latitude_deg: float, longitude_deg: float) -> int:
    """Compute the UTM zone number of a position.

    Parameters
    ----------
    latitude_deg, longitude_deg : float
        Position in degrees.

    Returns
    -------
    int
        Zone number in 1-60, with the Norway and Svalbard exceptions applied.
    """
    zone = int(np.floor((longitude_deg + 180.0) / 6.0)) + 1
    zone = min(max(zone, 1), 60)

    # Norway
    if 56.0 <= latitude_deg < 64.0 and 3.0 <= longitude_deg < 12.0:
        return 32

    # Svalbard
    if 72.0 <= latitude_deg <= 84.0:
        if 0.0 <= longitude_deg < 9.0:
            return 31
        if 9.0 <= longitude_deg < 21.0:
            return 33
        if 21.0 <= longitude_deg < 33.0:
            return 35
        if 33.0 <= longitude_deg < 42.0:
            return 37

    return zone


def latitude_band(latitude_deg: float, longitude_deg: float = 0.0) -> str:
    """Latitude band letter of a position.

    UTM latitudes use C through X in 8° bands, X extended to 84°N. Polar
    latitudes use A/B in the south and Y/Z in the north, split at the
    prime meridian.
    """
    if latitude_deg < UTM_SOUTH_LIMIT:
        return "A" if longitude_deg < 0 else "B"
    if latitude_deg > UTM_NORTH_LIMIT:
        return "Y" if longitude_deg < 0 else "Z"
    index = int((latitude_deg + 80.0) // 8.0)
    return LATITUDE_BANDS[min(max(index, 0), len(LATITUDE_BANDS) - 1)]


def mgrs_from_grid(
    zone: int,
    band: str,
    easting: float,
    northing: float
) -> MgrsCoordinate:
    """Build the MGRS reference of a UTM coordinate.

    Parameters
    ----------
    zone : int
        UTM zone number.
    band : str
        Latitude band letter.
    easting, northing : float
        UTM coordinates in meters (southern northings include the
        10 000 km false northing).

    Returns
    -------
    MgrsCoordinate
        Reference with the "AA" scheme 100 km square identifier.
    """
    column_set = MGRS_COLUMN_SETS[(zone - 1) % 3]
    column_index = int(easting // 100000) - 1
    column = column_set[min(max(column_index, 0), len(column_set) - 1)]

    row_index = int(northing // 100000) % 20
    if zone % 2 == 0:
        row_index = (row_index + 5) % 20
    row = MGRS_ROW_LETTERS[row_index]

    return MgrsCoordinate(
        zone=zone,
        band=band,
        square_id=column + row,
        easting=int(np.floor(easting)) % 100000,
        northing=int(np.floor(northing)) % 100000
    )


class GridProjection(ABC):
    """Base class of grid projections defined on an explicit ellipsoid.

    Subclasses provide the PROJ definition; this class builds the cached
    transformers around it.
    """

    def __init__(self, ellipsoid: EllipsoidParameters = WGS84Ellipsoid):
        self._ellipsoid = ellipsoid

    @property
    @abstractmethod
    def system(self) -> str:
        """Grid system name."""
        pass

    @property
    @abstractmethod
    def proj4_string(self) -> str:
        """PROJ.4 definition string."""
        pass

    @property
    def ellipsoid(self) -> EllipsoidParameters:
        return self._ellipsoid

    def _ellipsoid_terms(self) -> str:
        return f"+a={self._ellipsoid.a!r} +rf={self._ellipsoid.inverse_flattening!r}"

    @property
    def geographic_proj4(self) -> str:
        return f"+proj=longlat {self._ellipsoid_terms()} +no_defs"

    def to_projected(self, lat_deg: float, lon_deg: float) -> Tuple[float, float]:
        """Transform geodetic degrees to (easting, northing) in meters."""
        to_proj, _ = _transformers(self.geographic_proj4, self.proj4_string)
        x, y = to_proj.transform(lon_deg, lat_deg)
        return float(x), float(y)

    def to_geodetic(self, easting: float, northing: float) -> Tuple[float, float]:
        """Transform (easting, northing) to (lat_deg, lon_deg)."""
        _, to_geo = _transformers(self.geographic_proj4, self.proj4_string)
        lon_deg, lat_deg = to_geo.transform(easting, northing)
        return float(lat_deg), float(lon_deg)


class UniversalTransverseMercator(GridProjection):
    """One UTM zone on a given ellipsoid.

    Parameters
    ----------
    zone : int
        Zone number 1-60.
    south : bool
        Use the southern false northing of 10 000 km.
    ellipsoid : EllipsoidParameters
        Reference ellipsoid.
    """

    def __init__(
        self,
        zone: int,
        south: bool = False,
        ellipsoid: EllipsoidParameters = WGS84Ellipsoid
    ):
        if not 1 <= zone <= 60:
            raise InvalidRange(f"UTM zone {zone} outside 1-60")
        super().__init__(ellipsoid)
        self._zone = zone
        self._south = south

    @property
    def system(self) -> str:
        return "UTM"

    @property
    def proj4_string(self) -> str:
        south = " +south" if self._south else ""
        return f"+proj=utm +zone={self._zone}{south} {self._ellipsoid_terms()} +units=m +no_defs"


class UniversalPolarStereographic(GridProjection):
    """UPS projection of one polar cap on a given ellipsoid."""

    def __init__(self, south: bool = False, ellipsoid: EllipsoidParameters = WGS84Ellipsoid):
        super().__init__(ellipsoid)
        self._south = south

    @property
    def system(self) -> str:
        return "UPS"

    @property
    def proj4_string(self) -> str:
        south = " +south" if self._south else ""
        return f"+proj=ups{south} {self._ellipsoid_terms()} +units=m +no_defs"


@lru_cache(maxsize=128)
def _transformers(geographic_proj4: str, projected_proj4: str) -> Tuple[Transformer, Transformer]:
    crs_geo = CRS.from_proj4(geographic_proj4)
    crs_proj = CRS.from_proj4(projected_proj4)
    return (
        Transformer.from_crs(crs_geo, crs_proj, always_xy=True),
        Transformer.from_crs(crs_proj, crs_geo, always_xy=True),
    )


def geodetic_to_grid(
    latitude_deg: float,
    longitude_deg: float,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid
) -> GridCoordinate:
    """Convert a geodetic position to UTM (or UPS near the poles).

    Parameters
    ----------
    latitude_deg, longitude_deg : float
        Position in degrees.
    ellipsoid : EllipsoidParameters
        Reference ellipsoid.

    Returns
    -------
    GridCoordinate
        Grid position, with an MGRS reference for UTM positions.

    Examples
    --------
    >>> grid = geodetic_to_grid(25.0, 25.0)
    >>> grid.zone, grid.band
    (35, 'R')
    """
    hemisphere = "N" if latitude_deg >= 0 else "S"
    south = hemisphere == "S"
    band = latitude_band(latitude_deg, longitude_deg)

    if UTM_SOUTH_LIMIT <= latitude_deg <= UTM_NORTH_LIMIT:
        zone = utm_zone(latitude_deg, longitude_deg)
        projection = UniversalTransverseMercator(zone, south=south, ellipsoid=ellipsoid)
        easting, northing = projection.to_projected(latitude_deg, longitude_deg)
        return GridCoordinate(
            system=projection.system,
            zone=zone,
            band=band,
            hemisphere=hemisphere,
            easting=easting,
            northing=northing,
            mgrs=mgrs_from_grid(zone, band, easting, northing),
            ellipsoid_name=ellipsoid.name
        )

    projection = UniversalPolarStereographic(south=south, ellipsoid=ellipsoid)
    easting, northing = projection.to_projected(latitude_deg, longitude_deg)
    return GridCoordinate(
        system=projection.system,
        zone=0,
        band=band,
        hemisphere=hemisphere,
        easting=easting,
        northing=northing,
        mgrs=None,
        ellipsoid_name=ellipsoid.name
    )


def grid_to_geodetic(
    zone: int,
    hemisphere: str,
    easting: float,
    northing: float,
    ellipsoid: EllipsoidParameters = WGS84Ellipsoid
) -> Tuple[float, float]:
    """Convert a grid position back to geodetic degrees.

    Parameters
    ----------
    zone : int
        UTM zone, or 0 for UPS.
    hemisphere : str
        "N" or "S".
    easting, northing : float
        Grid coordinates in meters.
    ellipsoid : EllipsoidParameters
        Reference ellipsoid.

    Returns
    -------
    Tuple[float, float]
        (latitude_deg, longitude_deg)
    """
    hemisphere = hemisphere.upper()
    if hemisphere not in ("N", "S"):
        raise InvalidRange(f"Hemisphere must be 'N' or 'S', got {hemisphere!r}")
    south = hemisphere == "S"

    if zone == 0:
        projection: GridProjection = UniversalPolarStereographic(south=south, ellipsoid=ellipsoid)
    else:
        projection = UniversalTransverseMercator(zone, south=south, ellipsoid=ellipsoid)

    lat_deg, lon_deg = projection.to_geodetic(easting, northing)
    if not (np.isfinite(lat_deg) and np.isfinite(lon_deg)):
        raise InvalidRange(
            f"Grid position {zone}{hemisphere} {easting}E {northing}N has no geodetic equivalent"
        )
    return lat_deg, lon_deg
