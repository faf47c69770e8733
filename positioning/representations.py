"""
Derived Representations of a Position.

Each representation converts a PositionSnapshot into a cached, frozen
result. Representations keep a weak back-reference to their owning
Position and never mutate it.

Two-Phase Refresh
-----------------
``compute(snapshot)`` is pure: it returns a new result and leaves the cache
untouched. A Slot stages a refresh by computing the result up front; the
Position commits all staged refreshes only after every one of them has been
computed, so a failing converter leaves the Position and every
representation exactly as they were.

Datum Binding
-------------
Grid and Cartesian results depend on the reference ellipsoid. These
representations record the (immutable) ellipsoid their result was computed
on, which lets a scoped datum change re-project one representation without
touching the others.
"""

import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional
import numpy as np

from geospatial.coordinate_models import (
    EllipsoidParameters,
    geodetic_to_ecef,
    geodetic_to_unit_vector,
)
from geospatial.projections import GridCoordinate, geodetic_to_grid, grid_to_geodetic
from positioning.load_policy import RepresentationKind


@dataclass(frozen=True)
class PositionSnapshot:
    """Immutable view of the inputs of every converter.

    Attributes
    ----------
    latitude, longitude : float
        Signed decimal degrees (east positive).
    ellipsoid : EllipsoidParameters
        Ellipsoid the conversion is to be performed on.
    instant : datetime
        Aware UTC observation instant.
    """
    latitude: float
    longitude: float
    ellipsoid: EllipsoidParameters
    instant: datetime

    @property
    def latitude_rad(self) -> float:
        return float(np.radians(self.latitude))

    @property
    def longitude_rad(self) -> float:
        return float(np.radians(self.longitude))


@dataclass(frozen=True)
class EcefCoordinate:
    """Earth-centered, earth-fixed coordinates in meters."""
    x: float
    y: float
    z: float
    height: float = 0.0


@dataclass(frozen=True)
class SphericalCoordinate:
    """Unit vector of a geodetic position."""
    x: float
    y: float
    z: float


class Representation(ABC):
    """Base class of the derived representations.

    Parameters
    ----------
    owner : Position
        Owning position; held through a weak reference.
    """

    kind: RepresentationKind
    datum_sensitive: bool = False

    def __init__(self, owner):
        self._owner = weakref.ref(owner)
        self._result: Any = None
        self._ellipsoid: Optional[EllipsoidParameters] = None

    @property
    def owner(self):
        return self._owner()

    @property
    def result(self):
        """Cached result of the last committed computation."""
        return self._result

    @property
    def ellipsoid(self) -> Optional[EllipsoidParameters]:
        """Ellipsoid the cached result was computed on."""
        return self._ellipsoid

    @abstractmethod
    def compute(self, snapshot: PositionSnapshot):
        """Compute a result from the snapshot without touching the cache."""
        pass

    def recompute(self, snapshot: PositionSnapshot):
        """Compute from the snapshot and overwrite the cache."""
        result = self.compute(snapshot)
        self._commit(snapshot, result)
        return result

    def _commit(self, snapshot: PositionSnapshot, result):
        self._result = result
        if self.datum_sensitive:
            self._ellipsoid = snapshot.ellipsoid

    def copy_to(self, owner) -> "Representation":
        """Copy of this representation bound to another owner."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone._owner = weakref.ref(owner)
        return clone

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._result!r})"


class GridRepresentation(Representation):
    """UTM/UPS grid coordinates with an MGRS reference."""

    kind = RepresentationKind.GRID
    datum_sensitive = True

    def compute(self, snapshot: PositionSnapshot) -> GridCoordinate:
        return geodetic_to_grid(snapshot.latitude, snapshot.longitude, snapshot.ellipsoid)

    @property
    def system(self) -> str:
        return self._result.system

    @property
    def zone(self) -> int:
        return self._result.zone

    @property
    def band(self) -> str:
        return self._result.band

    @property
    def hemisphere(self) -> str:
        return self._result.hemisphere

    @property
    def easting(self) -> float:
        return self._result.easting

    @property
    def northing(self) -> float:
        return self._result.northing

    @property
    def mgrs(self):
        return self._result.mgrs

    def to_geodetic(self):
        """Convert the cached grid position back to (lat_deg, lon_deg)."""
        return grid_to_geodetic(
            self.zone, self.hemisphere, self.easting, self.northing, self._ellipsoid
        )


class CartesianRepresentation(Representation):
    """Earth-centered, earth-fixed coordinates with a geodetic height.

    The height survives geodetic and datum changes; it changes only through
    an explicit height update.
    """

    kind = RepresentationKind.CARTESIAN
    datum_sensitive = True

    def __init__(self, owner, height: float = 0.0):
        super().__init__(owner)
        self._height = float(height)

    @property
    def height(self) -> float:
        return self._height

    def compute(self, snapshot: PositionSnapshot, height: Optional[float] = None) -> EcefCoordinate:
        height = self._height if height is None else float(height)
        x, y, z = geodetic_to_ecef(
            snapshot.latitude_rad, snapshot.longitude_rad, height, snapshot.ellipsoid
        )
        return EcefCoordinate(x=x, y=y, z=z, height=height)

    def _commit(self, snapshot: PositionSnapshot, result: EcefCoordinate):
        super()._commit(snapshot, result)
        self._height = result.height

    @property
    def x(self) -> float:
        return self._result.x

    @property
    def y(self) -> float:
        return self._result.y

    @property
    def z(self) -> float:
        return self._result.z


class SphericalRepresentation(Representation):
    """Unit-sphere Cartesian vector; independent of the datum."""

    kind = RepresentationKind.SPHERICAL

    def compute(self, snapshot: PositionSnapshot) -> SphericalCoordinate:
        x, y, z = geodetic_to_unit_vector(snapshot.latitude_rad, snapshot.longitude_rad)
        return SphericalCoordinate(x=x, y=y, z=z)

    @property
    def x(self) -> float:
        return self._result.x

    @property
    def y(self) -> float:
        return self._result.y

    @property
    def z(self) -> float:
        return self._result.z


class CelestialRepresentation(Representation):
    """Solar and lunar information from the owner's celestial engine.

    Fields of the cached result are readable directly on the
    representation, e.g. ``position.celestial.sunrise``.
    """

    kind = RepresentationKind.CELESTIAL

    def __init__(self, owner, engine: Callable):
        super().__init__(owner)
        self._engine = engine

    def compute(self, snapshot: PositionSnapshot):
        return self._engine(snapshot.latitude, snapshot.longitude, snapshot.instant)

    def __getattr__(self, name):
        result = self.__dict__.get("_result")
        if result is None or name.startswith("_"):
            raise AttributeError(name)
        return getattr(result, name)


REPRESENTATION_TYPES = {
    RepresentationKind.GRID: GridRepresentation,
    RepresentationKind.CARTESIAN: CartesianRepresentation,
    RepresentationKind.SPHERICAL: SphericalRepresentation,
    RepresentationKind.CELESTIAL: CelestialRepresentation,
}


@dataclass(frozen=True)
class StagedRefresh:
    """A computed but not yet committed refresh of one representation."""
    representation: Representation
    snapshot: PositionSnapshot
    result: Any = field(repr=False)

    @property
    def kind(self) -> RepresentationKind:
        return self.representation.kind

    def commit(self):
        self.representation._commit(self.snapshot, self.result)


class Slot:
    """Present/absent holder of one representation kind.

    Every propagation applies the same rule through ``stage``: a present
    representation is refreshed, an absent one is skipped.
    """

    def __init__(self, kind: RepresentationKind):
        self.kind = kind
        self.value: Optional[Representation] = None

    @property
    def present(self) -> bool:
        return self.value is not None

    def stage(
        self,
        snapshot_for: Callable[[Representation], PositionSnapshot]
    ) -> Optional[StagedRefresh]:
        """Compute a refresh of the held representation, if any.

        Parameters
        ----------
        snapshot_for : callable
            Builds the snapshot for the representation (datum-sensitive
            representations may keep their own ellipsoid).

        Returns
        -------
        StagedRefresh or None
            None when the slot is empty.
        """
        if self.value is None:
            return None
        snapshot = snapshot_for(self.value)
        return StagedRefresh(self.value, snapshot, self.value.compute(snapshot))

    def __repr__(self) -> str:
        state = "present" if self.present else "absent"
        return f"Slot({self.kind.value}, {state})"
