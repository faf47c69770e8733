"""
Load Policy and Invalidation Table.

A LoadPolicy decides, per representation kind, whether a Position builds
the representation at construction and keeps it synchronised on every
relevant change. Kinds that are not selected stay absent until a loader
call materialises them.

The invalidation table maps each kind of change to the ordered list of
representation kinds it refreshes. Mutators consult only this table, so the
refresh order of every change is declared in one place.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class RepresentationKind(Enum):
    """Derived representations a Position can hold."""
    GRID = "grid"
    CARTESIAN = "cartesian"
    CELESTIAL = "celestial"
    SPHERICAL = "spherical"


class DatumTarget(Enum):
    """Targets of a scoped datum change.

    GEODETIC updates only the Position's own ellipsoid; GRID and CARTESIAN
    re-project the corresponding representation on the new ellipsoid.
    """
    GRID = "grid"
    CARTESIAN = "cartesian"
    GEODETIC = "geodetic"

    @property
    def representation(self):
        return _DATUM_REPRESENTATIONS.get(self)


_DATUM_REPRESENTATIONS = {
    DatumTarget.GRID: RepresentationKind.GRID,
    DatumTarget.CARTESIAN: RepresentationKind.CARTESIAN,
}


class Change(Enum):
    """Upstream inputs of the derived representations."""
    GEODETIC = "geodetic"
    INSTANT = "instant"
    DATUM = "datum"


INVALIDATION_TABLE: Dict[Change, Tuple[RepresentationKind, ...]] = {
    Change.GEODETIC: (
        RepresentationKind.CELESTIAL,
        RepresentationKind.GRID,
        RepresentationKind.CARTESIAN,
        RepresentationKind.SPHERICAL,
    ),
    Change.INSTANT: (
        RepresentationKind.CELESTIAL,
    ),
    Change.DATUM: (
        RepresentationKind.GRID,
        RepresentationKind.CARTESIAN,
    ),
}


@dataclass(frozen=True)
class LoadPolicy:
    """Which representations are built eagerly and kept synchronised.

    Attributes
    ----------
    grid : bool
        UTM/UPS grid coordinates with MGRS.
    cartesian : bool
        Earth-centered, earth-fixed coordinates with geodetic height.
    celestial : bool
        Solar and lunar information.
    spherical : bool
        Unit-sphere Cartesian vector.
    """
    grid: bool = True
    cartesian: bool = True
    celestial: bool = True
    spherical: bool = True

    @classmethod
    def full(cls) -> "LoadPolicy":
        return cls()

    @classmethod
    def none(cls) -> "LoadPolicy":
        return cls(grid=False, cartesian=False, celestial=False, spherical=False)

    @classmethod
    def only(cls, *kinds: RepresentationKind) -> "LoadPolicy":
        """Policy selecting exactly the given kinds.

        Examples
        --------
        >>> LoadPolicy.only(RepresentationKind.GRID).selects(RepresentationKind.CELESTIAL)
        False
        """
        selected = {RepresentationKind(kind) for kind in kinds}
        return cls(**{kind.value: kind in selected for kind in RepresentationKind})

    def selects(self, kind: RepresentationKind) -> bool:
        return bool(getattr(self, RepresentationKind(kind).value))
