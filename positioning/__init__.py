"""
Positioning Module.

The Position aggregate and its derived-state model: coordinate parts,
load policy and invalidation table, derived representations, and the
coordinate-string parsing boundary.
"""

from positioning.parts import CoordinatePart, CoordinateType, Hemisphere
from positioning.load_policy import (
    LoadPolicy,
    RepresentationKind,
    DatumTarget,
    Change,
    INVALIDATION_TABLE,
)
from positioning.representations import (
    PositionSnapshot,
    EcefCoordinate,
    SphericalCoordinate,
    GridRepresentation,
    CartesianRepresentation,
    SphericalRepresentation,
    CelestialRepresentation,
    Slot,
    StagedRefresh,
)
from positioning.position import Position, Distance, DatumUpdate
from positioning.parsing import (
    CartesianKind,
    FormatTag,
    ParseResult,
    CoordinateParser,
    DecimalDegreeParser,
    try_parse,
    try_parse_with_instant,
)

__all__ = [
    # Parts
    "CoordinatePart",
    "CoordinateType",
    "Hemisphere",
    # Policy
    "LoadPolicy",
    "RepresentationKind",
    "DatumTarget",
    "Change",
    "INVALIDATION_TABLE",
    # Representations
    "PositionSnapshot",
    "EcefCoordinate",
    "SphericalCoordinate",
    "GridRepresentation",
    "CartesianRepresentation",
    "SphericalRepresentation",
    "CelestialRepresentation",
    "Slot",
    "StagedRefresh",
    # Aggregate
    "Position",
    "Distance",
    "DatumUpdate",
    # Parsing
    "CartesianKind",
    "FormatTag",
    "ParseResult",
    "CoordinateParser",
    "DecimalDegreeParser",
    "try_parse",
    "try_parse_with_instant",
]
