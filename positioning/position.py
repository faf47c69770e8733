"""
Position Aggregate.

A Position owns a geodetic value (latitude/longitude), a reference
ellipsoid and an observation instant, and derives from them up to four
representations: grid (UTM/UPS + MGRS), earth-centered Cartesian (ECEF),
unit-sphere Cartesian and celestial (sun and moon).

Propagation
-----------
Every mutator goes through one path:

1. Validate the new inputs.
2. Stage a refresh of every present representation listed for the change
   in INVALIDATION_TABLE (computed, not yet committed).
3. Commit the Position's own fields.
4. Commit the staged refreshes in table order.

A failure in steps 1-2 leaves the Position and all representations
untouched. Absent representations are skipped; only explicit requests
(``refresh``, ``set_geodetic_height``, strict scoped datum changes) fail
with PreconditionError when the representation is missing.

Longitude Frame of the Geodesic Solver
--------------------------------------
``move`` and ``move_toward`` hand longitudes to the geodesic solver
negated and negate the result back, for both sphere and ellipsoid. This
boundary is kept exactly: Position(25, 25).move(10000, 25) ends at about
(25.0815, 24.9582). ``distance_to`` works in the east-positive frame and
reports true bearings.

Example Usage
-------------
>>> from positioning import Position, LoadPolicy, RepresentationKind
>>> position = Position(25.0, 25.0, load_policy=LoadPolicy.only(RepresentationKind.GRID))
>>> position.grid.zone
35
>>> position.cartesian is None
True
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Union
import numpy as np

from common.constants import DEFAULT_EPOCH
from common.exceptions import InvalidRange, PreconditionError
from common.logging_config import get_logger
from common.units import LengthLike, accepts_length, convert_length
from celestial.engine import compute as compute_celestial
from geospatial.coordinate_models import (
    EllipsoidParameters,
    WGS84Ellipsoid,
    ecef_to_geodetic,
)
from geospatial.distance_calculations import (
    DEFAULT_GEODESIC_CONFIG,
    DirectSolution,
    GeodesicConfig,
    Shape,
    solve_direct,
    solve_inverse,
)
from geospatial.projections import grid_to_geodetic
from positioning.load_policy import (
    INVALIDATION_TABLE,
    Change,
    DatumTarget,
    LoadPolicy,
    RepresentationKind,
)
from positioning.parts import CoordinatePart, CoordinateType, DmsParts, validate_decimal
from positioning.representations import (
    REPRESENTATION_TYPES,
    CartesianRepresentation,
    CelestialRepresentation,
    GridRepresentation,
    PositionSnapshot,
    Representation,
    Slot,
    SphericalRepresentation,
)

logger = get_logger(__name__)

CoordinateLike = Union[float, int, CoordinatePart]


@dataclass(frozen=True)
class Distance:
    """Result of ``Position.distance_to``.

    Attributes
    ----------
    meters : float
        Geodesic distance.
    bearing : float
        Initial bearing at the origin in degrees, [0, 360).
    final_bearing : float
        Bearing of travel on arrival at the target in degrees, [0, 360).
    shape : Shape
        Earth model of the calculation.
    converged : bool
        False if the ellipsoidal solution did not converge.
    """
    meters: float
    bearing: float
    final_bearing: float
    shape: Shape
    converged: bool = True

    @property
    def kilometers(self) -> float:
        return convert_length(self.meters, "kilometer")

    @property
    def miles(self) -> float:
        return convert_length(self.meters, "mile")

    @property
    def nautical_miles(self) -> float:
        return convert_length(self.meters, "nautical_mile")

    @property
    def feet(self) -> float:
        return convert_length(self.meters, "foot")

    def to(self, unit: str) -> float:
        """Distance in any pint length unit."""
        return convert_length(self.meters, unit)


@dataclass(frozen=True)
class DatumUpdate:
    """Outcome of a datum change.

    Attributes
    ----------
    applied : FrozenSet[DatumTarget]
        Targets that now use the new ellipsoid.
    skipped : FrozenSet[DatumTarget]
        Requested targets whose representation is absent.
    """
    applied: FrozenSet[DatumTarget]
    skipped: FrozenSet[DatumTarget]

    @property
    def complete(self) -> bool:
        return not self.skipped


def _decimal(value: CoordinateLike) -> float:
    if isinstance(value, CoordinatePart):
        return value.decimal_degree
    return value


def _normalize_instant(instant: Optional[datetime]) -> datetime:
    """Aware UTC datetime; naive values are taken as UTC."""
    if instant is None:
        return DEFAULT_EPOCH
    if not isinstance(instant, datetime):
        raise TypeError(f"Instant must be a datetime, got {type(instant).__name__}")
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _ellipsoid_for(radius: float, inverse_flattening: float) -> EllipsoidParameters:
    if (radius, inverse_flattening) == (WGS84Ellipsoid.a, WGS84Ellipsoid.inverse_flattening):
        return WGS84Ellipsoid
    return EllipsoidParameters(a=radius, inverse_flattening=inverse_flattening)


class Position:
    """A geodetic position with derived representations.

    Parameters
    ----------
    latitude, longitude : float or CoordinatePart
        Signed decimal degrees, latitude in [-90, 90] and longitude in
        [-180, 180] (east positive).
    instant : datetime, optional
        Observation instant (default 1900-01-01T00:00:00Z). Naive values
        are taken as UTC.
    load_policy : LoadPolicy, optional
        Representations to build eagerly (default: all).
    ellipsoid : EllipsoidParameters, optional
        Reference ellipsoid (default: WGS84).
    celestial_engine : callable, optional
        ``(latitude_deg, longitude_deg, instant) -> result`` used by the
        celestial representation (default: ``celestial.compute``).
    geodesic_config : GeodesicConfig, optional
        Iteration caps, tolerance and sphere radius for move/distance.

    Raises
    ------
    InvalidRange
        If the coordinates are outside their domain.
    """

    def __init__(
        self,
        latitude: CoordinateLike = 0.0,
        longitude: CoordinateLike = 0.0,
        instant: Optional[datetime] = None,
        load_policy: Optional[LoadPolicy] = None,
        *,
        ellipsoid: Optional[EllipsoidParameters] = None,
        celestial_engine: Optional[Callable] = None,
        geodesic_config: Optional[GeodesicConfig] = None
    ):
        latitude = validate_decimal(_decimal(latitude), CoordinateType.LATITUDE)
        longitude = validate_decimal(_decimal(longitude), CoordinateType.LONGITUDE)

        self._ellipsoid = ellipsoid if ellipsoid is not None else WGS84Ellipsoid
        self._instant = _normalize_instant(instant)
        self._load_policy = load_policy if load_policy is not None else LoadPolicy.full()
        self._celestial_engine = celestial_engine if celestial_engine is not None else compute_celestial
        self._geodesic_config = geodesic_config if geodesic_config is not None else DEFAULT_GEODESIC_CONFIG
        self._parse_format = None

        self._latitude = CoordinatePart(latitude, CoordinateType.LATITUDE, owner=self)
        self._longitude = CoordinatePart(longitude, CoordinateType.LONGITUDE, owner=self)
        self._slots: Dict[RepresentationKind, Slot] = {kind: Slot(kind) for kind in RepresentationKind}

        for kind in RepresentationKind:
            if self._load_policy.selects(kind):
                self._load(kind)

    # =====================================================================
    # Accessors
    # =====================================================================

    @property
    def latitude(self) -> CoordinatePart:
        return self._latitude

    @latitude.setter
    def latitude(self, value: CoordinateLike):
        self.set_coordinates(value, self._longitude.decimal_degree)

    @property
    def longitude(self) -> CoordinatePart:
        return self._longitude

    @longitude.setter
    def longitude(self, value: CoordinateLike):
        self.set_coordinates(self._latitude.decimal_degree, value)

    @property
    def instant(self) -> datetime:
        return self._instant

    @instant.setter
    def instant(self, value: Optional[datetime]):
        instant = _normalize_instant(value)
        self._propagate(Change.INSTANT, instant=instant)

    @property
    def ellipsoid(self) -> EllipsoidParameters:
        return self._ellipsoid

    @property
    def load_policy(self) -> LoadPolicy:
        return self._load_policy

    @property
    def geodesic_config(self) -> GeodesicConfig:
        return self._geodesic_config

    @property
    def parse_format(self):
        """Format tag detected when this Position was parsed, if any."""
        return self._parse_format

    @property
    def grid(self) -> Optional[GridRepresentation]:
        return self._slots[RepresentationKind.GRID].value

    @property
    def cartesian(self) -> Optional[CartesianRepresentation]:
        return self._slots[RepresentationKind.CARTESIAN].value

    @property
    def spherical(self) -> Optional[SphericalRepresentation]:
        return self._slots[RepresentationKind.SPHERICAL].value

    @property
    def celestial(self) -> Optional[CelestialRepresentation]:
        return self._slots[RepresentationKind.CELESTIAL].value

    def present_kinds(self) -> FrozenSet[RepresentationKind]:
        return frozenset(kind for kind, slot in self._slots.items() if slot.present)

    def snapshot(self) -> PositionSnapshot:
        """Current inputs on the Position's own ellipsoid."""
        return PositionSnapshot(
            latitude=self._latitude.decimal_degree,
            longitude=self._longitude.decimal_degree,
            ellipsoid=self._ellipsoid,
            instant=self._instant
        )

    # =====================================================================
    # Propagation
    # =====================================================================

    def _bound_snapshot(self, representation: Representation) -> PositionSnapshot:
        """Current inputs on the ellipsoid the representation is bound to."""
        snapshot = self.snapshot()
        if representation.datum_sensitive and representation.ellipsoid is not None:
            return replace(snapshot, ellipsoid=representation.ellipsoid)
        return snapshot

    def _propagate(
        self,
        change: Change,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        instant: Optional[datetime] = None,
        ellipsoid: Optional[EllipsoidParameters] = None,
        datum: Optional[EllipsoidParameters] = None,
        kinds: Optional[FrozenSet[RepresentationKind]] = None,
        parts: Optional[Dict[CoordinateType, DmsParts]] = None
    ) -> List[RepresentationKind]:
        """Stage, then commit, one change.

        Parameters
        ----------
        change : Change
            Kind of change; selects and orders the refreshed kinds.
        latitude, longitude, instant, ellipsoid : optional
            New values of the Position's own fields (None keeps the current).
        datum : EllipsoidParameters, optional
            Ellipsoid to re-project refreshed representations on. By default
            each representation keeps the ellipsoid it is bound to.
        kinds : FrozenSet[RepresentationKind], optional
            Restrict the refresh to these kinds.
        parts : dict, optional
            Exact sub-parts for a coordinate set through its D/M/S form.

        Returns
        -------
        List[RepresentationKind]
            Kinds actually refreshed, in commit order.
        """
        new_latitude = self._latitude.decimal_degree if latitude is None else latitude
        new_longitude = self._longitude.decimal_degree if longitude is None else longitude
        new_instant = self._instant if instant is None else instant
        new_ellipsoid = self._ellipsoid if ellipsoid is None else ellipsoid

        def snapshot_for(representation: Representation) -> PositionSnapshot:
            if datum is not None:
                bound = datum
            elif representation.datum_sensitive and representation.ellipsoid is not None:
                bound = representation.ellipsoid
            else:
                bound = new_ellipsoid
            return PositionSnapshot(new_latitude, new_longitude, bound, new_instant)

        staged = []
        for kind in INVALIDATION_TABLE[change]:
            if kinds is not None and kind not in kinds:
                continue
            refresh = self._slots[kind].stage(snapshot_for)
            if refresh is not None:
                staged.append(refresh)

        parts = parts or {}
        if latitude is not None:
            self._latitude._assign(new_latitude, parts.get(CoordinateType.LATITUDE))
        if longitude is not None:
            self._longitude._assign(new_longitude, parts.get(CoordinateType.LONGITUDE))
        self._instant = new_instant
        self._ellipsoid = new_ellipsoid

        for refresh in staged:
            refresh.commit()

        refreshed = [refresh.kind for refresh in staged]
        logger.debug(
            f"{change.value} change refreshed "
            f"{[kind.value for kind in refreshed] or 'nothing'}"
        )
        return refreshed

    # =====================================================================
    # Geodetic value
    # =====================================================================

    def set_coordinates(
        self,
        latitude: CoordinateLike,
        longitude: CoordinateLike
    ) -> List[RepresentationKind]:
        """Move the Position to new coordinates.

        Refreshes every present representation (celestial, grid, Cartesian,
        spherical). Grid and Cartesian keep their own ellipsoid.

        Returns
        -------
        List[RepresentationKind]
            Refreshed kinds in commit order.

        Raises
        ------
        InvalidRange
            If either coordinate is outside its domain. Nothing changes.
        """
        latitude = validate_decimal(_decimal(latitude), CoordinateType.LATITUDE)
        longitude = validate_decimal(_decimal(longitude), CoordinateType.LONGITUDE)
        return self._propagate(Change.GEODETIC, latitude=latitude, longitude=longitude)

    def _update_part(self, kind: CoordinateType, decimal: float, parts: Optional[DmsParts]):
        """Entry point of mutations made through a held CoordinatePart."""
        latitude = self._latitude.decimal_degree
        longitude = self._longitude.decimal_degree
        if kind is CoordinateType.LATITUDE:
            latitude = validate_decimal(decimal, kind)
        else:
            longitude = validate_decimal(decimal, kind)
        self._propagate(
            Change.GEODETIC,
            latitude=latitude,
            longitude=longitude,
            parts={kind: parts} if parts is not None else None
        )

    # =====================================================================
    # Datum
    # =====================================================================

    def set_datum(self, radius: float, inverse_flattening: float) -> DatumUpdate:
        """Change the reference ellipsoid of the Position and its representations.

        Grid and Cartesian are re-projected if present and silently skipped
        if absent. The geodetic value never changes.

        Parameters
        ----------
        radius : float
            Equatorial radius in meters.
        inverse_flattening : float
            Inverse flattening.

        Returns
        -------
        DatumUpdate
            Applied and skipped targets.
        """
        return self._change_datum(
            _ellipsoid_for(radius, inverse_flattening),
            frozenset(DatumTarget),
            strict=False,
            report_skipped=False
        )

    def set_datum_scoped(
        self,
        radius: float,
        inverse_flattening: float,
        scope: Union[DatumTarget, Iterable[DatumTarget]],
        strict: bool = False
    ) -> DatumUpdate:
        """Change the reference ellipsoid of selected targets only.

        Parameters
        ----------
        radius : float
            Equatorial radius in meters.
        inverse_flattening : float
            Inverse flattening.
        scope : DatumTarget or iterable of DatumTarget
            GRID and CARTESIAN re-project that representation; GEODETIC
            updates only the Position's own ellipsoid.
        strict : bool
            Raise instead of skipping targets whose representation is absent.

        Returns
        -------
        DatumUpdate
            Applied and skipped targets. Skipped targets are logged.

        Raises
        ------
        PreconditionError
            With ``strict=True``, if a targeted representation is absent.
            Nothing changes.
        InvalidRange
            If the ellipsoid parameters are invalid.
        """
        if isinstance(scope, DatumTarget):
            scope = {scope}
        targets = frozenset(DatumTarget(target) for target in scope)
        return self._change_datum(
            _ellipsoid_for(radius, inverse_flattening),
            targets,
            strict=strict,
            report_skipped=True
        )

    def _change_datum(
        self,
        ellipsoid: EllipsoidParameters,
        targets: FrozenSet[DatumTarget],
        strict: bool,
        report_skipped: bool
    ) -> DatumUpdate:
        skipped = frozenset(
            target for target in targets
            if target.representation is not None and not self._slots[target.representation].present
        )
        if skipped:
            names = sorted(target.value for target in skipped)
            if strict:
                raise PreconditionError(f"Datum targets not loaded: {names}")
            if report_skipped:
                logger.warning(f"Datum change skipped absent representations: {names}")

        kinds = frozenset(
            target.representation for target in targets - skipped
            if target.representation is not None
        )
        refreshed = self._propagate(
            Change.DATUM,
            ellipsoid=ellipsoid if DatumTarget.GEODETIC in targets else None,
            datum=ellipsoid,
            kinds=kinds
        )

        applied = {target for target in targets if target.representation in refreshed}
        if DatumTarget.GEODETIC in targets:
            applied.add(DatumTarget.GEODETIC)

        logger.info(
            f"Datum a={ellipsoid.a} 1/f={ellipsoid.inverse_flattening} applied to "
            f"{sorted(target.value for target in applied)}"
        )
        return DatumUpdate(applied=frozenset(applied), skipped=skipped)

    # =====================================================================
    # Geodesics
    # =====================================================================

    @accepts_length("distance")
    def move(
        self,
        distance: LengthLike,
        bearing: float,
        shape: Shape = Shape.ELLIPSOID
    ) -> DirectSolution:
        """Move the Position along a geodesic.

        Parameters
        ----------
        distance : float or pint.Quantity
            Distance in meters, or any pint length.
        bearing : float
            Initial bearing in degrees.
        shape : Shape
            Sphere or ellipsoid (the Position's own ellipsoid).

        Returns
        -------
        DirectSolution
            Raw solver output (radians, solver longitude frame). Moving by
            the same distance on ``degrees(final_bearing) + 180`` returns to
            the start.

        Raises
        ------
        InvalidRange
            If the distance or bearing is not finite.
        """
        if not np.isfinite(bearing):
            raise InvalidRange(f"Bearing {bearing} is not finite")
        shape = Shape(shape)

        solution = solve_direct(
            self._latitude.to_radians(),
            -self._longitude.to_radians(),
            float(np.radians(bearing)),
            distance,
            shape=shape,
            ellipsoid=self._ellipsoid,
            config=self._geodesic_config
        )

        latitude = float(np.clip(np.degrees(solution.latitude), -90.0, 90.0))
        longitude = float(np.clip(-np.degrees(solution.longitude), -180.0, 180.0))
        self._propagate(Change.GEODETIC, latitude=latitude, longitude=longitude)
        return solution

    @accepts_length("distance")
    def move_toward(
        self,
        target: "Position",
        distance: LengthLike,
        shape: Shape = Shape.ELLIPSOID
    ) -> DirectSolution:
        """Move the Position a distance along the geodesic toward ``target``.

        The bearing comes from the inverse solution in the same longitude
        frame ``move`` uses, so the move heads for the target.

        Notes
        -----
        A true bearing fed through that frame would be mirrored east-west.
        Moving from (25, 25) toward (26.5, 23.2) therefore ends north-west
        of the start. It does not end at the often-quoted N 24°56' E 25°04',
        which lies away from the target.
        """
        shape = Shape(shape)
        inverse = solve_inverse(
            self._latitude.to_radians(),
            -self._longitude.to_radians(),
            target.latitude.to_radians(),
            -target.longitude.to_radians(),
            shape=shape,
            ellipsoid=self._ellipsoid,
            config=self._geodesic_config
        )
        return self.move(distance, float(np.degrees(inverse.initial_bearing)), shape)

    def distance_to(self, target: "Position", shape: Shape = Shape.ELLIPSOID) -> Distance:
        """Distance and bearings to another Position. Mutates neither.

        Examples
        --------
        >>> a, b = Position(25, 25, load_policy=LoadPolicy.none()), Position(28, 30, load_policy=LoadPolicy.none())
        >>> round(a.distance_to(b, Shape.SPHERE).kilometers, 2)
        598.93
        """
        shape = Shape(shape)
        inverse = solve_inverse(
            self._latitude.to_radians(),
            self._longitude.to_radians(),
            target.latitude.to_radians(),
            target.longitude.to_radians(),
            shape=shape,
            ellipsoid=self._ellipsoid,
            config=self._geodesic_config
        )
        return Distance(
            meters=inverse.distance_m,
            bearing=float(np.degrees(inverse.initial_bearing)),
            final_bearing=float(np.degrees(inverse.final_bearing)),
            shape=shape,
            converged=inverse.converged
        )

    # =====================================================================
    # Representations
    # =====================================================================

    def _create(self, kind: RepresentationKind) -> Representation:
        if kind is RepresentationKind.CELESTIAL:
            return CelestialRepresentation(self, self._celestial_engine)
        return REPRESENTATION_TYPES[kind](self)

    def _load(self, kind: RepresentationKind) -> Representation:
        slot = self._slots[kind]
        representation = slot.value if slot.present else self._create(kind)
        representation.recompute(self.snapshot())
        slot.value = representation
        logger.debug(f"Loaded {kind.value} representation")
        return representation

    def load_grid(self) -> GridRepresentation:
        """Build or recompute the grid representation on the current datum."""
        return self._load(RepresentationKind.GRID)

    def load_cartesian(self) -> CartesianRepresentation:
        """Build or recompute the ECEF representation; an existing height is kept."""
        return self._load(RepresentationKind.CARTESIAN)

    def load_spherical(self) -> SphericalRepresentation:
        return self._load(RepresentationKind.SPHERICAL)

    def load_celestial(self) -> CelestialRepresentation:
        return self._load(RepresentationKind.CELESTIAL)

    def refresh(self, kind: RepresentationKind) -> Representation:
        """Recompute a present representation on the ellipsoid it is bound to.

        Raises
        ------
        PreconditionError
            If the representation is absent.
        """
        kind = RepresentationKind(kind)
        slot = self._slots[kind]
        if not slot.present:
            raise PreconditionError(f"Cannot refresh {kind.value}: representation not loaded")
        slot.stage(self._bound_snapshot).commit()
        return slot.value

    @accepts_length("height")
    def set_geodetic_height(self, height: LengthLike) -> CartesianRepresentation:
        """Set the height above the ellipsoid of the ECEF representation.

        Raises
        ------
        PreconditionError
            If the Cartesian representation is absent.
        """
        cartesian = self.cartesian
        if cartesian is None:
            raise PreconditionError("Cannot set geodetic height: Cartesian representation not loaded")
        snapshot = self._bound_snapshot(cartesian)
        cartesian._commit(snapshot, cartesian.compute(snapshot, height=height))
        return cartesian

    # =====================================================================
    # Copies and factories
    # =====================================================================

    def clone(self) -> "Position":
        """Independent copy with its own ellipsoid and representations."""
        duplicate = self.__class__.__new__(self.__class__)
        duplicate._ellipsoid = replace(self._ellipsoid)
        duplicate._instant = self._instant
        duplicate._load_policy = self._load_policy
        duplicate._celestial_engine = self._celestial_engine
        duplicate._geodesic_config = self._geodesic_config
        duplicate._parse_format = self._parse_format

        duplicate._latitude = CoordinatePart(0.0, CoordinateType.LATITUDE, owner=duplicate)
        duplicate._latitude._assign(self._latitude.decimal_degree, self._latitude.dms())
        duplicate._longitude = CoordinatePart(0.0, CoordinateType.LONGITUDE, owner=duplicate)
        duplicate._longitude._assign(self._longitude.decimal_degree, self._longitude.dms())

        duplicate._slots = {}
        for kind, slot in self._slots.items():
            copy_slot = Slot(kind)
            if slot.present:
                copy_slot.value = slot.value.copy_to(duplicate)
            duplicate._slots[kind] = copy_slot
        return duplicate

    def __copy__(self) -> "Position":
        return self.clone()

    def __deepcopy__(self, memo) -> "Position":
        return self.clone()

    @classmethod
    def from_cartesian(
        cls,
        x: float,
        y: float,
        z: float,
        instant: Optional[datetime] = None,
        load_policy: Optional[LoadPolicy] = None,
        *,
        ellipsoid: Optional[EllipsoidParameters] = None,
        **kwargs
    ) -> "Position":
        """Position from ECEF coordinates in meters.

        The geodetic height of the point is kept on the Cartesian
        representation when the policy loads it.
        """
        ellipsoid = ellipsoid if ellipsoid is not None else WGS84Ellipsoid
        lat_rad, lon_rad, height = ecef_to_geodetic(x, y, z, ellipsoid)
        position = cls(
            float(np.clip(np.degrees(lat_rad), -90.0, 90.0)),
            float(np.degrees(lon_rad)),
            instant,
            load_policy,
            ellipsoid=ellipsoid,
            **kwargs
        )
        if position.cartesian is not None:
            position.set_geodetic_height(height)
        return position

    @classmethod
    def from_grid(
        cls,
        zone: int,
        hemisphere: str,
        easting: float,
        northing: float,
        instant: Optional[datetime] = None,
        load_policy: Optional[LoadPolicy] = None,
        *,
        ellipsoid: Optional[EllipsoidParameters] = None,
        **kwargs
    ) -> "Position":
        """Position from a UTM (or, with zone 0, UPS) grid coordinate."""
        ellipsoid = ellipsoid if ellipsoid is not None else WGS84Ellipsoid
        latitude, longitude = grid_to_geodetic(zone, hemisphere, easting, northing, ellipsoid)
        return cls(latitude, longitude, instant, load_policy, ellipsoid=ellipsoid, **kwargs)

    @classmethod
    def try_parse(
        cls,
        text: str,
        instant: Optional[datetime] = None,
        cartesian_kind=None,
        parser=None,
        **kwargs
    ) -> Optional["Position"]:
        """Parse a coordinate string; None when it cannot be parsed."""
        from positioning.parsing import try_parse_with_instant
        return try_parse_with_instant(
            text, instant, parser=parser, cartesian_kind=cartesian_kind, **kwargs
        )

    def __repr__(self) -> str:
        return (
            f"Position({self._latitude.decimal_degree!r}, {self._longitude.decimal_degree!r}, "
            f"instant={self._instant.isoformat()}, datum={self._ellipsoid.name}, "
            f"loaded={sorted(kind.value for kind in self.present_kinds())})"
        )
