"""
Tests for the Position aggregate: propagation, datum changes, geodesic
movement, loaders and copies.
"""
import copy
import math
from datetime import datetime, timedelta, timezone

import pytest

from common.constants import DEFAULT_EPOCH
from common.exceptions import InvalidRange, PreconditionError
from common.units import Q_
from geospatial.coordinate_models import EllipsoidParameters, WGS84Ellipsoid, geodetic_to_ecef
from geospatial.distance_calculations import Shape
from geospatial.projections import geodetic_to_grid
from positioning import (
    DatumTarget,
    LoadPolicy,
    Position,
    RepresentationKind,
)

CLARKE = (6378206.4, 294.9786982)
ALL_KINDS = [
    RepresentationKind.CELESTIAL,
    RepresentationKind.GRID,
    RepresentationKind.CARTESIAN,
    RepresentationKind.SPHERICAL,
]


class TestConstruction:

    def test_full_policy_builds_everything(self, position, engine):
        assert position.present_kinds() == frozenset(RepresentationKind)
        assert engine.count == 1
        assert position.grid.zone == 35
        assert position.grid.band == "R"
        assert position.cartesian.height == 0.0
        spherical = position.spherical
        assert spherical.x**2 + spherical.y**2 + spherical.z**2 == pytest.approx(1.0)

    def test_empty_policy_builds_nothing(self, bare_position, engine):
        assert bare_position.present_kinds() == frozenset()
        assert bare_position.grid is None
        assert bare_position.cartesian is None
        assert bare_position.spherical is None
        assert bare_position.celestial is None
        assert engine.count == 0

    def test_defaults(self):
        position = Position(load_policy=LoadPolicy.none())
        assert position.latitude.decimal_degree == 0.0
        assert position.longitude.decimal_degree == 0.0
        assert position.instant == DEFAULT_EPOCH
        assert position.ellipsoid is WGS84Ellipsoid
        assert position.load_policy == LoadPolicy.none()

    @pytest.mark.parametrize("lat, lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (math.nan, 0.0)])
    def test_out_of_range_rejected(self, lat, lon):
        with pytest.raises(InvalidRange):
            Position(lat, lon, load_policy=LoadPolicy.none())

    def test_instant_normalised_to_utc(self):
        naive = Position(instant=datetime(2020, 1, 1, 12), load_policy=LoadPolicy.none())
        assert naive.instant == datetime(2020, 1, 1, 12, tzinfo=timezone.utc)
        assert naive.instant.tzinfo is timezone.utc

        plus_two = timezone(timedelta(hours=2))
        aware = Position(instant=datetime(2020, 1, 1, 12, tzinfo=plus_two), load_policy=LoadPolicy.none())
        assert aware.instant.hour == 10
        assert aware.instant.utcoffset() == timedelta(0)

    def test_instant_must_be_datetime(self):
        with pytest.raises(TypeError):
            Position(instant="2020-01-01", load_policy=LoadPolicy.none())

    def test_repr(self, position):
        text = repr(position)
        assert text.startswith("Position(25.0, 25.0")
        assert "WGS84" in text


class TestPropagation:

    def test_geodetic_change_refreshes_in_table_order(self, position, engine):
        refreshed = position.set_coordinates(28.0, 30.0)
        assert refreshed == ALL_KINDS
        assert engine.count == 2
        assert position.celestial.result == (28.0, 30.0, DEFAULT_EPOCH)
        assert position.grid.zone == 36
        assert position.latitude.decimal_degree == 28.0
        assert position.longitude.decimal_degree == 30.0

    def test_absent_representations_are_skipped(self, bare_position, engine):
        assert bare_position.set_coordinates(28.0, 30.0) == []
        assert bare_position.present_kinds() == frozenset()
        assert engine.count == 0

    def test_partial_policy_refreshes_selected_kinds(self, engine):
        position = Position(
            25.0, 25.0,
            load_policy=LoadPolicy.only(RepresentationKind.SPHERICAL, RepresentationKind.GRID),
            celestial_engine=engine
        )
        assert position.set_coordinates(1.0, 2.0) == [RepresentationKind.GRID, RepresentationKind.SPHERICAL]
        assert engine.count == 0

    def test_derived_values_follow_geodetic_value(self, position):
        position.set_coordinates(-33.9, 151.2)
        expected = geodetic_to_grid(-33.9, 151.2)
        assert position.grid.easting == pytest.approx(expected.easting)
        assert position.grid.northing == pytest.approx(expected.northing)
        x, y, z = geodetic_to_ecef(math.radians(-33.9), math.radians(151.2))
        assert (position.cartesian.x, position.cartesian.y, position.cartesian.z) == pytest.approx((x, y, z))

    def test_invalid_change_leaves_everything_untouched(self, position, engine):
        grid_before = position.grid.result
        with pytest.raises(InvalidRange):
            position.set_coordinates(95.0, 30.0)
        assert position.latitude.decimal_degree == 25.0
        assert position.longitude.decimal_degree == 25.0
        assert position.grid.result is grid_before
        assert engine.count == 1

    def test_engine_failure_is_atomic(self, position, engine):
        grid_before = position.grid.result
        cartesian_before = position.cartesian.result
        celestial_before = position.celestial.result
        engine.fail = True
        with pytest.raises(RuntimeError):
            position.set_coordinates(28.0, 30.0)
        assert position.latitude.decimal_degree == 25.0
        assert position.grid.result is grid_before
        assert position.cartesian.result is cartesian_before
        assert position.celestial.result is celestial_before

    def test_property_setters(self, position, engine):
        position.latitude = 10.0
        assert position.latitude.decimal_degree == 10.0
        position.longitude = -10.0
        assert position.longitude.decimal_degree == -10.0
        assert engine.count == 3
        assert position.celestial.result[:2] == (10.0, -10.0)

    def test_held_part_mutation_propagates(self, position, engine):
        latitude = position.latitude
        assert latitude.owner is position
        latitude.decimal_degree = 30.0
        assert position.latitude.decimal_degree == 30.0
        assert engine.count == 2
        assert position.celestial.result[0] == 30.0

        position.longitude.hemisphere = "W"
        assert position.longitude.decimal_degree == -25.0
        assert position.grid.zone == utm_zone_of(-25.0)
        assert engine.count == 3

    def test_held_part_subparts_are_kept_exactly(self, bare_position):
        bare_position.latitude.seconds = 36.0
        assert bare_position.latitude.decimal_degree == pytest.approx(25.01)
        assert bare_position.latitude.seconds == 36.0

    def test_invalid_part_mutation_is_rejected(self, position, engine):
        with pytest.raises(InvalidRange):
            position.latitude.degrees = 91
        with pytest.raises(InvalidRange):
            position.longitude.hemisphere = "N"
        assert position.latitude.decimal_degree == 25.0
        assert position.longitude.decimal_degree == 25.0
        assert engine.count == 1

    def test_instant_change_refreshes_celestial_only(self, position, engine, instant):
        grid_before = position.grid.result
        spherical_before = position.spherical.result
        position.instant = instant
        assert position.instant == instant
        assert engine.count == 2
        assert position.celestial.result == (25.0, 25.0, instant)
        assert position.grid.result is grid_before
        assert position.spherical.result is spherical_before

    def test_invalid_instant_leaves_position_untouched(self, position, engine):
        with pytest.raises(TypeError):
            position.instant = 12
        assert position.instant == DEFAULT_EPOCH
        assert engine.count == 1


def utm_zone_of(longitude):
    return geodetic_to_grid(25.0, longitude).zone


class TestDatum:

    def test_set_datum_reprojects_everything(self, position, engine):
        update = position.set_datum(*CLARKE)
        assert update.applied == frozenset(DatumTarget)
        assert update.skipped == frozenset()
        assert update.complete
        assert position.ellipsoid.a == CLARKE[0]
        assert position.grid.ellipsoid.a == CLARKE[0]
        assert position.cartesian.ellipsoid.a == CLARKE[0]
        # The geodetic value and the celestial view do not depend on the datum
        assert position.latitude.decimal_degree == 25.0
        assert engine.count == 1

        expected = geodetic_to_grid(25.0, 25.0, EllipsoidParameters(*CLARKE))
        assert position.grid.northing == pytest.approx(expected.northing)

    def test_set_datum_skips_absent_targets(self, bare_position):
        update = bare_position.set_datum(*CLARKE)
        assert update.applied == frozenset({DatumTarget.GEODETIC})
        assert update.skipped == frozenset({DatumTarget.GRID, DatumTarget.CARTESIAN})
        assert bare_position.ellipsoid.a == CLARKE[0]
        # Later loads use the new datum
        assert bare_position.load_grid().ellipsoid.a == CLARKE[0]

    def test_wgs84_parameters_reuse_wgs84(self, position):
        position.set_datum(*CLARKE)
        position.set_datum(6378137.0, 298.257223563)
        assert position.ellipsoid is WGS84Ellipsoid

    def test_invalid_datum_rejected(self, position):
        with pytest.raises(InvalidRange):
            position.set_datum(-1.0, 298.0)
        with pytest.raises(InvalidRange):
            position.set_datum_scoped(6378137.0, 0.0, DatumTarget.GRID)
        assert position.ellipsoid is WGS84Ellipsoid

    def test_scoped_datum_touches_only_targets(self, position):
        update = position.set_datum_scoped(*CLARKE, DatumTarget.GRID)
        assert update.applied == frozenset({DatumTarget.GRID})
        assert position.grid.ellipsoid.a == CLARKE[0]
        assert position.cartesian.ellipsoid is WGS84Ellipsoid
        assert position.ellipsoid is WGS84Ellipsoid

    def test_representations_keep_their_datum_across_moves(self, position):
        position.set_datum_scoped(*CLARKE, [DatumTarget.GRID])
        position.set_coordinates(26.0, 26.0)
        assert position.grid.ellipsoid.a == CLARKE[0]
        expected = geodetic_to_grid(26.0, 26.0, EllipsoidParameters(*CLARKE))
        assert position.grid.northing == pytest.approx(expected.northing)
        x, _, _ = geodetic_to_ecef(math.radians(26.0), math.radians(26.0))
        assert position.cartesian.x == pytest.approx(x)

    def test_geodetic_target_changes_position_ellipsoid_only(self, position):
        grid_before = position.grid.result
        cartesian_before = position.cartesian.result
        update = position.set_datum_scoped(*CLARKE, DatumTarget.GEODETIC)
        assert update.applied == frozenset({DatumTarget.GEODETIC})
        assert position.ellipsoid.a == CLARKE[0]
        assert position.grid.result is grid_before
        assert position.grid.ellipsoid is WGS84Ellipsoid
        assert position.cartesian.result is cartesian_before
        assert position.cartesian.ellipsoid is WGS84Ellipsoid

    def test_scoped_absent_target_is_reported(self, engine):
        position = Position(
            25.0, 25.0,
            load_policy=LoadPolicy.only(RepresentationKind.GRID),
            celestial_engine=engine
        )
        update = position.set_datum_scoped(*CLARKE, {DatumTarget.GRID, DatumTarget.CARTESIAN})
        assert update.applied == frozenset({DatumTarget.GRID})
        assert update.skipped == frozenset({DatumTarget.CARTESIAN})
        assert not update.complete

    def test_strict_scoped_datum_raises_before_changing(self, engine):
        position = Position(
            25.0, 25.0,
            load_policy=LoadPolicy.only(RepresentationKind.GRID),
            celestial_engine=engine
        )
        with pytest.raises(PreconditionError):
            position.set_datum_scoped(
                *CLARKE, [DatumTarget.GRID, DatumTarget.CARTESIAN, DatumTarget.GEODETIC], strict=True
            )
        assert position.grid.ellipsoid is WGS84Ellipsoid
        assert position.ellipsoid is WGS84Ellipsoid

    def test_load_recomputes_on_position_datum(self, position):
        position.set_datum_scoped(*CLARKE, DatumTarget.GRID)
        position.load_grid()
        assert position.grid.ellipsoid is WGS84Ellipsoid


class TestGeodesics:

    def test_move(self, bare_position):
        bare_position.move(10000, 25)
        assert bare_position.latitude.decimal_degree == pytest.approx(25.0815, abs=1e-3)
        assert bare_position.longitude.decimal_degree == pytest.approx(24.9582, abs=1e-3)

    def test_move_on_sphere(self, bare_position):
        bare_position.move(10000, 25, Shape.SPHERE)
        assert bare_position.latitude.decimal_degree == pytest.approx(25.0815, abs=1e-3)
        assert bare_position.longitude.decimal_degree == pytest.approx(24.9582, abs=1e-3)

    @pytest.mark.parametrize("shape", list(Shape))
    @pytest.mark.parametrize("lat, lon, bearing, distance", [
        (25.0, 25.0, 25.0, 10_000.0),
        (-45.0, 170.0, 300.0, 500_000.0),
        (60.0, -179.5, 90.0, 200_000.0),
        (0.0, 0.0, 180.0, 3_000_000.0),
        (-70.0, -60.0, 0.0, 1_500_000.0),
        (10.0, 179.9, 270.0, 50_000.0),
        (35.0, 139.7, 135.0, 0.0),
    ])
    def test_move_back_on_reverse_final_bearing(self, shape, lat, lon, bearing, distance):
        position = Position(lat, lon, load_policy=LoadPolicy.none())
        solution = position.move(distance, bearing, shape)
        position.move(distance, math.degrees(solution.final_bearing) + 180.0, shape)
        assert position.latitude.decimal_degree == pytest.approx(lat, abs=1e-7)
        lon_error = (position.longitude.decimal_degree - lon + 180.0) % 360.0 - 180.0
        assert lon_error == pytest.approx(0.0, abs=1e-7)

    def test_move_accepts_quantities(self):
        meters = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        kilometers = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        meters.move(10000, 25)
        kilometers.move(Q_(10, "km"), 25)
        assert kilometers.latitude.decimal_degree == pytest.approx(meters.latitude.decimal_degree)
        assert kilometers.longitude.decimal_degree == pytest.approx(meters.longitude.decimal_degree)

    def test_move_rejects_bad_input(self, bare_position):
        with pytest.raises(InvalidRange):
            bare_position.move(10000, math.nan)
        with pytest.raises(InvalidRange):
            bare_position.move(math.inf, 25)
        with pytest.raises(ValueError):
            bare_position.move(Q_(10, "second"), 25)
        assert bare_position.latitude.decimal_degree == 25.0

    def test_move_refreshes_representations(self, position, engine):
        position.move(10000, 25)
        assert engine.count == 2
        assert position.celestial.result[0] == position.latitude.decimal_degree

    @pytest.mark.parametrize("shape", list(Shape))
    def test_move_toward_reaches_target(self, shape):
        origin = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        target = Position(28.0, 30.0, load_policy=LoadPolicy.none())
        distance = origin.distance_to(target, shape).meters
        origin.move_toward(target, distance, shape)
        assert origin.latitude.decimal_degree == pytest.approx(28.0, abs=1e-6)
        assert origin.longitude.decimal_degree == pytest.approx(30.0, abs=1e-6)

    def test_move_toward_heads_for_target(self):
        origin = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        target = Position(26.5, 23.2, load_policy=LoadPolicy.none())
        before = origin.distance_to(target).meters
        origin.move_toward(target, 10000)
        assert origin.latitude.decimal_degree > 25.0
        assert origin.longitude.decimal_degree < 25.0
        assert origin.distance_to(target).meters == pytest.approx(before - 10000, abs=1e-3)

    def test_move_toward_halfway(self):
        origin = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        target = Position(28.0, 30.0, load_policy=LoadPolicy.none())
        total = origin.distance_to(target).meters
        origin.move_toward(target, total / 2)
        assert origin.distance_to(target).meters == pytest.approx(total / 2, rel=1e-6)

    def test_distance_to(self):
        origin = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        target = Position(28.0, 30.0, load_policy=LoadPolicy.none())
        sphere = origin.distance_to(target, Shape.SPHERE)
        ellipsoid = origin.distance_to(target)
        assert sphere.kilometers == pytest.approx(598.93, abs=0.05)
        assert ellipsoid.kilometers == pytest.approx(599.00, abs=0.05)
        assert ellipsoid.shape is Shape.ELLIPSOID
        assert ellipsoid.converged
        # North-east of the origin in the east-positive frame
        assert 0.0 < ellipsoid.bearing < 90.0
        assert ellipsoid.miles == pytest.approx(ellipsoid.meters / 1609.344)
        assert ellipsoid.nautical_miles == pytest.approx(ellipsoid.meters / 1852.0)
        assert ellipsoid.to("km") == pytest.approx(ellipsoid.kilometers)
        # Neither position moves
        assert origin.latitude.decimal_degree == 25.0
        assert target.latitude.decimal_degree == 28.0

    def test_distance_to_self_is_zero(self, bare_position):
        result = bare_position.distance_to(bare_position)
        assert result.meters == 0.0
        assert result.bearing == 0.0


class TestLoaders:

    def test_load_is_idempotent(self, bare_position, engine):
        first = bare_position.load_grid()
        second = bare_position.load_grid()
        assert first is second
        assert bare_position.present_kinds() == frozenset({RepresentationKind.GRID})
        assert engine.count == 0

    @pytest.mark.parametrize("lat, lon", [(25.0, 25.0), (-33.9, 151.2), (83.5, 10.0), (-85.0, 45.0)])
    def test_lazy_grid_matches_eager_grid(self, lat, lon):
        lazy = Position(lat, lon, load_policy=LoadPolicy.none())
        eager = Position(lat, lon, load_policy=LoadPolicy.only(RepresentationKind.GRID))
        assert lazy.load_grid().result == eager.grid.result

    def test_lazy_grid_matches_eager_grid_after_datum_change(self):
        lazy = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        eager = Position(25.0, 25.0, load_policy=LoadPolicy.only(RepresentationKind.GRID))
        lazy.set_datum(*CLARKE)
        eager.set_datum(*CLARKE)
        assert lazy.load_grid().result == eager.grid.result
        assert lazy.grid.ellipsoid == eager.grid.ellipsoid

        loaded_first = Position(25.0, 25.0, load_policy=LoadPolicy.none())
        loaded_first.load_grid()
        loaded_first.set_datum(*CLARKE)
        assert loaded_first.grid.result == eager.grid.result

    def test_loaded_representation_stays_synchronised(self, bare_position):
        bare_position.load_spherical()
        bare_position.set_coordinates(0.0, 0.0)
        assert bare_position.spherical.x == pytest.approx(1.0)

    def test_load_celestial_uses_engine(self, bare_position, engine, instant):
        bare_position.instant = instant
        bare_position.load_celestial()
        assert engine.calls == [(25.0, 25.0, instant)]

    def test_refresh_requires_presence(self, bare_position):
        with pytest.raises(PreconditionError):
            bare_position.refresh(RepresentationKind.GRID)

    def test_refresh_recomputes(self, position, engine):
        position.refresh(RepresentationKind.CELESTIAL)
        assert engine.count == 2
        grid = position.refresh("grid")
        assert grid is position.grid

    def test_refresh_keeps_bound_datum(self, position):
        position.set_datum_scoped(*CLARKE, DatumTarget.GRID)
        position.refresh(RepresentationKind.GRID)
        assert position.grid.ellipsoid.a == CLARKE[0]

    def test_geodetic_height_requires_cartesian(self, bare_position):
        with pytest.raises(PreconditionError):
            bare_position.set_geodetic_height(100.0)

    def test_geodetic_height(self, position):
        z_before = position.cartesian.z
        position.set_geodetic_height(Q_(1, "km"))
        assert position.cartesian.height == 1000.0
        assert position.cartesian.z > z_before
        # Height survives moves, datum changes and reloads
        position.set_coordinates(26.0, 26.0)
        position.set_datum(*CLARKE)
        position.load_cartesian()
        assert position.cartesian.height == 1000.0
        x, y, z = geodetic_to_ecef(math.radians(26.0), math.radians(26.0), 1000.0, position.ellipsoid)
        assert (position.cartesian.x, position.cartesian.y, position.cartesian.z) == pytest.approx((x, y, z))

    def test_grid_round_trip(self, position):
        lat, lon = position.grid.to_geodetic()
        assert lat == pytest.approx(25.0, abs=1e-9)
        assert lon == pytest.approx(25.0, abs=1e-9)

    def test_representation_owner(self, position):
        assert position.grid.owner is position
        assert position.celestial.owner is position


class TestCopies:

    def test_clone_is_independent(self, position, engine):
        duplicate = position.clone()
        assert duplicate.latitude.decimal_degree == 25.0
        assert duplicate.present_kinds() == position.present_kinds()
        assert duplicate.ellipsoid == position.ellipsoid
        assert duplicate.ellipsoid is not position.ellipsoid
        assert duplicate.grid is not position.grid
        assert duplicate.grid.owner is duplicate
        assert duplicate.latitude.owner is duplicate

        duplicate.set_coordinates(0.0, 0.0)
        duplicate.set_datum(*CLARKE)
        assert position.latitude.decimal_degree == 25.0
        assert position.grid.zone == 35
        assert position.ellipsoid is WGS84Ellipsoid
        assert position.grid.ellipsoid is WGS84Ellipsoid

    def test_clone_keeps_cartesian_height(self, position):
        position.set_geodetic_height(250.0)
        assert position.clone().cartesian.height == 250.0

    def test_copy_protocols(self, position):
        for duplicate in (copy.copy(position), copy.deepcopy(position)):
            assert isinstance(duplicate, Position)
            duplicate.latitude.decimal_degree = 10.0
            assert position.latitude.decimal_degree == 25.0


class TestFactories:

    def test_from_cartesian(self, engine):
        x, y, z = geodetic_to_ecef(math.radians(25.0), math.radians(25.0), 500.0)
        position = Position.from_cartesian(x, y, z, celestial_engine=engine)
        assert position.latitude.decimal_degree == pytest.approx(25.0, abs=1e-9)
        assert position.longitude.decimal_degree == pytest.approx(25.0, abs=1e-9)
        assert position.cartesian.height == pytest.approx(500.0, abs=1e-3)
        assert position.cartesian.x == pytest.approx(x, abs=1e-3)

    def test_from_cartesian_without_cartesian_representation(self):
        x, y, z = geodetic_to_ecef(math.radians(-10.0), math.radians(100.0))
        position = Position.from_cartesian(x, y, z, load_policy=LoadPolicy.none())
        assert position.cartesian is None
        assert position.longitude.decimal_degree == pytest.approx(100.0, abs=1e-9)

    def test_from_grid(self, engine):
        grid = geodetic_to_grid(25.0, 25.0)
        position = Position.from_grid(35, "N", grid.easting, grid.northing, celestial_engine=engine)
        assert position.latitude.decimal_degree == pytest.approx(25.0, abs=1e-9)
        assert position.longitude.decimal_degree == pytest.approx(25.0, abs=1e-9)
        assert position.grid.zone == 35

    def test_from_grid_polar(self):
        position = Position.from_grid(0, "N", 2_000_000.0, 2_000_000.0, load_policy=LoadPolicy.none())
        assert position.latitude.decimal_degree == pytest.approx(90.0, abs=1e-9)
