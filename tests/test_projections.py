"""
Tests for UTM/UPS grid conversion and MGRS lettering.
"""
import pytest
from pyproj import Transformer

from common.exceptions import InvalidRange
from geospatial.coordinate_models import EllipsoidParameters
from geospatial.projections import (
    UniversalTransverseMercator,
    geodetic_to_grid,
    grid_to_geodetic,
    latitude_band,
    mgrs_from_grid,
    utm_zone,
)

CLARKE_1866 = EllipsoidParameters(6378206.4, 294.9786982, "Clarke 1866")


class TestZones:

    @pytest.mark.parametrize("lat, lon, zone", [
        (25.0, 25.0, 35),
        (0.0, 3.0, 31),
        (0.0, 180.0, 60),
        (0.0, -180.0, 1),
        (0.0, 179.99, 60),
    ])
    def test_standard_zones(self, lat, lon, zone):
        assert utm_zone(lat, lon) == zone

    @pytest.mark.parametrize("lat, lon, zone", [
        (60.0, 5.0, 32),
        (60.0, 2.0, 31),
        (56.0, 3.0, 32),
        (64.0, 5.0, 31),
    ])
    def test_norway_exception(self, lat, lon, zone):
        assert utm_zone(lat, lon) == zone

    @pytest.mark.parametrize("lon, zone", [
        (8.0, 31),
        (10.0, 33),
        (25.0, 35),
        (40.0, 37),
    ])
    def test_svalbard_exception(self, lon, zone):
        assert utm_zone(78.0, lon) == zone

    @pytest.mark.parametrize("lat, band", [
        (-80.0, "C"),
        (-0.1, "M"),
        (0.0, "N"),
        (25.0, "R"),
        (71.9, "W"),
        (72.0, "X"),
        (84.0, "X"),
    ])
    def test_latitude_bands(self, lat, band):
        assert latitude_band(lat) == band

    @pytest.mark.parametrize("lat, lon, band", [
        (-85.0, -10.0, "A"),
        (-85.0, 10.0, "B"),
        (85.0, -10.0, "Y"),
        (85.0, 10.0, "Z"),
    ])
    def test_polar_bands(self, lat, lon, band):
        assert latitude_band(lat, lon) == band


class TestMgrs:

    def test_square_identifier_odd_zone(self):
        mgrs = mgrs_from_grid(31, "N", 500000.0, 0.0)
        assert mgrs.square_id == "EA"
        assert mgrs.label == "31N EA 00000 00000"

    def test_square_identifier_even_zone_offsets_rows(self):
        mgrs = mgrs_from_grid(32, "N", 500000.0, 0.0)
        assert mgrs.square_id == "NF"

    def test_column_sets_cycle_by_zone(self):
        assert mgrs_from_grid(33, "N", 150000.0, 0.0).square_id[0] == "S"
        assert mgrs_from_grid(34, "N", 150000.0, 0.0).square_id[0] == "A"

    def test_offsets_within_square(self):
        mgrs = mgrs_from_grid(35, "R", 703516.7, 2765493.2)
        assert mgrs.easting == 3516
        assert mgrs.northing == 65493


class TestGridConversion:

    def test_matches_epsg_utm(self):
        grid = geodetic_to_grid(25.0, 25.0)
        expected_e, expected_n = Transformer.from_crs(
            "EPSG:4326", "EPSG:32635", always_xy=True
        ).transform(25.0, 25.0)
        assert grid.system == "UTM"
        assert grid.zone == 35
        assert grid.band == "R"
        assert grid.hemisphere == "N"
        assert grid.easting == pytest.approx(expected_e, abs=1e-3)
        assert grid.northing == pytest.approx(expected_n, abs=1e-3)
        assert grid.mgrs is not None
        assert grid.mgrs.zone == 35
        assert grid.label.startswith("35R ")

    def test_southern_hemisphere(self):
        grid = geodetic_to_grid(-33.9, 151.2)
        assert grid.zone == 56
        assert grid.band == "H"
        assert grid.hemisphere == "S"
        assert 6_000_000 < grid.northing < 10_000_000

    @pytest.mark.parametrize("lat, lon", [
        (25.0, 25.0),
        (-33.9, 151.2),
        (60.0, 5.0),
        (78.0, 10.0),
    ])
    def test_round_trip(self, lat, lon):
        grid = geodetic_to_grid(lat, lon)
        back_lat, back_lon = grid_to_geodetic(grid.zone, grid.hemisphere, grid.easting, grid.northing)
        assert back_lat == pytest.approx(lat, abs=1e-9)
        assert back_lon == pytest.approx(lon, abs=1e-9)

    def test_north_pole_uses_ups(self):
        grid = geodetic_to_grid(90.0, 0.0)
        assert grid.system == "UPS"
        assert grid.is_polar
        assert grid.zone == 0
        assert grid.mgrs is None
        assert grid.band == "Z"
        assert grid.easting == pytest.approx(2_000_000.0, abs=1e-6)
        assert grid.northing == pytest.approx(2_000_000.0, abs=1e-6)

    def test_ups_round_trip(self):
        grid = geodetic_to_grid(-85.0, 30.0)
        assert grid.system == "UPS"
        assert grid.hemisphere == "S"
        lat, lon = grid_to_geodetic(0, "S", grid.easting, grid.northing)
        assert lat == pytest.approx(-85.0, abs=1e-9)
        assert lon == pytest.approx(30.0, abs=1e-9)

    def test_utm_limits_are_inclusive(self):
        assert geodetic_to_grid(84.0, 10.0).system == "UTM"
        assert geodetic_to_grid(-80.0, 10.0).system == "UTM"
        assert geodetic_to_grid(84.01, 10.0).system == "UPS"
        assert geodetic_to_grid(-80.01, 10.0).system == "UPS"

    def test_ellipsoid_changes_grid(self):
        wgs = geodetic_to_grid(25.0, 25.0)
        clarke = geodetic_to_grid(25.0, 25.0, CLARKE_1866)
        assert clarke.ellipsoid_name == "Clarke 1866"
        assert clarke.zone == wgs.zone
        assert abs(clarke.northing - wgs.northing) > 1.0
        lat, lon = grid_to_geodetic(clarke.zone, "N", clarke.easting, clarke.northing, CLARKE_1866)
        assert lat == pytest.approx(25.0, abs=1e-9)
        assert lon == pytest.approx(25.0, abs=1e-9)

    def test_invalid_inputs(self):
        with pytest.raises(InvalidRange):
            grid_to_geodetic(35, "X", 500000.0, 0.0)
        with pytest.raises(InvalidRange):
            UniversalTransverseMercator(61)
        with pytest.raises(InvalidRange):
            UniversalTransverseMercator(0)

    def test_lowercase_hemisphere_accepted(self):
        lat, _ = grid_to_geodetic(31, "n", 500000.0, 0.0)
        assert lat == pytest.approx(0.0, abs=1e-9)
