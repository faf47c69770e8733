"""
Tests for the coordinate-string parsing boundary.
"""
import math

import pytest

from geospatial.coordinate_models import EllipsoidParameters, geodetic_to_ecef
from positioning import (
    CartesianKind,
    DecimalDegreeParser,
    FormatTag,
    ParseResult,
    Position,
    RepresentationKind,
    try_parse,
    try_parse_with_instant,
)


@pytest.fixture
def parser():
    return DecimalDegreeParser()


class TestDecimalDegreeParser:

    @pytest.mark.parametrize("text, lat, lon", [
        ("25.5, -30.25", 25.5, -30.25),
        ("25.5 -30.25", 25.5, -30.25),
        ("  -10;  170  ", -10.0, 170.0),
        ("25.5°, 30°", 25.5, 30.0),
        ("+1e1, .5", 10.0, 0.5),
    ])
    def test_signed_pairs(self, parser, text, lat, lon):
        result = parser.parse(text)
        assert result.success
        assert result.latitude == lat
        assert result.longitude == lon
        assert result.format_tag is FormatTag.DECIMAL
        assert result.cartesian_kind is None

    @pytest.mark.parametrize("text, lat, lon", [
        ("N 25.5 W 30.25", 25.5, -30.25),
        ("25.5S 30E", -25.5, 30.0),
        ("25.5 s, 30 w", -25.5, -30.0),
        ("S10 150", -10.0, 150.0),
    ])
    def test_hemisphere_pairs(self, parser, text, lat, lon):
        result = parser.parse(text)
        assert result.success
        assert (result.latitude, result.longitude) == (lat, lon)
        assert result.format_tag is FormatTag.DECIMAL_HEMISPHERE

    @pytest.mark.parametrize("text", [
        "",
        "hello",
        "25.5",
        "91, 0",
        "0, 181",
        "N -25 E 30",
        "N 25 N, 30",
        "E 25, N 30",
        "1, 2, 3, 4",
        "0 0 0",
    ])
    def test_rejected(self, parser, text):
        assert parser.parse(text) == ParseResult.failure()

    def test_non_string_rejected(self, parser):
        assert not parser.parse(None).success
        assert not parser.parse(25.5).success

    def test_unit_vector_triple(self, parser):
        result = parser.parse("0 0 1")
        assert result.success
        assert result.latitude == pytest.approx(90.0)
        assert result.cartesian_kind is CartesianKind.CARTESIAN
        assert result.format_tag is FormatTag.CARTESIAN

    def test_ecef_triple_detected_by_magnitude(self, parser):
        x, y, z = geodetic_to_ecef(math.radians(25.0), math.radians(25.0), 500.0)
        result = parser.parse(f"{x:.4f}, {y:.4f}, {z:.4f}")
        assert result.success
        assert result.cartesian_kind is CartesianKind.ECEF
        assert result.format_tag is FormatTag.ECEF
        assert result.latitude == pytest.approx(25.0, abs=1e-8)
        assert result.longitude == pytest.approx(25.0, abs=1e-8)
        assert result.geodetic_height == pytest.approx(500.0, abs=1e-3)

    def test_cartesian_kind_overrides_detection(self, parser):
        result = parser.parse("4517590.9 1250156.9 4307757.4", CartesianKind.CARTESIAN)
        assert result.cartesian_kind is CartesianKind.CARTESIAN
        assert result.geodetic_height is None


class TestTryParse:

    def test_builds_fully_loaded_position(self, engine):
        position = try_parse("25.5S, 30E", celestial_engine=engine)
        assert isinstance(position, Position)
        assert position.latitude.decimal_degree == -25.5
        assert position.longitude.decimal_degree == 30.0
        assert position.present_kinds() == frozenset(RepresentationKind)
        assert position.parse_format is FormatTag.DECIMAL_HEMISPHERE

    def test_failure_returns_none(self, engine):
        assert try_parse("not a coordinate", celestial_engine=engine) is None
        assert engine.count == 0

    def test_ecef_height_is_kept(self, engine):
        x, y, z = geodetic_to_ecef(math.radians(-33.9), math.radians(151.2), 58.0)
        position = try_parse(f"{x:.4f} {y:.4f} {z:.4f}", celestial_engine=engine)
        assert position.parse_format is FormatTag.ECEF
        assert position.cartesian.height == pytest.approx(58.0, abs=1e-3)
        assert position.latitude.decimal_degree == pytest.approx(-33.9, abs=1e-8)

    def test_with_instant(self, engine, instant):
        position = try_parse_with_instant("10, 20", instant, celestial_engine=engine)
        assert position.instant == instant
        assert engine.calls == [(10.0, 20.0, instant)]

    def test_classmethod_entry_point(self, engine, instant):
        position = Position.try_parse("10, 20", instant, celestial_engine=engine)
        assert position.instant == instant
        assert Position.try_parse("garbage", celestial_engine=engine) is None

    def test_custom_parser_results_are_range_checked(self, engine):
        class OutOfRangeParser:
            def parse(self, text, cartesian_kind=None, ellipsoid=None):
                return ParseResult(success=True, latitude=95.0, longitude=0.0)

        class FailingParser:
            def parse(self, text, cartesian_kind=None, ellipsoid=None):
                return ParseResult.failure()

        assert try_parse("anything", parser=OutOfRangeParser(), celestial_engine=engine) is None
        assert try_parse("anything", parser=FailingParser(), celestial_engine=engine) is None

    def test_custom_parser_is_used(self, engine):
        class FixedParser:
            def parse(self, text, cartesian_kind=None, ellipsoid=None):
                return ParseResult(success=True, latitude=1.0, longitude=2.0, format_tag=FormatTag.DECIMAL)

        position = try_parse("home", parser=FixedParser(), celestial_engine=engine)
        assert (position.latitude.decimal_degree, position.longitude.decimal_degree) == (1.0, 2.0)

    def test_ecef_is_read_on_the_position_datum(self, engine):
        clarke = EllipsoidParameters(6378206.4, 294.9786982, "Clarke 1866")
        x, y, z = geodetic_to_ecef(math.radians(25.0), math.radians(25.0), 500.0, clarke)
        position = try_parse(f"{x:.4f} {y:.4f} {z:.4f}", celestial_engine=engine, ellipsoid=clarke)
        assert position.ellipsoid is clarke
        assert position.latitude.decimal_degree == pytest.approx(25.0, abs=1e-8)
        assert position.cartesian.height == pytest.approx(500.0, abs=1e-3)
        assert position.cartesian.x == pytest.approx(x, abs=1e-3)

    def test_raising_parser_reports_failure(self, engine):
        class BrokenParser:
            def parse(self, text, cartesian_kind=None, ellipsoid=None):
                raise RuntimeError("backend unavailable")

        assert try_parse("25, 25", parser=BrokenParser(), celestial_engine=engine) is None
        assert Position.try_parse("25, 25", parser=BrokenParser(), celestial_engine=engine) is None
        assert engine.count == 0
