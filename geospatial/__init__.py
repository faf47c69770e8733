"""
Geospatial Module for the Positioning System.

All earth-surface geometry of a Position originates from this module.
Converters take the reference ellipsoid explicitly and never hold on to a
Position's state.

This module provides:
- Reference ellipsoid model and ECEF conversions
- Geodesic direct/inverse solutions (sphere and ellipsoid)
- UTM/UPS grid projections with MGRS references
"""

from geospatial.coordinate_models import (
    EllipsoidParameters,
    WGS84Ellipsoid,
    geodetic_to_ecef,
    ecef_to_geodetic,
    geodetic_to_unit_vector,
    unit_vector_to_geodetic,
    radius_of_curvature_meridian,
    radius_of_curvature_prime_vertical,
)

from geospatial.distance_calculations import (
    Shape,
    GeodesicConfig,
    DEFAULT_GEODESIC_CONFIG,
    DirectSolution,
    InverseSolution,
    solve_direct,
    solve_inverse,
)

from geospatial.projections import (
    GridCoordinate,
    MgrsCoordinate,
    utm_zone,
    latitude_band,
    mgrs_from_grid,
    geodetic_to_grid,
    grid_to_geodetic,
)

__all__ = [
    # Coordinate models
    "EllipsoidParameters",
    "WGS84Ellipsoid",
    "geodetic_to_ecef",
    "ecef_to_geodetic",
    "geodetic_to_unit_vector",
    "unit_vector_to_geodetic",
    "radius_of_curvature_meridian",
    "radius_of_curvature_prime_vertical",
    # Distance calculations
    "Shape",
    "GeodesicConfig",
    "DEFAULT_GEODESIC_CONFIG",
    "DirectSolution",
    "InverseSolution",
    "solve_direct",
    "solve_inverse",
    # Projections
    "GridCoordinate",
    "MgrsCoordinate",
    "utm_zone",
    "latitude_band",
    "mgrs_from_grid",
    "geodetic_to_grid",
    "grid_to_geodetic",
]
