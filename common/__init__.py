"""
Common utilities and infrastructure for the positioning system.

This package provides foundational components used across all modules:
- Geodetic constants with provenance
- Unit registry for distances
- Exception hierarchy
- Logging infrastructure
"""

from common.constants import GeodeticConstants, DEFAULT_EPOCH
from common.units import ureg, Q_, to_meters, convert_length
from common.exceptions import PositionError, InvalidRange, PreconditionError
from common.logging_config import get_logger

__all__ = [
    "GeodeticConstants",
    "DEFAULT_EPOCH",
    "ureg",
    "Q_",
    "to_meters",
    "convert_length",
    "PositionError",
    "InvalidRange",
    "PreconditionError",
    "get_logger",
]
