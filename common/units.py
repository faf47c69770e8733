"""
Unit Registry for Distances.

This module provides a centralized unit system using the `pint` library so
that distances handed to the position aggregate are dimensionally checked.
Bare numbers are meters; pint quantities are converted, and quantities of
the wrong dimension are rejected.

Example Usage
-------------
>>> from common.units import Q_, to_meters
>>> to_meters(Q_(10, 'km'))
10000.0
>>> convert_length(1852.0, 'nautical_mile')
1.0
"""

from functools import wraps
from typing import Callable, Union

import numpy as np
import pint
from pint import UnitRegistry as PintUnitRegistry

from common.exceptions import InvalidRange

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity

LengthLike = Union[float, int, pint.Quantity]


def to_meters(value: LengthLike) -> float:
    """Convert a length to a float number of meters.

    Parameters
    ----------
    value : float or pint.Quantity
        Bare numbers are taken as meters.

    Returns
    -------
    float
        Length in meters.

    Raises
    ------
    ValueError
        If a quantity is not a length.
    InvalidRange
        If the length is not finite.
    """
    if isinstance(value, pint.Quantity):
        try:
            meters = float(value.to(ureg.meter).magnitude)
        except pint.DimensionalityError as e:
            raise ValueError(
                f"Distance has incompatible units. Expected a length, got {value.units}"
            ) from e
    else:
        meters = float(value)

    if not np.isfinite(meters):
        raise InvalidRange(f"Distance {meters} is not finite")
    return meters


def convert_length(meters: float, unit: str) -> float:
    """Convert a length in meters to another unit.

    Parameters
    ----------
    meters : float
        Length in meters.
    unit : str
        Target unit string (e.g., 'km', 'mile', 'nautical_mile', 'foot').

    Returns
    -------
    float
        Magnitude in the target unit.
    """
    return float(Q_(meters, ureg.meter).to(unit).magnitude)


def accepts_length(*param_names: str):
    """Decorator normalising length arguments to meters.

    Parameters
    ----------
    *param_names : str
        Names of keyword or positional parameters holding lengths.

    Examples
    --------
    >>> @accepts_length('distance')
    ... def travel(distance):
    ...     return distance
    >>> travel(Q_(1, 'km'))
    1000.0
    """
    def decorator(func: Callable) -> Callable:
        import inspect
        sig = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            for name in param_names:
                if name in bound.arguments:
                    bound.arguments[name] = to_meters(bound.arguments[name])
            return func(*bound.args, **bound.kwargs)
        return wrapper
    return decorator
