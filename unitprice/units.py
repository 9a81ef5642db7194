# unitprice/units.py
"""
Closed registry of measurement dimensions and their units.

Each dimension converts to one canonical base unit (ml, g, pc). The first
unit listed for a dimension is both its default and its base unit.
"""
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class Dimension(str, Enum):
    VOLUME = "volume"
    WEIGHT = "weight"
    COUNT = "count"

    def __str__(self) -> str:
        return self.value


class RegistryError(Exception):
    """Registry misuse; indicates a defect in the caller, not bad user input."""


class UnknownDimension(RegistryError):
    pass


class UnknownUnit(RegistryError):
    pass


# Multipliers convert one unit into the dimension's base unit.
_CONVERSIONS: Mapping[Dimension, Mapping[str, float]] = MappingProxyType(
    {
        Dimension.VOLUME: MappingProxyType(
            {"ml": 1.0, "L": 1000.0, "fl oz": 29.5735, "ga": 3785.41}
        ),
        Dimension.WEIGHT: MappingProxyType(
            {"g": 1.0, "kg": 1000.0, "oz": 28.3495, "lb": 453.592}
        ),
        Dimension.COUNT: MappingProxyType({"pc": 1.0, "dozen": 12.0}),
    }
)


def to_dimension(dimension) -> Dimension:
    """Accept a Dimension or its string value."""
    if isinstance(dimension, Dimension):
        return dimension
    try:
        return Dimension(dimension)
    except ValueError:
        raise UnknownDimension(f"Unknown dimension: {dimension!r}") from None


def dimensions() -> Tuple[Dimension, ...]:
    return tuple(Dimension)


def units_of(dimension) -> Tuple[str, ...]:
    return tuple(_CONVERSIONS[to_dimension(dimension)])


def default_unit(dimension) -> str:
    return units_of(dimension)[0]


base_unit = default_unit


def base_multiplier(dimension, unit: str) -> float:
    table = _CONVERSIONS[to_dimension(dimension)]
    try:
        return table[unit]
    except KeyError:
        raise UnknownUnit(
            f"Unit {unit!r} is not registered under {to_dimension(dimension).value}"
        ) from None
