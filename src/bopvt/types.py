import enum
import typing

import numpy as np
import numpy.typing as npt
from typing_extensions import TypeAlias


__all__ = [
    "FloatOrArray",
    "PhaseIndex",
    "ComponentIndex",
    "UnitSystem",
    "UNIT_SYSTEMS",
]

FloatOrArray: TypeAlias = typing.Union[float, npt.NDArray[np.floating]]
"""A scalar, or an array of per-cell values."""


class PhaseIndex(enum.IntEnum):
    """Fluid phase indices of the black-oil fluid system."""

    WATER = 0
    OIL = 1
    GAS = 2


class ComponentIndex(enum.IntEnum):
    """Pseudo-component indices of the black-oil fluid system."""

    OIL = 0
    WATER = 1
    GAS = 2


UnitSystem = typing.Literal["metric", "field", "si"]
"""
Unit system of values read from a simulation deck.

- 'metric': bar, 1/bar, cP
- 'field': psia, 1/psi, cP
- 'si': Pa, 1/Pa, Pa·s
"""

UNIT_SYSTEMS: typing.Tuple[str, ...] = typing.get_args(UnitSystem)
