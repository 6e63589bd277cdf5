"""
Sources of calibrated PVT region parameters.

A PVT model reads its region parameters through the `ParameterSource` protocol,
so it never depends on a particular deck format. Two sources are provided:

- `MappingParameterSource`: parameters already in memory, in SI units.
- `PvcdoKeyword`: the ECLIPSE `PVCDO` keyword (dead oil with constant compressibility),
  read from deck text and converted to SI units.
"""

import logging
from os import PathLike
from pathlib import Path
import re
import typing

import attrs
from typing_extensions import Self

from bopvt.constants import c
from bopvt.errors import DeckParseError, ParameterSourceError, ValidationError
from bopvt.types import UNIT_SYSTEMS, UnitSystem

logger = logging.getLogger(__name__)

__all__ = [
    "PVCDO_ITEMS",
    "ParameterSource",
    "PvcdoRecord",
    "MappingParameterSource",
    "PvcdoKeyword",
]

PVCDO_ITEMS: typing.Tuple[str, ...] = (
    "P_REF",
    "OIL_VOL_FACTOR",
    "OIL_COMPRESSIBILITY",
    "OIL_VISCOSITY",
    "OIL_VISCOSIBILITY",
)
"""Item names of a `PVCDO` record, in deck order."""

_PVCDO_DEFAULTS: typing.Dict[str, float] = {"OIL_VISCOSIBILITY": 0.0}


@typing.runtime_checkable
class ParameterSource(typing.Protocol):
    """
    Protocol for a keyed source of PVT region parameters.

    Values are returned in SI units.
    """

    def region_indices(self) -> typing.Iterable[int]:
        """Indices of the PVT regions this source has parameters for."""
        ...

    def get(self, region_index: int, name: str) -> float:
        """
        Value of a named parameter for a region.

        :param region_index: PVT region index
        :param name: Parameter (deck item) name, e.g. 'P_REF'
        :raises ParameterSourceError: If the region or parameter is unknown.
        """
        ...


@attrs.frozen(slots=True)
class PvcdoRecord:
    """Dead-oil PVT parameters of one region, in SI units."""

    reference_pressure: float = attrs.field(converter=float)
    """Reference pressure (Pa)."""
    formation_volume_factor: float = attrs.field(converter=float)
    """Oil formation volume factor at the reference pressure (-)."""
    compressibility: float = attrs.field(converter=float)
    """Oil compressibility (1/Pa)."""
    viscosity: float = attrs.field(converter=float)
    """Oil viscosity at the reference pressure (Pa·s)."""
    viscosibility: float = attrs.field(default=0.0, converter=float)
    """Oil viscosibility (1/Pa)."""

    def get(self, name: str) -> float:
        """Value of the record item with deck name `name`."""
        try:
            attribute = _ITEM_ATTRIBUTES[name]
        except KeyError:
            raise ParameterSourceError(f"Unknown PVCDO item {name!r}") from None
        return getattr(self, attribute)


_ITEM_ATTRIBUTES = {
    "P_REF": "reference_pressure",
    "OIL_VOL_FACTOR": "formation_volume_factor",
    "OIL_COMPRESSIBILITY": "compressibility",
    "OIL_VISCOSITY": "viscosity",
    "OIL_VISCOSIBILITY": "viscosibility",
}


class MappingParameterSource:
    """
    In-memory parameter source.

    Example:
    ```python
    source = MappingParameterSource(
        {
            0: {"P_REF": 1e7, "OIL_VOL_FACTOR": 1.2, "OIL_COMPRESSIBILITY": 1e-9,
                "OIL_VISCOSITY": 1e-3, "OIL_VISCOSIBILITY": 5e-10},
            1: PvcdoRecord(2e7, 1.1, 8e-10, 2e-3),
        }
    )
    ```
    """

    def __init__(
        self,
        records: typing.Mapping[
            int, typing.Union[PvcdoRecord, typing.Mapping[str, float]]
        ],
    ) -> None:
        """
        :param records: Mapping of region index to a `PvcdoRecord` or to a mapping
            of item names (see `PVCDO_ITEMS`) to SI values.
        """
        self._records = dict(records)

    def region_indices(self) -> typing.List[int]:
        return sorted(self._records)

    def get(self, region_index: int, name: str) -> float:
        try:
            record = self._records[region_index]
        except KeyError:
            raise ParameterSourceError(
                f"No parameters for region {region_index}"
            ) from None
        if isinstance(record, PvcdoRecord):
            return record.get(name)
        try:
            return float(record[name])
        except KeyError:
            raise ParameterSourceError(
                f"Region {region_index} has no value for {name!r}"
            ) from None

    def __len__(self) -> int:
        return len(self._records)


_REPEAT_PATTERN = re.compile(r"^(\d+)\*(.*)$")
_HEADER_PATTERN = re.compile(r"^PVCDO\b", re.IGNORECASE)


def _pvcdo_unit_factors(unit_system: str) -> typing.Dict[str, float]:
    """Factors converting `PVCDO` items from `unit_system` to SI."""
    if unit_system == "metric":
        pressure, viscosity = c.BAR_TO_PA, c.CENTIPOISE_TO_PA_S
    elif unit_system == "field":
        pressure, viscosity = c.PSI_TO_PA, c.CENTIPOISE_TO_PA_S
    elif unit_system == "si":
        pressure, viscosity = 1.0, 1.0
    else:
        raise ValidationError(
            f"Unknown unit system {unit_system!r}. Must be one of: {list(UNIT_SYSTEMS)}"
        )
    return {
        "P_REF": pressure,
        "OIL_VOL_FACTOR": 1.0,
        "OIL_COMPRESSIBILITY": 1.0 / pressure,
        "OIL_VISCOSITY": viscosity,
        "OIL_VISCOSIBILITY": 1.0 / pressure,
    }


def _parse_number(token: str, record_number: int) -> float:
    try:
        # Fortran style exponents, e.g. 1.0D-5
        return float(token.replace("D", "E").replace("d", "e"))
    except ValueError:
        raise DeckParseError(
            f"Invalid number {token!r} in PVCDO record {record_number}"
        ) from None


def _expand_tokens(
    tokens: typing.Iterable[str], record_number: int
) -> typing.List[typing.Optional[float]]:
    """Expand `N*` (defaulted) and `N*value` (repeated) items. Defaulted items become None."""
    values: typing.List[typing.Optional[float]] = []
    for token in tokens:
        match = _REPEAT_PATTERN.match(token)
        if match is None:
            values.append(_parse_number(token, record_number))
            continue
        count = int(match.group(1))
        if count < 1:
            raise DeckParseError(
                f"Invalid repeat count in {token!r} in PVCDO record {record_number}"
            )
        value = match.group(2)
        item = _parse_number(value, record_number) if value else None
        values.extend([item] * count)
    return values


class PvcdoKeyword:
    """
    The `PVCDO` keyword: one dead-oil PVT record per region.

    Expected text layout (the keyword header is optional):
    ```
    PVCDO
    -- P_REF  OIL_VOL_FACTOR  OIL_COMPRESSIBILITY  OIL_VISCOSITY  OIL_VISCOSIBILITY
       250    1.2             1.0E-5               1.5            0.0   /
       300    1.1             1.2E-5               2.0            1*    /
    ```
    The n-th record holds the parameters of region n-1. Every record is terminated by `/`.
    Only `OIL_VISCOSIBILITY` may be defaulted (to 0.0).
    """

    keyword = "PVCDO"

    def __init__(self, records: typing.Sequence[PvcdoRecord]) -> None:
        """
        :param records: One `PvcdoRecord` (SI units) per region, in region order.
        """
        self.records: typing.Tuple[PvcdoRecord, ...] = tuple(records)

    @classmethod
    def from_text(cls, text: str, unit_system: UnitSystem = "metric") -> Self:
        """
        Read the keyword from deck text.

        :param text: Text holding only the `PVCDO` keyword (and comments)
        :param unit_system: Unit system of the values in `text`
        :return: The keyword with its values converted to SI units.
        :raises DeckParseError: If the text is malformed.
        """
        factors = _pvcdo_unit_factors(unit_system)
        lines = [line.split("--", 1)[0] for line in text.splitlines()]
        content = " ".join(lines).strip()
        content = _HEADER_PATTERN.sub("", content, count=1)

        chunks = content.split("/")
        if chunks[-1].strip():
            raise DeckParseError(
                f"PVCDO record {len(chunks)} is not terminated by '/'"
            )

        records = []
        for number, chunk in enumerate(chunks[:-1], start=1):
            tokens = chunk.split()
            if not tokens:
                raise DeckParseError(f"PVCDO record {number} is empty")
            values = _expand_tokens(tokens, number)
            if len(values) > len(PVCDO_ITEMS):
                raise DeckParseError(
                    f"PVCDO record {number} has {len(values)} items, "
                    f"expected at most {len(PVCDO_ITEMS)}"
                )
            values.extend([None] * (len(PVCDO_ITEMS) - len(values)))

            items = {}
            for name, value in zip(PVCDO_ITEMS, values):
                if value is None:
                    if name not in _PVCDO_DEFAULTS:
                        raise DeckParseError(
                            f"PVCDO record {number}: item {name} has no default value"
                        )
                    value = _PVCDO_DEFAULTS[name]
                items[name] = value * factors[name]

            records.append(
                PvcdoRecord(
                    reference_pressure=items["P_REF"],
                    formation_volume_factor=items["OIL_VOL_FACTOR"],
                    compressibility=items["OIL_COMPRESSIBILITY"],
                    viscosity=items["OIL_VISCOSITY"],
                    viscosibility=items["OIL_VISCOSIBILITY"],
                )
            )

        logger.debug(f"Read {len(records)} PVCDO record(s) ({unit_system} units)")
        return cls(records)

    @classmethod
    def from_file(
        cls, filepath: typing.Union[str, PathLike], unit_system: UnitSystem = "metric"
    ) -> Self:
        """
        Read the keyword from an include file holding only `PVCDO`.

        :param filepath: Path to the include file
        :param unit_system: Unit system of the values in the file
        """
        path = Path(filepath)
        logger.debug(f"Reading PVCDO keyword from {path}")
        return cls.from_text(path.read_text(), unit_system=unit_system)

    def region_indices(self) -> range:
        return range(len(self.records))

    def get(self, region_index: int, name: str) -> float:
        if not 0 <= region_index < len(self.records):
            raise ParameterSourceError(
                f"PVCDO has no record for region {region_index} "
                f"({len(self.records)} record(s))"
            )
        return self.records[region_index].get(name)

    def __len__(self) -> int:
        return len(self.records)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(records={len(self.records)})"
