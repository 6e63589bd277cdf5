"""Black-oil fluid system services consumed by the phase PVT models."""

import logging
import typing

import numpy as np

from bopvt.constants import c
from bopvt.errors import ValidationError
from bopvt.types import ComponentIndex, PhaseIndex
from bopvt.utils import check_num_regions, check_region_index

logger = logging.getLogger(__name__)

__all__ = ["FluidSystem"]


class FluidSystem:
    """
    Black-oil fluid system shared by the phase PVT models.

    Supplies the phase and component indices, the surface conditions, and the
    reference (surface) density of each phase per PVT region.
    """

    water_phase_index = PhaseIndex.WATER
    oil_phase_index = PhaseIndex.OIL
    gas_phase_index = PhaseIndex.GAS

    oil_component_index = ComponentIndex.OIL
    water_component_index = ComponentIndex.WATER
    gas_component_index = ComponentIndex.GAS

    def __init__(
        self,
        surface_pressure: typing.Optional[float] = None,
        surface_temperature: typing.Optional[float] = None,
    ) -> None:
        """
        :param surface_pressure: Surface pressure (Pa). Defaults to `c.SURFACE_PRESSURE`.
        :param surface_temperature: Surface temperature (K). Defaults to `c.SURFACE_TEMPERATURE`.
        """
        self.surface_pressure = float(
            c.SURFACE_PRESSURE if surface_pressure is None else surface_pressure
        )
        self.surface_temperature = float(
            c.SURFACE_TEMPERATURE if surface_temperature is None else surface_temperature
        )
        if self.surface_pressure <= 0:
            raise ValidationError(
                f"Surface pressure must be positive, got {self.surface_pressure}"
            )
        self._reference_densities: typing.Optional[np.ndarray] = None

    @property
    def num_regions(self) -> int:
        if self._reference_densities is None:
            return 0
        return self._reference_densities.shape[0]

    def set_num_regions(self, num_regions: int) -> None:
        """
        Size the per-region reference density storage. Densities start unset (NaN).

        :param num_regions: Number of PVT regions
        """
        count = check_num_regions(num_regions)
        self._reference_densities = np.full((count, len(PhaseIndex)), np.nan)
        logger.debug(f"Fluid system sized for {count} PVT region(s)")

    def set_reference_densities(
        self,
        region_index: int,
        oil_density: float,
        water_density: float,
        gas_density: float,
    ) -> None:
        """
        Set the surface densities (kg/m³) of all phases in a PVT region.

        :param region_index: PVT region index
        :param oil_density: Oil density at surface conditions (kg/m³)
        :param water_density: Water density at surface conditions (kg/m³)
        :param gas_density: Gas density at surface conditions (kg/m³)
        """
        index = self._check_region(region_index)
        densities = typing.cast(np.ndarray, self._reference_densities)
        densities[index, PhaseIndex.OIL] = oil_density
        densities[index, PhaseIndex.WATER] = water_density
        densities[index, PhaseIndex.GAS] = gas_density

    def reference_density(self, phase_index: int, region_index: int) -> float:
        """
        Surface density (kg/m³) of a phase in a PVT region.

        :param phase_index: Phase index, see `PhaseIndex`
        :param region_index: PVT region index
        :return: The reference density, NaN if never set.
        """
        index = self._check_region(region_index)
        try:
            phase = PhaseIndex(phase_index)
        except ValueError:
            raise ValidationError(f"Unknown phase index {phase_index!r}") from None
        densities = typing.cast(np.ndarray, self._reference_densities)
        return float(densities[index, phase])

    def _check_region(self, region_index: int) -> int:
        return check_region_index(
            region_index,
            None if self._reference_densities is None else self.num_regions,
            owner=type(self).__name__,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(surface_pressure={self.surface_pressure}, "
            f"surface_temperature={self.surface_temperature}, num_regions={self.num_regions})"
        )
