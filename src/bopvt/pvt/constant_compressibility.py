import logging
import typing

import attrs
import numpy as np

from bopvt._precision import get_dtype
from bopvt.config import Config
from bopvt.constants import c
from bopvt.errors import ConfigurationError, ValidationError
from bopvt.fluid_system import FluidSystem
from bopvt.pvt.base import OilPvt, oil_pvt_model
from bopvt.pvt.correlations import (
    compute_constant_compressibility_oil_fvf,
    compute_constant_compressibility_oil_viscosity,
    compute_dead_oil_fugacity_coefficient,
)
from bopvt.sources import PVCDO_ITEMS, ParameterSource, PvcdoKeyword
from bopvt.types import ComponentIndex, FloatOrArray, PhaseIndex, UnitSystem
from bopvt.utils import check_num_regions, check_region_index, zeros_like

logger = logging.getLogger(__name__)

__all__ = ["RegionParameters", "ConstantCompressibilityOilPvt"]

_PARAMETER_FIELDS = (
    "reference_pressure",
    "reference_formation_volume_factor",
    "compressibility",
    "reference_viscosity",
    "viscosibility",
)


@attrs.frozen(slots=True)
class RegionParameters:
    """Snapshot of the calibrated parameters of one PVT region."""

    reference_pressure: float
    """Pressure at which the reference formation volume factor is defined (Pa)."""
    reference_formation_volume_factor: float
    """Oil formation volume factor at the reference pressure (-)."""
    compressibility: float
    """Isothermal oil compressibility (1/Pa)."""
    reference_viscosity: float
    """Oil viscosity at the reference pressure (Pa·s). NaN if never set."""
    viscosibility: float
    """Pressure coefficient of the oil viscosity (1/Pa)."""


@oil_pvt_model("constant_compressibility", "pvcdo")
class ConstantCompressibilityOilPvt(OilPvt):
    """
    Pressure-volume-temperature relations of an oil phase without dissolved gas
    ("dead oil") and with constant compressibility and "viscosibility".

    Parameters are stored per PVT region as one record each, in a single
    contiguous array indexed by region.

    Example:
    ```python
    fluid_system = FluidSystem()
    fluid_system.set_num_regions(1)
    fluid_system.set_reference_densities(0, oil_density=850.0, water_density=1000.0, gas_density=0.9)

    pvt = ConstantCompressibilityOilPvt(fluid_system)
    pvt.set_num_regions(1)
    pvt.set_reference_pressure(0, 1e7)
    pvt.set_reference_formation_volume_factor(0, 1.2)
    pvt.set_compressibility(0, 1e-9)
    pvt.set_viscosity(0, 1e-3, viscosibility=5e-10)
    pvt.init_end()

    bo = pvt.formation_volume_factor(0, temperature=350.0, pressure=1.5e7, gas_mass_fraction=0.0)
    ```
    """

    def __init__(
        self,
        fluid_system: typing.Optional[FluidSystem] = None,
        config: typing.Optional[Config] = None,
    ) -> None:
        """
        :param fluid_system: Fluid system supplying the surface pressure and the
            oil reference densities. A default `FluidSystem` is created if not provided.
        :param config: Model options. Defaults to `Config()`.
        """
        self.fluid_system = fluid_system if fluid_system is not None else FluidSystem()
        self.config = config if config is not None else Config()
        self._parameters: typing.Optional[np.ndarray] = None
        self._finalized = False

    @property
    def num_regions(self) -> int:
        """Number of PVT regions, 0 before `set_num_regions`."""
        return 0 if self._parameters is None else len(self._parameters)

    @property
    def is_finalized(self) -> bool:
        """Whether `init_end` was called since the last `set_num_regions`."""
        return self._finalized

    def set_num_regions(self, num_regions: int) -> None:
        """
        Size the per-region parameters, discarding any previous calibration.

        Every region starts with a reference formation volume factor of 1.0 and
        the fluid system's surface pressure as reference pressure. Compressibility
        and viscosibility start at zero, the reference viscosity is unset (NaN).

        :param num_regions: Number of PVT regions
        """
        count = check_num_regions(num_regions)
        dtype = np.dtype([(name, get_dtype()) for name in _PARAMETER_FIELDS])
        parameters = np.zeros(count, dtype=dtype)
        parameters["reference_pressure"] = self.fluid_system.surface_pressure
        parameters["reference_formation_volume_factor"] = 1.0
        parameters["reference_viscosity"] = np.nan

        if self._parameters is not None:
            logger.info(
                f"Discarding calibration of {len(self._parameters)} oil PVT region(s)"
            )
        self._parameters = parameters
        self._finalized = False
        logger.info(f"Sized constant compressibility oil PVT for {count} region(s)")

    def set_viscosity(
        self,
        region_index: int,
        reference_viscosity: float,
        viscosibility: float = 0.0,
    ) -> None:
        """
        Set the viscosity and "viscosibility" of the oil phase.

        :param region_index: PVT region index
        :param reference_viscosity: Oil viscosity at the reference pressure (Pa·s)
        :param viscosibility: Oil viscosibility (1/Pa)
        """
        self._set_parameter(region_index, "reference_viscosity", reference_viscosity)
        self._set_parameter(region_index, "viscosibility", viscosibility)

    def set_compressibility(self, region_index: int, compressibility: float) -> None:
        """Set the compressibility (1/Pa) of the oil phase."""
        self._set_parameter(region_index, "compressibility", compressibility)

    def set_reference_pressure(self, region_index: int, pressure: float) -> None:
        """Set the oil reference pressure (Pa)."""
        self._set_parameter(region_index, "reference_pressure", pressure)

    def set_reference_formation_volume_factor(
        self, region_index: int, formation_volume_factor: float
    ) -> None:
        """Set the oil reference formation volume factor (-)."""
        self._set_parameter(
            region_index, "reference_formation_volume_factor", formation_volume_factor
        )

    def set_viscosibility(self, region_index: int, viscosibility: float) -> None:
        """Set the oil "viscosibility" (1/Pa)."""
        self._set_parameter(region_index, "viscosibility", viscosibility)

    def set_pvcdo(self, region_index: int, source: ParameterSource) -> None:
        """
        Calibrate a region from the `PVCDO` items of a parameter source.

        The region is only written once every item was read, so a failing source
        leaves it unchanged.

        :param region_index: PVT region index, also used to look up the source
        :param source: Parameter source returning SI values
        """
        index = self._check_settable(region_index)
        self._apply_pvcdo(index, _read_pvcdo(index, source))

    def init_from_source(self, source: ParameterSource) -> None:
        """
        Calibrate every region the parameter source has a record for.

        Regions absent from the source keep their current parameters. Every region is
        read and checked before any is written, so on error no region changes.

        :param source: Parameter source returning SI values
        :raises RegionIndexError: If the source has a region outside `[0, num_regions)`.
        """
        if not isinstance(source, ParameterSource):
            raise ValidationError(f"{source!r} is not a `ParameterSource`")

        self._require_parameters()
        records = []
        for region_index in source.region_indices():
            index = self._check_settable(region_index)
            records.append((index, _read_pvcdo(index, source)))

        for index, items in records:
            self._apply_pvcdo(index, items)
        logger.info(f"Calibrated {len(records)} oil PVT region(s) from {source!r}")

    def init_from_deck(
        self, text: str, unit_system: typing.Optional[UnitSystem] = None
    ) -> None:
        """
        Calibrate from `PVCDO` keyword text.

        :param text: Deck text holding only the `PVCDO` keyword
        :param unit_system: Unit system of the text. Defaults to `config.deck_unit_system`.
        """
        keyword = PvcdoKeyword.from_text(
            text, unit_system=unit_system or self.config.deck_unit_system
        )
        self.init_from_source(keyword)

    def init_end(self) -> None:
        """
        Finish initializing the oil phase PVT properties.

        This model needs no post-processing. Unless disabled in the config, the
        region parameters become read-only until the next `set_num_regions`.
        """
        parameters = self._require_parameters()
        if self.config.freeze_on_init_end:
            parameters.flags.writeable = False
        self._finalized = True
        logger.info(f"Finished initializing oil PVT for {len(parameters)} region(s)")

    def region_parameters(self, region_index: int) -> RegionParameters:
        """
        Read-only snapshot of the parameters of a region.

        :param region_index: PVT region index
        """
        record = self._record(region_index)
        return RegionParameters(**{name: float(record[name]) for name in _PARAMETER_FIELDS})

    def viscosity(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """
        Dynamic viscosity (Pa·s) of the oil phase.

        Like ECLIPSE, the product Bo*μo is computed first and then divided by Bo.
        """
        record = self._record(region_index)
        return compute_constant_compressibility_oil_viscosity(
            pressure,
            float(record["reference_pressure"]),
            float(record["reference_formation_volume_factor"]),
            float(record["reference_viscosity"]),
            float(record["compressibility"]),
            float(record["viscosibility"]),
        )

    def density(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Density (kg/m³) of the oil phase."""
        bo = self.formation_volume_factor(
            region_index, temperature, pressure, gas_mass_fraction
        )
        reference_density = self.fluid_system.reference_density(
            PhaseIndex.OIL, region_index
        )
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.true_divide(reference_density, bo)

    def formation_volume_factor(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Formation volume factor (-) of the oil phase."""
        record = self._record(region_index)
        return compute_constant_compressibility_oil_fvf(
            pressure,
            float(record["reference_pressure"]),
            float(record["reference_formation_volume_factor"]),
            float(record["compressibility"]),
        )

    def fugacity_coefficient(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        component_index: int,
    ) -> FloatOrArray:
        """
        Fugacity coefficient (Pa) of a component in the oil phase.

        The oil component gets a pseudo-realistic vapour pressure so results stay
        physically interpretable. Water and gas are nearly immiscible with dead oil,
        their coefficients are 1e8 and 1.01e8 times larger respectively.

        :raises ValidationError: If `component_index` is not a black-oil component.
        """
        self._record(region_index)
        try:
            component = ComponentIndex(component_index)
        except ValueError:
            raise ValidationError(
                f"Unknown component index {component_index!r}. "
                f"Must be one of: {[int(index) for index in ComponentIndex]}"
            ) from None

        if component is ComponentIndex.OIL:
            factor = 1.0
        elif component is ComponentIndex.WATER:
            factor = c.WATER_IN_OIL_FUGACITY_FACTOR
        else:
            factor = c.GAS_IN_OIL_FUGACITY_FACTOR
        return compute_dead_oil_fugacity_coefficient(
            pressure, float(c.OIL_FUGACITY_PRESSURE), float(factor)
        )

    def gas_dissolution_factor(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Gas dissolution factor Rs (m³/m³). Always zero, this is dead oil."""
        self._record(region_index)
        return zeros_like(pressure)

    def oil_saturation_pressure(
        self,
        region_index: int,
        temperature: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Saturation pressure (Pa). Always zero, dead oil has no meaningful one."""
        self._record(region_index)
        return zeros_like(gas_mass_fraction)

    def saturated_oil_gas_mass_fraction(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Gas mass fraction (-) of gas-saturated oil. Always zero, this is dead oil."""
        self._record(region_index)
        return zeros_like(pressure)

    def saturated_oil_gas_mole_fraction(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Gas mole fraction (-) of gas-saturated oil. Always zero, this is dead oil."""
        self._record(region_index)
        return zeros_like(pressure)

    def _require_parameters(self) -> np.ndarray:
        if self._parameters is None:
            raise ConfigurationError(
                f"{type(self).__name__} has no PVT regions. Call `set_num_regions` first."
            )
        return self._parameters

    def _record(self, region_index: int) -> np.void:
        parameters = self._parameters
        index = check_region_index(
            region_index,
            None if parameters is None else len(parameters),
            owner=type(self).__name__,
        )
        return typing.cast(np.ndarray, parameters)[index]

    def _check_settable(self, region_index: int) -> int:
        parameters = self._require_parameters()
        if self._finalized and not parameters.flags.writeable:
            raise ConfigurationError(
                "Cannot set oil PVT parameters after `init_end`. "
                "Call `set_num_regions` to recalibrate."
            )
        return check_region_index(
            region_index, len(parameters), owner=type(self).__name__
        )

    def _apply_pvcdo(self, index: int, items: typing.Dict[str, float]) -> None:
        self.set_reference_pressure(index, items["P_REF"])
        self.set_reference_formation_volume_factor(index, items["OIL_VOL_FACTOR"])
        self.set_compressibility(index, items["OIL_COMPRESSIBILITY"])
        self.set_viscosity(
            index, items["OIL_VISCOSITY"], items["OIL_VISCOSIBILITY"]
        )

    def _set_parameter(self, region_index: int, name: str, value: float) -> None:
        index = self._check_settable(region_index)
        value = float(value)
        typing.cast(np.ndarray, self._parameters)[name][index] = value
        logger.debug(f"Oil PVT region {index}: {name} = {value}")

        if self.config.warn_on_unphysical_parameters:
            _warn_if_unphysical(index, name, value)


def _read_pvcdo(region_index: int, source: ParameterSource) -> typing.Dict[str, float]:
    """Read every `PVCDO` item of a region from `source`."""
    return {name: float(source.get(region_index, name)) for name in PVCDO_ITEMS}


def _warn_if_unphysical(region_index: int, name: str, value: float) -> None:
    if name == "compressibility" and value < 0:
        logger.warning(
            f"Oil PVT region {region_index}: negative compressibility {value} 1/Pa"
        )
    elif name in ("reference_viscosity", "reference_formation_volume_factor") and not (
        value > 0
    ):
        logger.warning(
            f"Oil PVT region {region_index}: non-positive {name.replace('_', ' ')} {value}"
        )
