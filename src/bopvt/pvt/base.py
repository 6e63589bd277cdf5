"""Interface shared by the oil PVT models, and the registry used to select one."""

from abc import ABC, abstractmethod
import threading
import typing

from bopvt.errors import ValidationError
from bopvt.types import FloatOrArray

__all__ = [
    "OilPvt",
    "oil_pvt_model",
    "get_oil_pvt_model",
    "list_oil_pvt_models",
    "build_oil_pvt",
]


class OilPvt(ABC):
    """
    Pressure-volume-temperature relations of the oil phase, per PVT region.

    All models share one calibration protocol:

    1. `set_num_regions` sizes the per-region parameters.
    2. Model specific setters (or bulk ingestion) calibrate each region.
    3. `init_end` finishes initialization, e.g. building tables from raw samples.

    After `init_end` the evaluation methods are pure functions of their arguments
    and may be called concurrently.
    """

    @abstractmethod
    def set_num_regions(self, num_regions: int) -> None:
        """Size the per-region parameters, discarding any previous calibration."""
        ...

    @abstractmethod
    def init_end(self) -> None:
        """Finish initializing the oil phase PVT properties."""
        ...

    @abstractmethod
    def viscosity(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Dynamic viscosity of the oil phase (Pa·s)."""
        ...

    @abstractmethod
    def density(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Density of the oil phase (kg/m³)."""
        ...

    @abstractmethod
    def formation_volume_factor(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Formation volume factor of the oil phase (-)."""
        ...

    @abstractmethod
    def fugacity_coefficient(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
        component_index: int,
    ) -> FloatOrArray:
        """Fugacity coefficient (Pa) of a component in the oil phase."""
        ...

    @abstractmethod
    def gas_dissolution_factor(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Gas dissolution factor Rs of the oil phase (m³/m³)."""
        ...

    @abstractmethod
    def oil_saturation_pressure(
        self,
        region_index: int,
        temperature: FloatOrArray,
        gas_mass_fraction: FloatOrArray,
    ) -> FloatOrArray:
        """Saturation pressure (Pa) of oil with the given gas mass fraction."""
        ...

    @abstractmethod
    def saturated_oil_gas_mass_fraction(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Mass fraction of the gas component in gas-saturated oil (-)."""
        ...

    @abstractmethod
    def saturated_oil_gas_mole_fraction(
        self,
        region_index: int,
        temperature: FloatOrArray,
        pressure: FloatOrArray,
    ) -> FloatOrArray:
        """Mole fraction of the gas component in gas-saturated oil (-)."""
        ...


OilPvtT = typing.TypeVar("OilPvtT", bound=OilPvt)

_oil_pvt_registry_lock = threading.Lock()
_OIL_PVT_MODELS: typing.Dict[str, typing.Type[OilPvt]] = {}
"""Registered oil PVT model classes."""


def oil_pvt_model(
    *names: str, override: bool = False
) -> typing.Callable[[typing.Type[OilPvtT]], typing.Type[OilPvtT]]:
    """
    Class decorator registering an oil PVT model under one or more names.

    ```python
    @oil_pvt_model("constant_compressibility", "pvcdo")
    class ConstantCompressibilityOilPvt(OilPvt): ...
    ```

    :param names: Names to register the model under. Matched case-insensitively.
    :param override: If True, allows replacing models already registered under these names.
    :return: The decorator, which returns the class unmodified.
    """
    if not names:
        raise ValidationError("At least one name is required to register an oil PVT model.")

    def decorator(model_cls: typing.Type[OilPvtT]) -> typing.Type[OilPvtT]:
        if not (isinstance(model_cls, type) and issubclass(model_cls, OilPvt)):
            raise ValidationError(f"{model_cls!r} is not an `OilPvt` subclass.")

        keys = [name.lower() for name in names]
        with _oil_pvt_registry_lock:
            if not override:
                taken = [key for key in keys if key in _OIL_PVT_MODELS]
                if taken:
                    raise ValidationError(
                        f"Oil PVT model(s) {taken} already registered. "
                        f"Use `override=True` to replace them."
                    )
            for key in keys:
                _OIL_PVT_MODELS[key] = model_cls
        return model_cls

    return decorator


def list_oil_pvt_models() -> typing.List[str]:
    """
    List the names of all registered oil PVT models.

    :return: List of registered names.
    """
    with _oil_pvt_registry_lock:
        return list(_OIL_PVT_MODELS.keys())


def get_oil_pvt_model(name: str) -> typing.Type[OilPvt]:
    """
    Get a registered oil PVT model class by name.

    :param name: Name of the model, e.g. 'constant_compressibility'.
    :return: The model class.
    :raises ValidationError: If no model is registered under `name`.
    """
    with _oil_pvt_registry_lock:
        try:
            return _OIL_PVT_MODELS[name.lower()]
        except KeyError:
            raise ValidationError(
                f"Unknown oil PVT model: {name!r}. "
                f"Use `@oil_pvt_model` to register new models. "
                f"Available models: {list(_OIL_PVT_MODELS.keys())}"
            ) from None


def build_oil_pvt(name: str, **kwargs: typing.Any) -> OilPvt:
    """
    Instantiate a registered oil PVT model.

    :param name: Name of the model
    :param kwargs: Keyword arguments for the model's constructor
    :return: The (uncalibrated) model instance.
    """
    return get_oil_pvt_model(name)(**kwargs)
