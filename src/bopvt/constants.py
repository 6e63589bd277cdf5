"""Physical constants and conversion factors"""

from contextvars import ContextVar
import typing

import attrs


__all__ = ["Constant", "Constants", "c", "ConstantsContext", "get_constant"]


@attrs.frozen(slots=True)
class Constant:
    """
    A constant value with optional description and unit.
    """

    value: typing.Any
    """The actual value of the constant."""

    description: typing.Optional[str] = None
    """Optional description of what this constant represents."""

    unit: typing.Optional[str] = None
    """Optional unit of measurement for this constant."""

    def __str__(self) -> str:
        return f"{self.value}{self.unit or ''}"


DEFAULT_CONSTANTS: typing.Dict[str, typing.Union[typing.Any, Constant]] = {
    # Surface (stock-tank) conditions
    "SURFACE_PRESSURE": Constant(
        value=1.01325e5,
        description="Surface pressure, the default PVT reference pressure",
        unit="Pa",
    ),
    "SURFACE_TEMPERATURE": Constant(
        value=273.15 + 15.56,
        description="Surface temperature (60°F)",
        unit="K",
    ),
    # Pressure Conversions
    "BAR_TO_PA": Constant(
        value=1e5, description="Conversion factor from bar to Pascals", unit="Pa/bar"
    ),
    "PSI_TO_PA": Constant(
        value=6894.757,
        description="Conversion factor from psi to Pascals",
        unit="Pa/psi",
    ),
    # Viscosity Conversions
    "CENTIPOISE_TO_PA_S": Constant(
        value=0.001,
        description="Conversion factor from centipoise to Pascal-seconds",
        unit="Pa·s/cP",
    ),
    # Dead-oil fugacity model
    "OIL_FUGACITY_PRESSURE": Constant(
        value=20e3,
        description="Pseudo vapour pressure of the oil component in the oil phase",
        unit="Pa",
    ),
    "WATER_IN_OIL_FUGACITY_FACTOR": Constant(
        value=1e8,
        description="Ratio of the water to oil component fugacity coefficients in dead oil",
    ),
    "GAS_IN_OIL_FUGACITY_FACTOR": Constant(
        value=1.01e8,
        description="Ratio of the gas to oil component fugacity coefficients in dead oil",
    ),
}


class Constants:
    """
    Physical constants and conversion factors used by the PVT models.

    Use attribute access for values and item access for the `Constant` objects.
    Values can be replaced at runtime, e.g. to match another simulator's unit conventions.
    """

    __slots__ = ("_store",)

    def __new__(cls) -> "Constants":
        instance = super().__new__(cls)
        instance._store = {}
        return instance

    def __init__(self) -> None:
        for name, value in DEFAULT_CONSTANTS.items():
            self._store[name] = (
                value if isinstance(value, Constant) else Constant(value=value)
            )

    def __getattr__(self, name: str) -> typing.Any:
        if name.startswith("_"):
            return object.__getattribute__(self, name)
        try:
            return self._store[name].value
        except KeyError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            ) from None

    def __getitem__(self, name: str) -> Constant:
        return self._store[name]

    def __setattr__(self, name: str, value: typing.Union[typing.Any, Constant]) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def __setitem__(self, name: str, value: typing.Union[typing.Any, Constant]) -> None:
        if isinstance(value, Constant):
            self._store[name] = value
        else:
            # Keep the metadata of a known constant when only its value changes
            existing = self._store.get(name)
            if existing is not None:
                self._store[name] = attrs.evolve(existing, value=value)
            else:
                self._store[name] = Constant(value=value)

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(constants={len(self._store)})"

    def get(self, name: str, default: typing.Any = None) -> typing.Any:
        """
        Get a constant's value with a default fallback.

        :param name: Name of the constant
        :param default: Default value if constant doesn't exist
        :return: Value of the constant or default
        """
        constant = self._store.get(name)
        if constant is None:
            return default
        return constant.value

    def get_constant(
        self, name: str, default: typing.Optional[Constant] = None
    ) -> typing.Optional[Constant]:
        return self._store.get(name, default)

    def __call__(self) -> "ConstantsContext":
        """
        Create a context manager that temporarily makes this instance the one
        behind the global proxy `bopvt.c`.
        """
        return ConstantsContext(self)


_constants_context: ContextVar[Constants] = ContextVar(
    "constants_context", default=Constants()
)


class ConstantsContext:
    """
    Context manager for temporary global `Constants` overrides.

    Upon exiting the context, the previous `Constants` instance is restored.
    """

    def __init__(self, constants: Constants) -> None:
        self._new_constants = constants
        self._token = None

    def __enter__(self) -> Constants:
        self._token = _constants_context.set(self._new_constants)
        return self._new_constants

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._token is not None:
            _constants_context.reset(self._token)


class _ConstantsProxy:
    """Proxy to the `Constants` instance of the current context."""

    @property
    def _constants(self) -> Constants:
        return _constants_context.get()

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(self._constants, name)

    def __getitem__(self, name: str) -> Constant:
        return self._constants[name]


c = _ConstantsProxy()
"""Global proxy to access physical constants and conversion factors."""


def get_constant(name: str) -> typing.Optional[Constant]:
    """Get a `Constant` object by name from the global constants.

    :param name: Name of the constant
    :return: `Constant` object or None if not found
    """
    return c._constants.get_constant(name)
