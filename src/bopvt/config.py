import attrs

from bopvt.types import UNIT_SYSTEMS, UnitSystem

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Behavioural options shared by the PVT models."""

    warn_on_unphysical_parameters: bool = True
    """
    Whether to log a warning when a calibrated parameter is physically implausible
    (negative compressibility, non-positive viscosity or formation volume factor).

    Such values are always accepted. Checking them is the caller's responsibility.
    """
    freeze_on_init_end: bool = True
    """Whether `init_end` makes the region parameters read-only."""
    deck_unit_system: UnitSystem = attrs.field(
        default="metric", validator=attrs.validators.in_(UNIT_SYSTEMS)
    )
    """Unit system assumed for keyword text passed to `init_from_deck`."""
