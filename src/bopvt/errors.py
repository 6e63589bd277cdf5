class BOPVTError(Exception):
    """Base class for all bopvt errors."""

    pass


class ValidationError(BOPVTError, ValueError):
    """Raised when an argument fails validation checks."""

    pass


class ConfigurationError(BOPVTError, RuntimeError):
    """
    Raised when a PVT model is used out of lifecycle order.

    For example, evaluating before `set_num_regions` or calibrating after `init_end`.
    """

    pass


class RegionIndexError(BOPVTError, IndexError):
    """Raised when a PVT region index is outside `[0, num_regions)`."""

    pass


class ParameterSourceError(BOPVTError, KeyError):
    """Raised when a parameter source has no value for a requested region or field."""

    pass


class DeckParseError(ValidationError):
    """Raised when keyword text from a simulation deck cannot be parsed."""

    pass
