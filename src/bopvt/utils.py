import operator
import typing

import numpy as np

from bopvt.errors import ConfigurationError, RegionIndexError, ValidationError
from bopvt.types import FloatOrArray

__all__ = ["check_num_regions", "check_region_index", "zeros_like"]


def check_num_regions(num_regions: typing.Any) -> int:
    """
    Validate a PVT region count.

    :param num_regions: Number of regions requested
    :return: The region count as a plain `int`
    :raises ValidationError: If the count is not a non-negative integer.
    """
    if isinstance(num_regions, bool):
        raise ValidationError(f"Number of regions must be an integer, got {num_regions!r}")
    try:
        count = operator.index(num_regions)
    except TypeError:
        raise ValidationError(
            f"Number of regions must be an integer, got {num_regions!r}"
        ) from None
    if count < 0:
        raise ValidationError(f"Number of regions must be non-negative, got {count}")
    return count


def check_region_index(
    region_index: typing.Any, num_regions: typing.Optional[int], owner: str = "model"
) -> int:
    """
    Validate a region index against the number of configured regions.

    Negative indices are rejected rather than counted from the end.

    :param region_index: Region index to check
    :param num_regions: Number of regions, or None if regions were never configured
    :param owner: Name used in error messages
    :return: The region index as a plain `int`
    :raises ConfigurationError: If the regions were never configured.
    :raises RegionIndexError: If the index is not in `[0, num_regions)`.
    """
    if num_regions is None:
        raise ConfigurationError(
            f"{owner} has no PVT regions. Call `set_num_regions` first."
        )
    try:
        index = operator.index(region_index)
    except TypeError:
        raise RegionIndexError(
            f"Region index must be an integer, got {region_index!r}"
        ) from None
    if not 0 <= index < num_regions:
        raise RegionIndexError(
            f"Region index {index} out of range for {owner} with {num_regions} region(s)"
        )
    return index


def zeros_like(value: FloatOrArray) -> FloatOrArray:
    """Return 0.0 for scalars, or a float array of zeros shaped like `value`."""
    if np.ndim(value) == 0:
        return 0.0
    return np.zeros(np.shape(value), dtype=np.result_type(value, np.float64))
