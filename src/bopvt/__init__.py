"""
*bopvt*

Region-indexed black-oil PVT models for reservoir simulators.
"""

from ._precision import *  # noqa
from .constants import *  # noqa
from .config import *  # noqa
from .errors import *  # noqa
from .types import *  # noqa
from .fluid_system import *  # noqa
from .sources import *  # noqa
from .pvt import *  # noqa
