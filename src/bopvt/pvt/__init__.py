from .base import *  # noqa
from .correlations import *  # noqa
from .constant_compressibility import *  # noqa
