"""
DOM Cores
Finds structurally repeating regions in an element tree without a schema
"""

__version__ = "1.0.0"

from .core.config import CoreConfig
from .core.core_finder import CoreFinder, find_cores
from .core.core_flags import CoreFlagSet

__all__ = ["CoreFinder", "CoreConfig", "CoreFlagSet", "find_cores"]
