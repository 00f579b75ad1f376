"""
Core finder configuration
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict

logger = logging.getLogger(__name__)


@dataclass
class CoreConfig:
    """
    Thresholds and resource bounds for one core-finding run

    The caps apply identically to every group so results stay deterministic.
    """
    min_group_size: int = 4  # Groups smaller than this are never aligned
    support_threshold: float = 0.8  # Fraction of members a node must match in
    max_nodes_per_group: int = 20000  # Reference subtree nodes counted/aligned
    max_depth: int = 1500  # Depth below a group root
    clear_existing_flags: bool = False  # Reset flags before run (explicit opt-in)

    def __post_init__(self):
        if int(self.min_group_size) < 1:
            raise ValueError(f"min_group_size must be >= 1, got {self.min_group_size}")
        if not 0.0 <= float(self.support_threshold) <= 1.0:
            raise ValueError(f"support_threshold must be in [0, 1], got {self.support_threshold}")
        if int(self.max_nodes_per_group) < 1:
            raise ValueError(f"max_nodes_per_group must be >= 1, got {self.max_nodes_per_group}")
        if int(self.max_depth) < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

        self.min_group_size = int(self.min_group_size)
        self.support_threshold = float(self.support_threshold)
        self.max_nodes_per_group = int(self.max_nodes_per_group)
        self.max_depth = int(self.max_depth)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoreConfig':
        """Build config from a plain dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key in known:
                kwargs[key] = value
            else:
                logger.debug(f"   Ignoring unknown config key: {key}")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
