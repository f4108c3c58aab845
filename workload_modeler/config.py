"""
Configuration for the Workload Modeler.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class WorkloadModelerConfig:
    """Configuration for the Workload Modeler."""

    # Database
    db_path: Path = field(default_factory=lambda: Path("workload_modeler/db/models.db"))

    # Merging
    default_merge_weight: float = 0.5

    # State markers
    initial_state: str = "INITIAL"               # Entry state of a behavior model
    workload_initial_operation: str = "INITIAL_STATE"  # Its operation id in a workload

    # Validation
    probability_tolerance: float = 1e-6

    def __post_init__(self):
        """Ensure db_path parent directories exist."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
