"""Models package for the web stack provisioner."""

from .config import StackConfig
from .summary import PortMapping, ProvisionStage, StackSummary, StepOutcome

__all__ = [
    "StackConfig",
    "PortMapping",
    "ProvisionStage",
    "StackSummary",
    "StepOutcome",
]
