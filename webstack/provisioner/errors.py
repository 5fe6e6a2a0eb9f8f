"""
Errors raised by the provisioning pipeline.

Every subclass is fatal: the CLI logs it and exits non-zero. Best-effort
post-start adjustments never raise; they report a StepOutcome instead.
"""

from typing import Optional


class ProvisionError(Exception):
    """Base class for fatal provisioning failures."""

    label = "PROVISION"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self):
        if self.stage:
            return f"[{self.label}:{self.stage}] {self.message}"
        return f"[{self.label}] {self.message}"


class ConfigurationError(ProvisionError):
    """Configuration values are invalid."""

    label = "CONFIG"


class EngineError(ProvisionError):
    """Container engine missing, not installable, not startable, or no compose."""

    label = "PREFLIGHT"


class GenerationError(ProvisionError):
    """A generated artifact failed its post-write check."""

    label = "ARTIFACTS"


class LaunchError(ProvisionError):
    """Image build or container start failed."""

    label = "STACK"


class VerificationError(ProvisionError):
    """Container is not running after launch."""

    label = "REPORT"


class ConsentError(ProvisionError):
    """Operator answered the confirmation prompt with an unknown option."""

    label = "CONSENT"
