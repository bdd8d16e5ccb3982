from __future__ import annotations

from typing import Optional


class BootstrapError(RuntimeError):
    # Set by the runner when the error escapes a step.
    step_id: Optional[str] = None


class PrivilegeError(BootstrapError):
    """Running as root, or sudo credentials could not be cached."""


class DetectionError(BootstrapError):
    """A required host identification value could not be determined."""


class StepOrderError(BootstrapError):
    pass


class StepFailure(BootstrapError):
    def __init__(self, step_id: str, cause: BaseException | None = None, result=None) -> None:
        self.step_id = step_id
        self.cause = cause
        self.result = result
        msg = f"Step {step_id} failed"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class ConfigError(ValueError):
    pass
