from __future__ import annotations

from typing import Optional


class ProvisionError(RuntimeError):
    """Base class for every error that aborts a provisioning run."""


class PreflightError(ProvisionError):
    pass


class ConfigError(ProvisionError):
    pass


class IdentityError(ProvisionError):
    """The target account is missing or the identity switch itself failed."""


class StateStoreError(ProvisionError):
    pass


class StateLockedError(StateStoreError):
    pass


class ConsistencyError(ProvisionError):
    """A checkpoint exists but the data it vouches for does not.

    Recovery is manual: the operator deletes the state directory.
    """

    def __init__(self, message: str, *, state_dir: Optional[str] = None) -> None:
        if state_dir:
            message = f"{message}. Remove {state_dir} to reset all checkpoints."
        super().__init__(message)
        self.state_dir = state_dir


class StepFailed(ProvisionError):
    def __init__(self, step_id: str, cause: BaseException, *, kind: str = "action") -> None:
        super().__init__(f"Step {step_id} failed ({kind}): {cause}")
        self.step_id = step_id
        self.cause = cause
        self.kind = kind
