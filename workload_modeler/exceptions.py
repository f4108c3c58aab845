"""
Custom exception hierarchy for the workload modeler.

Every fatal condition of a transformation is raised synchronously to the
caller with enough context (variant, state) to diagnose it. Nothing here is
retried: the transformations are deterministic.
"""


class WorkloadModelerError(Exception):
    """Base exception for all workload modeler errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Model Exceptions
# =============================================================================


class MalformedReferenceError(WorkloadModelerError):
    """Raised when a state id does not resolve to a known state or endpoint."""

    def __init__(self, reference: str, variant: str | None = None, reason: str | None = None):
        details = {"reference": reference}
        if variant is not None:
            details["variant"] = variant
        message = reason or f"State '{reference}' is not available"
        if variant is not None and reason is None:
            message = f"{message} in variant '{variant}'"
        super().__init__(message, details=details)
        self.reference = reference
        self.variant = variant


class MissingPreconditionError(WorkloadModelerError):
    """Raised when a required part of a model is absent."""

    def __init__(self, message: str, variant: str | None = None):
        details = {}
        if variant is not None:
            details["variant"] = variant
        super().__init__(message, details=details)
        self.variant = variant


class DegenerateChainError(WorkloadModelerError):
    """Raised when a removed state keeps all of its mass in a self-loop."""

    def __init__(self, state_id: str, loop_probability: float, variant: str | None = None):
        details = {"state": state_id, "loop_probability": loop_probability}
        if variant is not None:
            details["variant"] = variant
        super().__init__(
            f"Cannot contract state '{state_id}': self-loop probability is {loop_probability}",
            details=details,
        )
        self.state_id = state_id
        self.loop_probability = loop_probability
        self.variant = variant


# =============================================================================
# Storage Exceptions
# =============================================================================


class StoreError(WorkloadModelerError):
    """Raised when database operations fail."""

    def __init__(self, operation: str, cause: str):
        super().__init__(
            f"Store error during {operation}: {cause}",
            details={"operation": operation, "cause": cause},
        )


class ModelNotFoundError(WorkloadModelerError):
    """Raised when a stored artifact is not found."""

    def __init__(self, kind: str, artifact_id: str):
        super().__init__(
            f"No {kind} with id '{artifact_id}' is available",
            details={"kind": kind, "id": artifact_id},
        )
        self.kind = kind
        self.artifact_id = artifact_id
