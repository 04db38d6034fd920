"""Error types raised by the Sentinel core.

Every error carries a machine-readable ``code`` plus a human ``reason`` and
``solution`` so that callers (REST handlers, CLI) can render the same
envelope the dashboard shows.
"""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for all Sentinel errors."""

    code = "SENTINEL_ERROR"
    default_reason = ""
    default_solution = ""

    def __init__(self, message: str, reason: str = "", solution: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason
        self.solution = solution or self.default_solution

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Return the JSON error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "reason": self.reason,
                "solution": self.solution,
            }
        }


class InvalidParametersError(SentinelError, ValueError):
    """Raised when an operation is called with missing or malformed arguments."""

    code = "INVALID_PARAMETERS"
    default_reason = "One or more parameters passed to the operation are incorrect or missing."
    default_solution = "Review the parameters and ensure all required values are correctly formatted."


class SLOValidationError(SentinelError, ValueError):
    """Raised when an SLO definition fails validation.

    ``errors`` holds every individual validation message.
    """

    code = "SLO_VALIDATION_FAILED"
    default_solution = "Correct the listed fields and submit the SLO definition again."

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            f"Validation failed: {'; '.join(self.errors)}",
            reason="The SLO definition does not satisfy the schema.",
        )


class InvalidTrackingWindowError(SentinelError, ValueError):
    """Raised when an SLO references a tracking window the calculator does not know."""

    code = "INVALID_TRACKING_WINDOW"
    default_solution = "Use one of the supported tracking windows."

    def __init__(self, window: object, valid: list[str]) -> None:
        self.window = window
        super().__init__(
            f"Invalid tracking window: {window}. Must be one of: {', '.join(valid)}",
            reason="Budget math would be misleading for an unknown window size.",
        )


class SLONotFoundError(SentinelError, LookupError):
    """Raised when an SLO id does not match any registered definition."""

    code = "SLO_NOT_FOUND"
    default_solution = "Verify the SLO id and try again."

    def __init__(self, slo_id: str) -> None:
        self.slo_id = slo_id
        super().__init__(
            "The requested SLO could not be found.",
            reason=f"The SLO '{slo_id}' does not match any registered definition.",
        )
