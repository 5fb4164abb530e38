"""Error types raised along the login pipeline."""

from enum import Enum
from typing import Optional, Sequence


class LoginAgentError(Exception):
    """Base class; ``kind`` is what ends up in a Failure outcome."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(LoginAgentError):
    def __init__(self, missing: Sequence[str] = (), invalid: Optional[dict[str, str]] = None):
        self.missing = list(missing)
        self.invalid = dict(invalid or {})
        problems = []
        if self.missing:
            problems.append(f"Missing required settings: {', '.join(self.missing)}")
        for name, reason in self.invalid.items():
            problems.append(f"Invalid {name}: {reason}")
        super().__init__("; ".join(problems))


class NavigationError(LoginAgentError):
    pass


class FormInteractionError(LoginAgentError):
    def __init__(self, field: str, tried: Sequence[str]):
        self.field = field
        self.tried = list(tried)
        super().__init__(f"No {field} field matched any of: {', '.join(self.tried)}")


class ChallengeFailure(str, Enum):
    UNRESOLVED = "unresolved"
    TIMED_OUT = "timed_out"
    INTERACTIVE_DETECTED = "interactive_detected"


class ChallengeError(LoginAgentError):
    """The bot challenge did not yield a usable token."""

    def __init__(
        self,
        reason: ChallengeFailure,
        message: str,
        *,
        field_exists: Optional[bool] = None,
        observed_length: int = 0,
        attempts: int = 0,
    ):
        self.reason = reason
        self.field_exists = field_exists
        self.observed_length = observed_length
        self.attempts = attempts
        super().__init__(message)

    @property
    def kind(self) -> str:
        return "ChallengeError"

    def __str__(self) -> str:
        base = super().__str__()
        if self.reason == ChallengeFailure.UNRESOLVED:
            return base
        return (
            f"{base} (reason={self.reason.value}, attempts={self.attempts}, "
            f"field_exists={self.field_exists}, observed_length={self.observed_length})"
        )


class SubmissionError(LoginAgentError):
    pass


class NotificationDeliveryError(LoginAgentError):
    pass
