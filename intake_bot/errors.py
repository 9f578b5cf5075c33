"""Error taxonomy shared by the registries, the lifecycle and the authority client.

Every error carries a ``reason`` that can be shown as-is to whoever triggered
the action (an applicant or a reviewer).
"""

from __future__ import annotations


class IntakeError(Exception):
    """Root of all errors raised by ``intake_bot``."""

    @property
    def reason(self) -> str:
        return str(self)


class ValidationError(IntakeError):
    """Malformed or missing user input."""


class InvalidFormError(ValidationError):
    """Submission against an unknown or inactive form."""


class IncompleteAnswersError(ValidationError):
    """A form question was left without an answer."""


class NotFoundError(IntakeError):
    """Reference to an id that does not exist."""


class AlreadyReviewedError(IntakeError):
    """The application left ``PENDING`` already or is being reviewed right now."""


class AuthorizationError(IntakeError):
    """Staff credential missing or wrong."""


class AuthorityError(IntakeError):
    """Failure talking to the external authority."""


class ConfigurationError(AuthorityError):
    """Authority endpoint or shared secret not configured."""


class TargetResolutionError(AuthorityError):
    """No target guild could be determined for an application."""


class TransportError(AuthorityError):
    """The authority could not be reached."""


class RemoteError(AuthorityError):
    """The authority answered but did not confirm success."""


__all__ = [
    "IntakeError",
    "ValidationError",
    "InvalidFormError",
    "IncompleteAnswersError",
    "NotFoundError",
    "AlreadyReviewedError",
    "AuthorizationError",
    "AuthorityError",
    "ConfigurationError",
    "TargetResolutionError",
    "TransportError",
    "RemoteError",
]
