"""Domain errors raised by the session lifecycle and recommendation services."""


class TutoringError(Exception):
    """Base class for all domain errors."""


class AccessDenied(TutoringError):
    """The actor is not allowed to perform the requested operation."""


class InvalidTransition(TutoringError):
    """The requested status change is not an edge of the booking state machine."""


class InvalidState(TutoringError):
    """The session is not in a state that allows the operation."""


class AlreadyReviewed(TutoringError):
    """The session already carries a review."""


class NotFoundError(TutoringError, ValueError):
    """A session or user does not exist."""


class ExternalServiceDegraded(TutoringError):
    """The generative model failed, timed out or returned nothing usable.

    Only raised and handled inside the recommendation engine.
    """


class ConcurrentUpdate(TutoringError):
    """The session was changed by another request since it was read."""
