class QuizhubError(Exception):
    """Base class for errors raised inside the session engine."""


class InvariantViolation(QuizhubError):
    """Internal state broke a rule that should be impossible to break.

    Raised for programming errors only (an admin id that is not seated, a
    game initialized twice). The Lobby catches it at its public boundary,
    logs it and aborts the single operation.
    """
