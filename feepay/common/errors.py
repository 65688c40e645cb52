"""Domain errors raised by stores and services.

All subclass `ValueError` so callers that only care about "bad request vs
crash" can keep catching the builtin.
"""


class NotFoundError(ValueError):
    """Referenced record does not exist."""


class ConflictError(ValueError):
    """Write would violate a uniqueness rule."""


class ValidationError(ValueError):
    """Input is outside the accepted domain."""


class GatewayError(RuntimeError):
    """Outbound payment gateway call failed or returned an unusable body."""
