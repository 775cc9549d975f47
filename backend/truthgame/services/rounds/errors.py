class RoundError(Exception):
    """Base class for round engine errors."""


class InvalidRoundInput(RoundError, ValueError):
    """Player input outside the allowed verdict/confidence sets."""


class RoundStateError(RoundError):
    """Operation not permitted in the controller's current state."""
