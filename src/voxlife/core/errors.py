"""Exception types raised by the voxlife core."""


class ConfigurationError(ValueError):
    """Raised when a simulation is constructed from invalid configuration.

    Raised before any grid or rule table is built, so no partially
    constructed object is ever returned.
    """


class InvariantViolation(AssertionError):
    """Raised when an internal invariant is broken.

    Covers out-of-range neighbor counts, out-of-bounds coordinates and
    health values outside ``{-1} ∪ [0, max_health]``. These indicate a
    programming error and are never clamped.
    """
