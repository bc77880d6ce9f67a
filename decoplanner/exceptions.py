"""
Error types raised by the decompression planner.

Invalid input and unsafe gas plans are rejected before any simulation runs.
A stop that never clears is a computation fault, not a short plan.
"""


class DecoPlannerError(Exception):
    """Base class for all planner errors."""


class InvalidInputError(DecoPlannerError, ValueError):
    """Malformed gas fractions, gradient factors or planner options."""


class UnsafePlanError(DecoPlannerError, ValueError):
    """A gas would be breathed above the allowed PO2."""


class DecompressionRunawayError(DecoPlannerError, RuntimeError):
    """A decompression stop did not clear within the safety bound."""

    def __init__(self, depth: float, held_minutes: float, limit: float):
        self.depth = depth
        self.held_minutes = held_minutes
        self.limit = limit
        super().__init__(
            f"Stop at {depth:.0f}m did not clear after {held_minutes:.1f} min "
            f"(limit {limit:.0f} min); profile is beyond what can be planned"
        )
