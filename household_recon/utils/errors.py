"""
utils/errors.py
---------------
Exceptions shared across the layers.
"""


class ValidationError(ValueError):
    """Raised when input violates a data-model invariant before reaching the engine."""


class InvalidTransitionError(RuntimeError):
    """Raised when a reconciliation decision is not allowed from the current state."""
