"""
Error types raised by the composition engine.

Every error is raised by the operation that detects it and leaves its inputs
untouched, so callers can fix the input and call again.
"""

__all__ = [
    'CompositionError',
    'ConstructionError',
    'LeafIndexError',
    'DegenerateBoundsError'
]


class CompositionError(Exception):
    """Base class for all composition engine errors."""


class ConstructionError(CompositionError, ValueError):
    """A composition was built from malformed input (bad design, bad layout)."""


class LeafIndexError(CompositionError, IndexError):
    """An index does not address an item of the composition."""


class DegenerateBoundsError(CompositionError, ValueError):
    """An inset box resolved to zero or negative width or height."""
