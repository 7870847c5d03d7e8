"""
plotpatch visualization module

The plot model, the composition engine and the matplotlib render pass.
"""

from .base import Plot, Theme, GuideDescriptor, AxisSizes, THEME_DEFAULTS
from .errors import CompositionError, ConstructionError, LeafIndexError, DegenerateBoundsError
from .context import *
from .context import __all__ as _context_all

# Utilities
from .utils.common import plot_to_image, managed_figure, save_composition_with_metadata, close_figure_safely

__all__ = [
    # Plot model
    'Plot',
    'Theme',
    'GuideDescriptor',
    'AxisSizes',
    'THEME_DEFAULTS',

    # Errors
    'CompositionError',
    'ConstructionError',
    'LeafIndexError',
    'DegenerateBoundsError',

    # Utilities
    'plot_to_image',
    'managed_figure',
    'save_composition_with_metadata',
    'close_figure_safely',
] + list(_context_all)
