"""
plotpatch: composition of independent plots into a single figure.

Plots are combined with operators (``+``, ``|``, ``/``), laid out on grids
or textual designs, overlaid as insets, annotated with titles and tags, and
rendered with matplotlib.
"""

__version__ = "0.1.0"

from . import utils
from . import viz

from .utils import setup_logging
from .viz import (
    Plot,
    Theme,
    GuideDescriptor,
    AxisSizes,
    spacer,
    guide_area,
    wrap_plots,
    set_layout,
    inset,
    annotate,
    render,
    render_image,
    CompositionConfig
)

__all__ = [
    'utils',
    'viz',
    'setup_logging',
    'Plot',
    'Theme',
    'GuideDescriptor',
    'AxisSizes',
    'spacer',
    'guide_area',
    'wrap_plots',
    'set_layout',
    'inset',
    'annotate',
    'render',
    'render_image',
    'CompositionConfig'
]
