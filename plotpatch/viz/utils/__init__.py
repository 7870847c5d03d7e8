"""
Matplotlib helpers for rendering and saving compositions.
"""

from .common import plot_to_image, managed_figure, ensure_figure_closed, save_composition_with_metadata, close_figure_safely
from .styling import (
    get_distinct_colors,
    create_guide_handles,
    draw_guide_legend,
    draw_colorbar,
    apply_consistent_legend_formatting
)

__all__ = [
    # Common utilities
    'plot_to_image',
    'managed_figure',
    'ensure_figure_closed',
    'save_composition_with_metadata',
    'close_figure_safely',

    # Styling utilities
    'get_distinct_colors',
    'create_guide_handles',
    'draw_guide_legend',
    'draw_colorbar',
    'apply_consistent_legend_formatting'
]
