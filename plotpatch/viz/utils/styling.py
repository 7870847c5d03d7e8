"""
Shared styling utilities for rendered compositions.

Turns guide descriptors into matplotlib legend handles and colorbars and
keeps legend, title and tag formatting consistent across plots.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
from matplotlib.cm import ScalarMappable
from matplotlib.lines import Line2D
import colorsys
from typing import Tuple, Optional, List, Dict, Any

__all__ = [
    'LEGEND_ANCHORS',
    'get_distinct_colors',
    'guide_colors',
    'create_guide_handles',
    'draw_guide_legend',
    'draw_colorbar',
    'apply_consistent_legend_formatting',
    'apply_theme_to_axes',
    'draw_tag'
]

# (loc, bbox_to_anchor) for legends drawn beside their own axes
LEGEND_ANCHORS: Dict[str, Tuple[str, Tuple[float, float]]] = {
    'right': ('center left', (1.02, 0.5)),
    'left': ('center right', (-0.12, 0.5)),
    'top': ('lower center', (0.5, 1.08)),
    'bottom': ('upper center', (0.5, -0.15)),
}


def get_distinct_colors(n_colors: int) -> List[np.ndarray]:
    """
    Get distinct colors for guides that do not specify their own.

    Uses the tab10 palette first and generates further colors in HSV space
    with golden-ratio hue steps.
    """
    base = [np.array(mcolors.to_rgb(color)) for color in plt.get_cmap('tab10').colors]
    colors = base[:n_colors]
    for i in range(max(0, n_colors - len(base))):
        hue = (i * 0.618033988749895) % 1.0
        saturation = 0.6 + (i % 3) * 0.15
        value = 0.7 + (i % 2) * 0.2
        colors.append(np.array(colorsys.hsv_to_rgb(hue, saturation, value)))
    return colors


def guide_colors(guide) -> List[Any]:
    """The colors of a legend guide, one per label."""
    if guide.colors:
        return list(guide.colors)
    return get_distinct_colors(len(guide.labels))


def create_guide_handles(guide) -> List[Line2D]:
    """
    Create legend handles for a legend guide.

    Args:
        guide: GuideDescriptor of kind 'legend'

    Returns:
        One Line2D proxy artist per label
    """
    colors = guide_colors(guide)
    markers = list(guide.markers) or ['o']
    handles = []
    for i, label in enumerate(guide.labels):
        handles.append(Line2D(
            [0], [0],
            linestyle='none',
            marker=markers[i % len(markers)],
            markerfacecolor=colors[i],
            markeredgecolor=colors[i],
            markersize=8,
            label=str(label)
        ))
    return handles


def draw_guide_legend(ax, guide, position: Optional[str] = None, font_size: float = 9.0, **kwargs):
    """
    Draw a legend guide on ``ax``.

    With ``position`` the legend sits beside the axes; without it the
    legend is centered inside ``ax`` (a dedicated guide axes).
    """
    handles = create_guide_handles(guide)
    if position is not None and position in LEGEND_ANCHORS:
        loc, anchor = LEGEND_ANCHORS[position]
        kwargs.setdefault('loc', loc)
        kwargs.setdefault('bbox_to_anchor', anchor)
    else:
        kwargs.setdefault('loc', 'center')
    if position in ('top', 'bottom'):
        kwargs.setdefault('ncol', max(1, len(handles)))
    legend = ax.legend(
        handles=handles,
        title=guide.title,
        fontsize=font_size,
        title_fontsize=font_size,
        frameon=False,
        **kwargs
    )
    return legend


def draw_colorbar(fig, guide, ax=None, cax=None, orientation: str = 'vertical', font_size: float = 9.0):
    """
    Draw a colorbar guide, either stealing space from ``ax`` or into ``cax``.
    """
    vmin, vmax = guide.value_range if guide.value_range is not None else (0.0, 1.0)
    if vmin == vmax:
        vmin -= 0.1
        vmax += 0.1
    mappable = ScalarMappable(norm=mcolors.Normalize(vmin=vmin, vmax=vmax), cmap=plt.get_cmap(guide.cmap or 'viridis'))
    mappable.set_array([])
    if cax is not None:
        colorbar = fig.colorbar(mappable, cax=cax, orientation=orientation)
    else:
        colorbar = fig.colorbar(mappable, ax=ax, orientation=orientation)
    if guide.title:
        colorbar.set_label(guide.title, fontsize=font_size)
    colorbar.ax.tick_params(labelsize=font_size)
    return colorbar


def apply_consistent_legend_formatting(ax, theme) -> None:
    """
    Apply theme text settings to an existing legend.

    If the axes has no legend this does nothing.
    """
    legend = ax.get_legend()
    if legend is None:
        return
    color = theme.get('text_color')
    for text in legend.get_texts():
        text.set_fontsize(theme.get('font_size'))
        text.set_color(color)
    legend.get_title().set_color(color)


def apply_theme_to_axes(ax, theme, title: Optional[str] = None) -> None:
    """Apply panel background, tick font size and title styling."""
    ax.set_facecolor(theme.get('panel_background'))
    ax.tick_params(labelsize=theme.get('font_size'), colors=theme.get('text_color'))
    if title:
        ax.set_title(title, fontsize=theme.get('title_size'), color=theme.get('text_color'), loc='center')


def draw_tag(ax, tag: str, theme) -> None:
    """Write a plot tag in the top-left corner outside the panel."""
    ax.text(
        -0.02, 1.02, tag,
        transform=ax.transAxes,
        ha='right',
        va='bottom',
        fontsize=theme.get('tag_size'),
        fontweight='bold',
        color=theme.get('text_color')
    )
