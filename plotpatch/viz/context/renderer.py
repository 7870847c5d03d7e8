"""
Final render pass: composition tree to matplotlib figure.

The renderer is the only part of plotpatch with side effects. It re-applies
the root annotation's tags, collects guides where requested, solves the
layout at the configured figure size and creates one axes per plot.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
from PIL import Image

from ..base import Theme
from ..utils.common import (
    close_figure_safely,
    ensure_figure_closed,
    plot_to_image,
    save_composition_with_metadata
)
from ..utils.styling import (
    apply_consistent_legend_formatting,
    apply_theme_to_axes,
    draw_colorbar,
    draw_guide_legend,
    draw_tag
)
from .annotations import AnnotationApplier
from .composer import CompositionNode, GroupNode, GuideArea, Leaf, as_node
from .config import CompositionConfig
from .geometry import Rect, UNIT_RECT
from .guides import CollectedGuides, GuideCollector
from .layouts import FlatPlacement, GridAssignment, LayoutSolver

logger = logging.getLogger(__name__)

__all__ = [
    'PreparedComposition',
    'CompositionRenderer',
    'render',
    'render_image',
    'save'
]

# Relative height of a subtitle compared to the title strip
SUBTITLE_RATIO = 0.7


@dataclass
class PreparedComposition:
    """A composition ready to draw: tagged tree, solved layout and guides."""

    tree: CompositionNode
    layout: GridAssignment
    collections: List[Tuple[CompositionNode, CollectedGuides]] = field(default_factory=list)
    root_theme: Theme = field(default_factory=Theme)
    content_region: Rect = UNIT_RECT
    legend_region: Optional[Rect] = None

    def describe(self) -> Dict[str, Any]:
        """Plain-data summary of the solved composition."""
        annotation = getattr(self.tree, 'annotation', None)
        return {
            'layout': self.layout.describe(),
            'tags': [leaf.plot.tag for leaf in self.tree.leaves() if leaf.plot.tag],
            'title': annotation.title if annotation is not None else None,
            'collected_guides': [
                {'position': collected.position, 'guides': [g.appearance() for g in collected.guides]}
                for _, collected in self.collections
            ],
        }


class CompositionRenderer:
    """
    Renders composition trees.

    Args:
        config: Rendering configuration; defaults to ``CompositionConfig()``
    """

    def __init__(self, config: Optional[CompositionConfig] = None):
        self.config = config or CompositionConfig()
        self.collector = GuideCollector(default_position=self.config.legend_position)
        self.annotator = AnnotationApplier()
        self.logger = logging.getLogger(__name__)

    # Preparation

    def _retag(self, node: CompositionNode) -> CompositionNode:
        if not isinstance(node, GroupNode) or node.annotation is None:
            return node
        annotation = node.annotation
        if not annotation.tag_levels:
            return node
        annotation = replace(
            annotation,
            tag_prefix=annotation.tag_prefix or self.config.tag_prefix,
            tag_suffix=annotation.tag_suffix or self.config.tag_suffix,
            tag_sep=annotation.tag_sep or self.config.tag_sep,
        )
        return self.annotator.apply_tags(node, annotation)

    def _annotation_strips(self, node: CompositionNode) -> Tuple[float, float]:
        # Heights (inches) reserved above and below the content
        annotation = getattr(node, 'annotation', None)
        if annotation is None:
            return 0.0, 0.0
        top = 0.0
        if annotation.title:
            top += self.config.title_height
        if annotation.subtitle:
            top += self.config.title_height * SUBTITLE_RATIO
        bottom = self.config.caption_height if annotation.caption else 0.0
        return top, bottom

    def solver_for(self, root_theme: Theme) -> LayoutSolver:
        """A layout solver sized and spaced by the config."""
        return LayoutSolver(
            figsize=self.config.figsize,
            spacing=self.config.spacing,
            legend_size=(self.config.legend_width, self.config.legend_height),
            theme=root_theme
        )

    def prepare(self, tree: Any) -> PreparedComposition:
        """Tag, collect guides and solve the layout without drawing."""
        node = self._retag(as_node(tree))
        annotation = getattr(node, 'annotation', None)
        root_theme = Theme.coerce(annotation.theme if annotation is not None else None)
        solver = self.solver_for(root_theme)

        node, collections = self.collector.collect_nested(
            node,
            root_mode=self.config.guides,
            theme=annotation.theme if annotation is not None else None
        )

        height = self.config.figsize[1]
        top, bottom = self._annotation_strips(node)
        region = UNIT_RECT.shrink(top=top / height, bottom=bottom / height)

        legend_region = None
        nested_strips = {}
        for group, collected in collections:
            if not collected.guides:
                continue
            if group is node:
                region, legend_region = solver.split_guide_strip(region, collected.position)
            elif collected.position not in ('area', 'none'):
                nested_strips[id(group)] = collected.position

        layout = solver.solve(node, region=region, guide_positions=nested_strips)
        return PreparedComposition(
            tree=node,
            layout=layout,
            collections=collections,
            root_theme=root_theme,
            content_region=region,
            legend_region=legend_region,
        )

    # Drawing

    @staticmethod
    def _effective_theme(plot_theme: Theme, root_theme: Theme) -> Theme:
        if not root_theme.settings():
            return plot_theme
        return root_theme.update(**plot_theme.settings())

    def _draw_leaf(self, fig, leaf: Leaf, placement: FlatPlacement, root_theme: Theme):
        plot = leaf.plot
        theme = self._effective_theme(plot.theme, root_theme)
        ax = fig.add_axes(placement.panel(self.config.figsize).bounds())
        apply_theme_to_axes(ax, theme, plot.title)
        if plot.draw is not None:
            plot.draw(ax)
        if plot.tag:
            draw_tag(ax, plot.tag, theme)

        position = theme.get('legend_position')
        if plot.guides and position != 'none':
            legends = [g for g in plot.guides if g.kind == 'legend']
            for i, guide in enumerate(legends):
                legend = draw_guide_legend(ax, guide, position=position, font_size=theme.get('font_size'))
                # Only the last legend stays attached; earlier ones become plain artists
                if i < len(legends) - 1:
                    ax.add_artist(legend)
            apply_consistent_legend_formatting(ax, theme)
            for guide in plot.guides:
                if guide.kind == 'colorbar':
                    draw_colorbar(fig, guide, ax=ax, font_size=theme.get('font_size'))
        return ax

    def _draw_guide_box(self, fig, collected: CollectedGuides, rect: Rect, theme: Theme) -> None:
        guides = collected.guides
        if not guides:
            return
        vertical = collected.position in ('right', 'left', 'area')
        font_size = theme.get('font_size')
        fig_width, fig_height = self.config.figsize
        for i, guide in enumerate(guides):
            n = len(guides)
            if vertical:
                slot = Rect(rect.x0, rect.y1 - (i + 1) * rect.height / n, rect.x1, rect.y1 - i * rect.height / n)
            else:
                slot = Rect(rect.x0 + i * rect.width / n, rect.y0, rect.x0 + (i + 1) * rect.width / n, rect.y1)

            if guide.kind == 'colorbar':
                if vertical:
                    bar_width = min(0.2 / fig_width, slot.width * 0.3)
                    cax_rect = Rect(slot.x0 + 0.1 * slot.width, slot.y0 + 0.15 * slot.height,
                                    slot.x0 + 0.1 * slot.width + bar_width, slot.y1 - 0.15 * slot.height)
                    orientation = 'vertical'
                else:
                    bar_height = min(0.15 / fig_height, slot.height * 0.3)
                    middle = (slot.y0 + slot.y1) / 2
                    cax_rect = Rect(slot.x0 + 0.1 * slot.width, middle - bar_height / 2,
                                    slot.x1 - 0.1 * slot.width, middle + bar_height / 2)
                    orientation = 'horizontal'
                cax = fig.add_axes(cax_rect.bounds())
                draw_colorbar(fig, guide, cax=cax, orientation=orientation, font_size=font_size)
            else:
                ax = fig.add_axes(slot.bounds())
                ax.set_axis_off()
                draw_guide_legend(ax, guide, font_size=font_size, ncol=1 if vertical else max(1, len(guide.labels)))
                apply_consistent_legend_formatting(ax, theme)

    def _draw_collected(self, fig, prepared: PreparedComposition) -> None:
        for group, collected in prepared.collections:
            if not collected.guides or collected.position == 'none':
                continue
            if collected.position == 'area':
                rect = prepared.layout.rect_of(collected.area)
                if rect is None:
                    self.logger.warning("Guide area is not part of the solved layout; guides dropped")
                    continue
            elif group is prepared.tree:
                rect = prepared.legend_region
            else:
                rect = prepared.layout.guide_rect_of(group)
            if rect is not None:
                self._draw_guide_box(fig, collected, rect, prepared.root_theme)

    def _draw_annotation(self, fig, prepared: PreparedComposition) -> None:
        annotation = getattr(prepared.tree, 'annotation', None)
        if annotation is None:
            return
        theme = prepared.root_theme
        height = self.config.figsize[1]
        color = theme.get('text_color')
        y = 1.0
        if annotation.title:
            y -= self.config.title_height / height
            fig.text(0.5, y + 0.15 * self.config.title_height / height, annotation.title,
                     ha='center', va='bottom', fontsize=theme.get('title_size') + 3,
                     fontweight='bold', color=color)
        if annotation.subtitle:
            y -= self.config.title_height * SUBTITLE_RATIO / height
            fig.text(0.5, y + 0.1 * self.config.title_height / height, annotation.subtitle,
                     ha='center', va='bottom', fontsize=theme.get('title_size'), color=color)
        if annotation.caption:
            fig.text(0.99, 0.5 * self.config.caption_height / height, annotation.caption,
                     ha='right', va='center', fontsize=theme.get('font_size'), style='italic', color=color)

    def render(self, tree: Any) -> plt.Figure:
        """
        Draw ``tree`` into a new matplotlib figure.

        The caller owns the returned figure and should close it when done.
        """
        return self._draw(self.prepare(tree))

    def _draw(self, prepared: PreparedComposition) -> plt.Figure:
        fig = plt.figure(
            figsize=self.config.figsize,
            dpi=self.config.dpi,
            facecolor=prepared.root_theme.get('background')
        )
        try:
            n_axes = 0
            for placement in prepared.layout.flatten():
                if isinstance(placement.node, GuideArea) or placement.node.is_spacer:
                    continue
                self._draw_leaf(fig, placement.node, placement, prepared.root_theme)
                n_axes += 1
            self._draw_collected(fig, prepared)
            self._draw_annotation(fig, prepared)
        except Exception:
            close_figure_safely(fig)
            raise

        self.logger.info(
            f"Rendered composition with {n_axes} plots on a {prepared.layout.nrow}x{prepared.layout.ncol} grid"
        )
        return fig

    @ensure_figure_closed
    def render_image(self, tree: Any) -> Image.Image:
        """Render ``tree`` to a PIL image; the figure is always closed."""
        fig = self.render(tree)
        return plot_to_image(fig, dpi=self.config.dpi, max_size=self.config.max_image_size, close_fig=True)

    def save(self, tree: Any, save_path: str, save_metadata: bool = True) -> Dict[str, Any]:
        """Render ``tree`` to ``save_path`` with the solved layout as metadata."""
        prepared = self.prepare(tree)
        fig = self._draw(prepared)
        metadata = prepared.describe() if save_metadata else None
        return save_composition_with_metadata(
            fig,
            save_path,
            metadata=metadata,
            dpi=self.config.dpi,
            max_size=self.config.max_image_size
        )


def render(tree: Any, config: Optional[CompositionConfig] = None) -> plt.Figure:
    """Render ``tree`` to a matplotlib figure."""
    return CompositionRenderer(config or CompositionConfig.from_environment()).render(tree)


def render_image(tree: Any, config: Optional[CompositionConfig] = None) -> Image.Image:
    """Render ``tree`` to a PIL image."""
    return CompositionRenderer(config or CompositionConfig.from_environment()).render_image(tree)


def save(tree: Any, save_path: str, config: Optional[CompositionConfig] = None, save_metadata: bool = True) -> Dict[str, Any]:
    """Render ``tree`` and save it with layout metadata."""
    return CompositionRenderer(config or CompositionConfig.from_environment()).save(tree, save_path, save_metadata)
