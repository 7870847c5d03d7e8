"""
Layout solving for compositions.

This module turns a composition tree into concrete rectangles: each group
is solved on its own grid, nested groups are solved inside the cell their
parent gives them, and insets are placed over their host. Rectangles are
figure fractions with the origin at the bottom left.

Everything that takes space away from a panel is decided here (cell
spacing, axis decorations, legends kept beside a plot and strips for
guides collected by a nested group) so that the rectangles handed to the
renderer and those used to place insets agree.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..base import AxisSizes, Plot, Theme
from .composer import CompositionNode, GroupNode, GuideArea, Inset, Leaf, as_node, set_layout
from .design import auto_grid_dims, resolve_grid_dims
from .geometry import Rect, UNIT_RECT
from .insets import InsetPlacer, PositionedOverlay

logger = logging.getLogger(__name__)

__all__ = [
    'auto_grid_dims',
    'resolve_grid_dims',
    'legend_reservation',
    'AlignmentHints',
    'CellPlacement',
    'FlatPlacement',
    'GridAssignment',
    'LayoutSolver',
    'solve'
]

GUIDE_SIDES = ('right', 'left', 'top', 'bottom')

NO_DECORATIONS = AxisSizes(0.0, 0.0, 0.0, 0.0)


def legend_reservation(plot: Plot, theme: Theme, legend_size: Tuple[float, float]) -> AxisSizes:
    """
    Space (inches) a plot's own legends take beside its panel.

    Only legend guides still attached to the plot count; colorbars take
    their room from the axes they are drawn next to.
    """
    if plot.blank or not any(guide.kind == 'legend' for guide in plot.guides):
        return NO_DECORATIONS
    position = plot.theme.get('legend_position', Theme.coerce(theme).get('legend_position'))
    width, height = legend_size
    return AxisSizes(
        left=width if position == 'left' else 0.0,
        bottom=height if position == 'bottom' else 0.0,
        right=width if position == 'right' else 0.0,
        top=height if position == 'top' else 0.0,
    )


@dataclass
class AlignmentHints:
    """
    Aligned axis decoration sizes (inches) for one grid.

    Left/right sizes are per column, bottom/top sizes per row; each is the
    largest size among the plots that share that column or row edge.
    """

    left: List[float]
    right: List[float]
    bottom: List[float]
    top: List[float]

    @classmethod
    def empty(cls, nrow: int, ncol: int) -> 'AlignmentHints':
        return cls(left=[0.0] * ncol, right=[0.0] * ncol, bottom=[0.0] * nrow, top=[0.0] * nrow)

    def margins_for(self, cell: 'CellPlacement') -> AxisSizes:
        return AxisSizes(
            left=self.left[cell.col],
            bottom=self.bottom[cell.row + cell.row_span - 1],
            right=self.right[cell.col + cell.col_span - 1],
            top=self.top[cell.row],
        )


@dataclass
class CellPlacement:
    """Where one child of a grid goes."""

    node: CompositionNode
    rect: Rect  # relative to the parent region
    abs_rect: Rect  # relative to the figure
    row: int
    col: int
    row_span: int = 1
    col_span: int = 1
    child: Optional['GridAssignment'] = None
    margins: Optional[AxisSizes] = None
    inner: Optional[Rect] = None  # abs_rect less the cell spacing
    guide_rect: Optional[Rect] = None  # strip for guides collected by a nested group


@dataclass(frozen=True)
class FlatPlacement:
    """A drawable cell (plot leaf or guide area) with its figure rectangle."""

    node: CompositionNode
    rect: Rect
    margins: Optional[AxisSizes] = None

    def panel(self, figsize: Tuple[float, float]) -> Rect:
        """The data-drawing rectangle: ``rect`` less the margins."""
        if self.margins is None:
            return self.rect
        width, height = figsize
        m = self.margins
        panel = self.rect.shrink(m.left / width, m.bottom / height, m.right / width, m.top / height)
        if panel.width <= 0 or panel.height <= 0:
            return self.rect
        return panel


@dataclass
class GridAssignment:
    """The solved layout of one group (or of a single node)."""

    nrow: int
    ncol: int
    cells: List[CellPlacement]
    region: Rect
    alignment: AlignmentHints
    inset: Optional[PositionedOverlay] = None

    def flatten(self) -> List[FlatPlacement]:
        """Every drawable cell in draw order (inset overlays after their host)."""
        flat = []
        for cell in self.cells:
            if cell.child is not None:
                flat.extend(cell.child.flatten())
            elif isinstance(cell.node, (Leaf, GuideArea)):
                rect = cell.inner if cell.inner is not None else cell.abs_rect
                flat.append(FlatPlacement(cell.node, rect, cell.margins))
        return flat

    def leaf_rects(self) -> List[Tuple[Leaf, Rect]]:
        return [(p.node, p.rect) for p in self.flatten() if isinstance(p.node, Leaf)]

    def _find(self, node: CompositionNode) -> Optional[CellPlacement]:
        for cell in self.cells:
            if cell.node is node:
                return cell
            if cell.child is not None:
                found = cell.child._find(node)
                if found is not None:
                    return found
        return None

    def rect_of(self, node: CompositionNode) -> Optional[Rect]:
        """Figure rectangle of ``node`` (matched by identity) anywhere in the layout."""
        cell = self._find(node)
        if cell is None:
            return None
        return cell.inner if cell.inner is not None else cell.abs_rect

    def guide_rect_of(self, node: CompositionNode) -> Optional[Rect]:
        """The strip reserved for the guides collected by group ``node``."""
        cell = self._find(node)
        return cell.guide_rect if cell is not None else None

    def describe(self) -> Dict[str, Any]:
        """Plain-data summary, suitable for JSON metadata."""
        return {
            'nrow': self.nrow,
            'ncol': self.ncol,
            'region': [self.region.x0, self.region.y0, self.region.x1, self.region.y1],
            'cells': [
                {
                    'node': type(cell.node).__name__,
                    'title': cell.node.plot.title if isinstance(cell.node, Leaf) else None,
                    'row': cell.row,
                    'col': cell.col,
                    'row_span': cell.row_span,
                    'col_span': cell.col_span,
                    'rect': [cell.abs_rect.x0, cell.abs_rect.y0, cell.abs_rect.x1, cell.abs_rect.y1],
                    'child': cell.child.describe() if cell.child is not None else None,
                }
                for cell in self.cells
            ],
        }


class LayoutSolver:
    """
    Solves composition trees into grid assignments.

    Args:
        figsize: Figure size (inches), needed for absolute units
        placer: Inset placer
        spacing: Fraction of each plot cell kept as gap on every side
        legend_size: (width, height) in inches reserved for a legend beside
            a plot or group, depending on the side it is drawn on
        theme: Ambient theme deciding on which side kept legends sit
    """

    def __init__(
        self,
        figsize: Tuple[float, float] = (8.0, 6.0),
        placer: Optional[InsetPlacer] = None,
        spacing: float = 0.0,
        legend_size: Tuple[float, float] = (0.0, 0.0),
        theme: Optional[Any] = None
    ):
        self.figsize = (float(figsize[0]), float(figsize[1]))
        self.placer = placer or InsetPlacer()
        self.spacing = float(spacing)
        self.legend_size = (float(legend_size[0]), float(legend_size[1]))
        self.theme = Theme.coerce(theme)
        self.logger = logging.getLogger(__name__)

    def solve(
        self,
        tree: Any,
        constraints: Optional[Dict[str, Any]] = None,
        region: Rect = UNIT_RECT,
        guide_positions: Optional[Mapping[int, str]] = None
    ) -> GridAssignment:
        """
        Solve ``tree`` inside ``region`` (figure fractions).

        Args:
            tree: Composition node or plot
            constraints: Optional layout constraints (nrow, ncol, design, ...)
                applied to the root before solving
            region: Part of the figure the composition may use
            guide_positions: ``id(group) -> side`` for nested groups whose
                collected guides need a strip of their own

        Returns:
            GridAssignment for the root
        """
        node = as_node(tree)
        if constraints:
            node = set_layout(node, **constraints)
        strips = dict(guide_positions or {})

        if isinstance(node, GroupNode):
            return self._solve_group(node, region, strips)
        if isinstance(node, Inset):
            return self._solve_inset(node, region, strips)
        return self._solve_single(node, region, strips)

    # Space taken from cells

    def decorations(self, leaf: Leaf) -> AxisSizes:
        """Axis decorations plus kept legends of ``leaf`` (inches)."""
        if leaf.is_spacer:
            return NO_DECORATIONS
        sizes = leaf.plot.axis_sizes
        extra = legend_reservation(leaf.plot, self.theme, self.legend_size)
        return AxisSizes(
            left=sizes.left + extra.left,
            bottom=sizes.bottom + extra.bottom,
            right=sizes.right + extra.right,
            top=sizes.top + extra.top,
        )

    def _padded(self, rect: Rect) -> Rect:
        dx = self.spacing * rect.width
        dy = self.spacing * rect.height
        return rect.shrink(dx, dy, dx, dy)

    def split_guide_strip(
        self,
        region: Rect,
        position: str,
        max_fraction: Optional[float] = None
    ) -> Tuple[Rect, Optional[Rect]]:
        """
        Split a legend strip off ``region`` on side ``position``.

        Returns:
            (remaining region, strip), or (region, None) when the guides are
            not drawn beside the region
        """
        if position not in GUIDE_SIDES:
            return region, None
        side = self.legend_size[0] / self.figsize[0]
        strip = self.legend_size[1] / self.figsize[1]
        if max_fraction is not None:
            side = min(side, region.width * max_fraction)
            strip = min(strip, region.height * max_fraction)

        if position == 'right':
            return region.shrink(right=side), Rect(region.x1 - side, region.y0, region.x1, region.y1)
        if position == 'left':
            return region.shrink(left=side), Rect(region.x0, region.y0, region.x0 + side, region.y1)
        if position == 'top':
            return region.shrink(top=strip), Rect(region.x0, region.y1 - strip, region.x1, region.y1)
        return region.shrink(bottom=strip), Rect(region.x0, region.y0, region.x1, region.y0 + strip)

    # Grid geometry

    @staticmethod
    def _edges(weights: Optional[Sequence[float]], count: int) -> List[float]:
        # Weights are recycled to the number of tracks
        values = np.resize(np.asarray(weights if weights else (1.0,), dtype=float), count)
        edges = np.concatenate([[0.0], np.cumsum(values)]) / values.sum()
        return edges.tolist()

    @staticmethod
    def _cell_spans(node: GroupNode, nrow: int, ncol: int) -> List[Tuple[int, int, int, int]]:
        n = len(node.children)
        parsed = node.layout.parsed_design
        if parsed is not None and node.force_nrow is None and node.force_ncol is None:
            return [(a.top - 1, a.left - 1, a.row_span, a.col_span) for a in parsed.areas[:n]]

        spans = []
        for i in range(n):
            if node.layout.byrow or node.force_nrow is not None or node.force_ncol is not None:
                row, col = divmod(i, ncol)
            else:
                col, row = divmod(i, nrow)
            spans.append((row, col, 1, 1))
        return spans

    def _solve_group(self, node: GroupNode, region: Rect, strips: Dict[int, str]) -> GridAssignment:
        nrow, ncol = resolve_grid_dims(len(node.children), node.layout, node.force_nrow, node.force_ncol)
        col_edges = self._edges(node.layout.widths, ncol)
        row_edges = self._edges(node.layout.heights, nrow)

        cells = []
        for child, (row, col, row_span, col_span) in zip(node.children, self._cell_spans(node, nrow, ncol)):
            # Rows count from the top, rectangles from the bottom
            rect = Rect(
                col_edges[col],
                1.0 - row_edges[row + row_span],
                col_edges[col + col_span],
                1.0 - row_edges[row],
            )
            cells.append(self._place_cell(child, rect, region, row, col, row_span, col_span, strips))

        alignment = self._alignment(cells, nrow, ncol)
        for cell in cells:
            if isinstance(cell.node, Leaf):
                cell.margins = alignment.margins_for(cell)

        self.logger.debug(f"Solved {type(node).__name__} of {len(cells)} children on a {nrow}x{ncol} grid")
        return GridAssignment(nrow=nrow, ncol=ncol, cells=cells, region=region, alignment=alignment)

    def _solve_single(self, node: CompositionNode, region: Rect, strips: Dict[int, str]) -> GridAssignment:
        cell = self._place_cell(node, UNIT_RECT, region, 0, 0, 1, 1, strips)
        if isinstance(node, Leaf):
            cell.margins = self.decorations(node)
        return GridAssignment(nrow=1, ncol=1, cells=[cell], region=region, alignment=self._alignment([cell], 1, 1))

    def _solve_inset(self, node: Inset, region: Rect, strips: Dict[int, str]) -> GridAssignment:
        host_cell = self._place_cell(node.host, UNIT_RECT, region, 0, 0, 1, 1, strips)
        host_region = region
        margins = None
        if isinstance(node.host, Leaf):
            host_cell.margins = margins = self.decorations(node.host)
            host_region = host_cell.inner

        positioned = self.placer.place(
            node.host, self._to_inches(host_region), node.overlay, node.box, node.align_to, margins
        )
        overlay_abs = self._from_inches(positioned.rect)
        # The overlay box is exact; no spacing is taken from it
        overlay_cell = self._place_cell(
            node.overlay, overlay_abs.relative_to(region), region, 0, 0, 1, 1, strips, padded=False
        )
        if isinstance(node.overlay, Leaf):
            overlay_cell.margins = self.decorations(node.overlay)

        return GridAssignment(
            nrow=1,
            ncol=1,
            cells=[host_cell, overlay_cell],
            region=region,
            alignment=self._alignment([host_cell], 1, 1),
            inset=positioned,
        )

    def _place_cell(
        self,
        child: CompositionNode,
        rect: Rect,
        parent_region: Rect,
        row: int,
        col: int,
        row_span: int,
        col_span: int,
        strips: Dict[int, str],
        padded: bool = True
    ) -> CellPlacement:
        abs_rect = rect.within(parent_region)
        sub = None
        inner = None
        guide_rect = None
        if isinstance(child, GroupNode):
            content = abs_rect
            position = strips.get(id(child))
            if position is not None:
                content, guide_rect = self.split_guide_strip(abs_rect, position, max_fraction=1 / 3)
            sub = self._solve_group(child, content, strips)
        elif isinstance(child, Inset):
            sub = self._solve_inset(child, abs_rect, strips)
        else:
            inner = self._padded(abs_rect) if padded else abs_rect
        return CellPlacement(
            child, rect, abs_rect, row, col, row_span, col_span,
            child=sub, inner=inner, guide_rect=guide_rect
        )

    def _alignment(self, cells: List[CellPlacement], nrow: int, ncol: int) -> AlignmentHints:
        hints = AlignmentHints.empty(nrow, ncol)
        for cell in cells:
            if not isinstance(cell.node, Leaf) or cell.node.is_spacer:
                continue
            sizes = self.decorations(cell.node)
            last_col = cell.col + cell.col_span - 1
            last_row = cell.row + cell.row_span - 1
            hints.left[cell.col] = max(hints.left[cell.col], sizes.left)
            hints.right[last_col] = max(hints.right[last_col], sizes.right)
            hints.top[cell.row] = max(hints.top[cell.row], sizes.top)
            hints.bottom[last_row] = max(hints.bottom[last_row], sizes.bottom)
        return hints

    # Unit conversion between figure fractions and inches

    def _to_inches(self, rect: Rect) -> Rect:
        return rect.scale(*self.figsize)

    def _from_inches(self, rect: Rect) -> Rect:
        return rect.scale(1.0 / self.figsize[0], 1.0 / self.figsize[1])


def solve(
    tree: Any,
    constraints: Optional[Dict[str, Any]] = None,
    figsize: Tuple[float, float] = (8.0, 6.0)
) -> GridAssignment:
    """Solve ``tree`` with a fresh ``LayoutSolver``."""
    return LayoutSolver(figsize=figsize).solve(tree, constraints)
