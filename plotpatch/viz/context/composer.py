"""
Composition tree - the core structure for combining multiple plots.

A composition is a tree of nodes. Leaves wrap single plots; group nodes
arrange their children (``Combine``, ``Row``, ``Column``, ``Grid``); an
``Inset`` overlays one subtree on another. Nodes are immutable: every
operator returns a new tree that reuses untouched subtrees and plots, so a
plot placed in several compositions is never changed behind their backs.

Operators mirror the functions in this module::

    a + b      combine(a, b)
    a | b      stack_row(a, b)
    a / b      stack_col(a, b)
    a & theme  apply_to_all(a, theme)
    a * theme  apply_to_level(a, theme)
    a[i]       index_get(a, i)
"""

import logging
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from ..base import Plot, Theme
from ..errors import ConstructionError, LeafIndexError
from .design import LayoutSpec, resolve_grid_dims
from .geometry import BoundingBox

logger = logging.getLogger(__name__)

__all__ = [
    'CompositionNode',
    'Leaf',
    'GuideArea',
    'GroupNode',
    'Combine',
    'Row',
    'Column',
    'Grid',
    'Inset',
    'as_node',
    'spacer',
    'guide_area',
    'combine',
    'stack_row',
    'stack_col',
    'wrap_plots',
    'set_layout',
    'index_get',
    'index_set',
    'leaves',
    'plots',
    'apply_to_all',
    'apply_to_level',
    'map_leaves'
]

ThemeLike = Union[Theme, Mapping[str, Any]]


class CompositionNode:
    """Base class of every node in a composition tree."""

    def __add__(self, other):
        return combine(self, other)

    def __radd__(self, other):
        return combine(other, self)

    def __or__(self, other):
        return stack_row(self, other)

    def __ror__(self, other):
        return stack_row(other, self)

    def __truediv__(self, other):
        return stack_col(self, other)

    def __rtruediv__(self, other):
        return stack_col(other, self)

    def __and__(self, other):
        return apply_to_all(self, other)

    def __mul__(self, other):
        return apply_to_level(self, other)

    def __getitem__(self, index):
        return index_get(self, index)

    def leaves(self) -> Iterator['Leaf']:
        return leaves(self)


class Leaf(CompositionNode):
    """A single plot inside a composition."""

    def __init__(self, plot: Plot):
        if not isinstance(plot, Plot):
            raise TypeError(f"Leaf expects a Plot, got {type(plot).__name__}")
        self.plot = plot

    @property
    def is_spacer(self) -> bool:
        return self.plot.blank

    def __repr__(self) -> str:
        return f"Leaf({self.plot!r})"


class GuideArea(CompositionNode):
    """A reserved cell that receives collected guides."""

    def __repr__(self) -> str:
        return "GuideArea()"


class GroupNode(CompositionNode):
    """
    A node arranging its children on a grid.

    Subclasses may force one grid dimension. ``annotation`` holds the
    title, caption and tag settings of a composition root.
    """

    force_nrow: Optional[int] = None
    force_ncol: Optional[int] = None

    def __init__(
        self,
        children: Iterable[Any],
        layout: Optional[LayoutSpec] = None,
        annotation: Optional[Any] = None
    ):
        self.children: Tuple[CompositionNode, ...] = tuple(as_node(child) for child in children)
        if not self.children:
            raise ConstructionError(f"{type(self).__name__} needs at least one child")
        self.layout = layout if layout is not None else LayoutSpec()
        self.annotation = annotation
        # Validate the grid now so bad layouts fail at build time
        self.dims = resolve_grid_dims(len(self.children), self.layout, self.force_nrow, self.force_ncol)

    @property
    def nrow(self) -> int:
        return self.dims[0]

    @property
    def ncol(self) -> int:
        return self.dims[1]

    def _rebuild(self, children=None, layout=None, annotation=None, keep_annotation=True) -> 'GroupNode':
        return type(self)(
            self.children if children is None else children,
            self.layout if layout is None else layout,
            self.annotation if (annotation is None and keep_annotation) else annotation,
        )

    def with_children(self, children: Iterable[Any]) -> 'GroupNode':
        return self._rebuild(children=tuple(children))

    def with_layout(self, layout: LayoutSpec) -> 'GroupNode':
        return self._rebuild(layout=layout)

    def with_annotation(self, annotation: Any) -> 'GroupNode':
        return self._rebuild(annotation=annotation, keep_annotation=False)

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[CompositionNode]:
        return iter(self.children)

    def __repr__(self) -> str:
        inner = ', '.join(repr(child) for child in self.children)
        return f"{type(self).__name__}([{inner}])"


class Combine(GroupNode):
    """Children laid out on an automatically sized grid."""


class Row(GroupNode):
    """Children side by side in a single row."""

    force_nrow = 1


class Column(GroupNode):
    """Children stacked in a single column."""

    force_ncol = 1


class Grid(GroupNode):
    """Children laid out with explicit constraints."""


class Inset(CompositionNode):
    """
    An overlay drawn on top of a host.

    ``align_to`` selects the reference region of the host: ``"panel"`` (the
    data area) or ``"full"`` (the whole cell including axes and titles).
    """

    ALIGN_TARGETS = ('panel', 'full')

    def __init__(self, host: Any, overlay: Any, box: Optional[BoundingBox] = None, align_to: str = 'panel'):
        if align_to not in self.ALIGN_TARGETS:
            raise ConstructionError(
                f"Unknown inset alignment: {align_to!r}. Available: {list(self.ALIGN_TARGETS)}"
            )
        if box is not None and not isinstance(box, BoundingBox):
            raise TypeError(f"Inset box must be a BoundingBox, got {type(box).__name__}")
        self.host = as_node(host)
        self.overlay = as_node(overlay)
        self.box = box if box is not None else BoundingBox()
        self.align_to = align_to

    @property
    def children(self) -> Tuple[CompositionNode, CompositionNode]:
        return (self.host, self.overlay)

    def with_parts(self, host: Any, overlay: Any) -> 'Inset':
        return Inset(host, overlay, self.box, self.align_to)

    def __repr__(self) -> str:
        return f"Inset({self.host!r}, {self.overlay!r}, align_to={self.align_to!r})"


def as_node(value: Any) -> CompositionNode:
    """Coerce a plot or node into a composition node."""
    if isinstance(value, CompositionNode):
        return value
    if isinstance(value, Plot):
        return Leaf(value)
    raise TypeError(f"Cannot compose {type(value).__name__}; expected a Plot or composition")


def spacer() -> Leaf:
    """An empty cell."""
    return Leaf(Plot.spacer())


def guide_area() -> GuideArea:
    """A cell reserved for collected guides."""
    return GuideArea()


def combine(a: Any, b: Any) -> CompositionNode:
    """Add ``b`` to ``a``, extending ``a`` if it already is a Combine."""
    a, b = as_node(a), as_node(b)
    if isinstance(a, Combine):
        return a.with_children(a.children + (b,))
    return Combine([a, b])


def stack_row(a: Any, b: Any) -> CompositionNode:
    """Place ``b`` to the right of ``a``."""
    a, b = as_node(a), as_node(b)
    if isinstance(a, Row):
        return a.with_children(a.children + (b,))
    return Row([a, b])


def stack_col(a: Any, b: Any) -> CompositionNode:
    """Place ``b`` below ``a``."""
    a, b = as_node(a), as_node(b)
    if isinstance(a, Column):
        return a.with_children(a.children + (b,))
    return Column([a, b])


def wrap_plots(*plots: Any, **constraints) -> CompositionNode:
    """Combine any number of plots at one level, optionally with layout constraints."""
    if len(plots) == 1 and not isinstance(plots[0], (Plot, CompositionNode)):
        plots = tuple(plots[0])
    node = Combine(plots)
    if constraints:
        return set_layout(node, **constraints)
    return node


_FORCED_CONSTRAINTS = ('nrow', 'ncol', 'byrow', 'design')


def set_layout(node: Any, **constraints) -> CompositionNode:
    """
    Attach layout constraints to a composition.

    Rows and columns keep their shape; constraints that would change it are
    ignored with a warning. Every other node becomes a ``Grid``.
    """
    node = as_node(node)

    if isinstance(node, (Row, Column)):
        ignored = sorted(k for k in _FORCED_CONSTRAINTS if constraints.get(k) is not None)
        if ignored:
            logger.warning(
                f"{type(node).__name__} keeps its shape; ignoring layout constraints {ignored}"
            )
        kept = {k: v for k, v in constraints.items() if k not in _FORCED_CONSTRAINTS}
        return node.with_layout(node.layout.merge(**kept))

    if isinstance(node, GroupNode):
        return Grid(node.children, node.layout.merge(**constraints), node.annotation)

    return Grid([node], LayoutSpec().merge(**constraints))


def _addressable(node: CompositionNode) -> Tuple[CompositionNode, ...]:
    # Items addressed by index: the direct children of a group or inset, or
    # the node itself when it stands alone.
    if isinstance(node, (GroupNode, Inset)):
        return tuple(node.children)
    return (node,)


def _normalize_index(node: CompositionNode, index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"Composition indices must be integers, got {type(index).__name__}")
    n = len(_addressable(node))
    if not -n <= index < n:
        raise LeafIndexError(f"Index {index} out of range for a composition of {n} items")
    return index % n


def index_get(node: Any, index: int) -> CompositionNode:
    """Return the item at ``index`` in left-to-right order."""
    node = as_node(node)
    return _addressable(node)[_normalize_index(node, index)]


def index_set(node: Any, index: int, replacement: Any) -> CompositionNode:
    """
    Return a new tree with the item at ``index`` replaced.

    Raises:
        LeafIndexError: if ``index`` is out of range; the tree is unchanged.
    """
    node = as_node(node)
    position = _normalize_index(node, index)
    replacement = as_node(replacement)

    if isinstance(node, GroupNode):
        children = list(node.children)
        children[position] = replacement
        return node.with_children(children)
    if isinstance(node, Inset):
        parts = [node.host, node.overlay]
        parts[position] = replacement
        return node.with_parts(*parts)
    return replacement


def leaves(node: Any) -> Iterator[Leaf]:
    """Yield every leaf depth first; inset overlays follow their host."""
    node = as_node(node)
    if isinstance(node, Leaf):
        yield node
    elif isinstance(node, (GroupNode, Inset)):
        for child in node.children:
            yield from leaves(child)


def map_leaves(node: Any, func: Callable[[Leaf], CompositionNode]) -> CompositionNode:
    """Rebuild the tree with every leaf replaced by ``func(leaf)``."""
    node = as_node(node)
    if isinstance(node, Leaf):
        return func(node)
    if isinstance(node, GroupNode):
        return node.with_children(map_leaves(child, func) for child in node.children)
    if isinstance(node, Inset):
        return node.with_parts(map_leaves(node.host, func), map_leaves(node.overlay, func))
    return node


def _inherit_theme(leaf: Leaf, theme: Theme) -> Leaf:
    if leaf.is_spacer:
        return leaf
    return Leaf(leaf.plot.copy(theme=leaf.plot.theme.inherit(theme)))


def _inherit_annotation_theme(node: CompositionNode, theme: Theme) -> CompositionNode:
    if isinstance(node, GroupNode) and node.annotation is not None:
        annotation = node.annotation
        merged = Theme.coerce(annotation.theme).inherit(theme)
        return node.with_annotation(annotation.with_theme(merged))
    return node


def apply_to_all(node: Any, transform: ThemeLike) -> CompositionNode:
    """
    Broadcast theme settings to every plot in the tree.

    Settings a plot has set explicitly are kept; everything else is filled
    in from ``transform``. Tags are untouched.
    """
    theme = Theme.coerce(transform)
    result = map_leaves(node, lambda leaf: _inherit_theme(leaf, theme))
    return _inherit_annotation_theme(result, theme)


def apply_to_level(node: Any, transform: ThemeLike) -> CompositionNode:
    """Broadcast theme settings to the plots directly at the top level only."""
    theme = Theme.coerce(transform)
    node = as_node(node)
    if isinstance(node, Leaf):
        return _inherit_theme(node, theme)
    if isinstance(node, GroupNode):
        return node.with_children(
            _inherit_theme(child, theme) if isinstance(child, Leaf) else child
            for child in node.children
        )
    if isinstance(node, Inset):
        parts = [_inherit_theme(part, theme) if isinstance(part, Leaf) else part for part in node.children]
        return node.with_parts(*parts)
    return node


def plots(node: Any) -> List[Plot]:
    """The non-blank plots of a tree in depth-first order."""
    return [leaf.plot for leaf in leaves(node) if not leaf.is_spacer]
