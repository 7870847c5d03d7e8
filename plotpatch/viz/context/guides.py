"""
Guide collection.

Gathers the legends of a composition's plots, removes duplicates and
decides where the survivors are drawn: in a reserved guide area when the
composition has one, otherwise on the side given by the ambient theme.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from ..base import GuideDescriptor, Theme
from ..errors import ConstructionError
from .composer import CompositionNode, GroupNode, GuideArea, Inset, Leaf, as_node

logger = logging.getLogger(__name__)

__all__ = [
    'CollectedGuides',
    'deduplicate_guides',
    'find_guide_area',
    'GuideCollector',
    'collect'
]

COLLECT_MODES = ('keep', 'collect')


@dataclass
class CollectedGuides:
    """Deduplicated guides and where to draw them."""

    guides: List[GuideDescriptor] = field(default_factory=list)
    position: str = 'right'  # 'area' or a legend position
    area: Optional[GuideArea] = None

    def __len__(self) -> int:
        return len(self.guides)

    def __iter__(self) -> Iterator[GuideDescriptor]:
        return iter(self.guides)


def deduplicate_guides(guides: Iterable[GuideDescriptor]) -> List[GuideDescriptor]:
    """Keep the first guide of each appearance, in encounter order."""
    seen = set()
    unique = []
    for guide in guides:
        key = guide.appearance_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(guide)
    return unique


def find_guide_area(tree: Any) -> Optional[GuideArea]:
    """The first guide area in depth-first order, if any."""
    node = as_node(tree)
    if isinstance(node, GuideArea):
        return node
    if isinstance(node, (GroupNode, Inset)):
        for child in node.children:
            found = find_guide_area(child)
            if found is not None:
                return found
    return None


class GuideCollector:
    """Collects guides from composition trees."""

    def __init__(self, default_position: str = 'right'):
        self.default_position = default_position
        self.logger = logging.getLogger(__name__)

    def _ambient_position(self, node: CompositionNode, theme: Optional[Theme]) -> str:
        if theme is not None:
            return Theme.coerce(theme).get('legend_position', self.default_position)
        annotation = getattr(node, 'annotation', None)
        if annotation is not None and annotation.theme is not None:
            return Theme.coerce(annotation.theme).get('legend_position', self.default_position)
        return self.default_position

    def _strip(self, node: CompositionNode, gathered: List[GuideDescriptor], is_root: bool = False) -> CompositionNode:
        if isinstance(node, Leaf):
            if not node.plot.guides:
                return node
            gathered.extend(node.plot.guides)
            return Leaf(node.plot.copy(guides=[]))
        if isinstance(node, GroupNode):
            # Nested groups can opt out and keep their own guides
            if not is_root and node.layout.guides == 'keep':
                return node
            return node.with_children(self._strip(child, gathered) for child in node.children)
        if isinstance(node, Inset):
            return node.with_parts(self._strip(node.host, gathered), self._strip(node.overlay, gathered))
        return node

    def collect(
        self,
        tree: Any,
        mode: str = 'keep',
        guide_area: Optional[GuideArea] = None,
        theme: Optional[Theme] = None
    ) -> Tuple[CompositionNode, CollectedGuides]:
        """
        Collect guides from ``tree``.

        Args:
            tree: Composition to collect from
            mode: "keep" leaves every plot its own guides, "collect" gathers them
            guide_area: Reserved cell for the collected guides; defaults to the
                first guide area in the tree
            theme: Theme deciding the legend position when there is no guide area

        Returns:
            (tree without collected guides, collected guides)
        """
        if mode not in COLLECT_MODES:
            raise ConstructionError(f"Unknown guides mode: {mode!r}. Available modes: {list(COLLECT_MODES)}")

        node = as_node(tree)
        if mode == 'keep':
            return node, CollectedGuides(guides=[], position=self._ambient_position(node, theme))

        gathered: List[GuideDescriptor] = []
        stripped = self._strip(node, gathered, is_root=True)
        unique = deduplicate_guides(gathered)

        area = guide_area if guide_area is not None else find_guide_area(stripped)
        position = 'area' if area is not None else self._ambient_position(node, theme)

        self.logger.debug(
            f"Collected {len(gathered)} guides, {len(unique)} after deduplication, placed at {position}"
        )
        return stripped, CollectedGuides(guides=unique, position=position, area=area)

    def collect_nested(
        self,
        tree: Any,
        root_mode: str = 'keep',
        theme: Optional[Theme] = None
    ) -> Tuple[CompositionNode, List[Tuple[CompositionNode, CollectedGuides]]]:
        """
        Collect guides for every group that asks for it.

        The root uses its own layout's guides setting, else ``root_mode``.
        Returns the rewritten tree and, for each collecting group, the group
        as it appears in the rewritten tree with its collected guides.
        """
        node = as_node(tree)
        mode = root_mode
        if isinstance(node, GroupNode) and node.layout.guides is not None:
            mode = node.layout.guides

        if mode == 'collect':
            stripped, collected = self.collect(node, 'collect', theme=theme)
            return stripped, [(stripped, collected)]

        results: List[Tuple[CompositionNode, CollectedGuides]] = []
        return self._descend(node, results, theme), results

    def _descend(self, node: CompositionNode, results, theme) -> CompositionNode:
        if isinstance(node, GroupNode):
            children = []
            for child in node.children:
                if isinstance(child, GroupNode) and child.layout.guides == 'collect':
                    stripped, collected = self.collect(child, 'collect', theme=theme)
                    results.append((stripped, collected))
                    children.append(stripped)
                else:
                    children.append(self._descend(child, results, theme))
            return node.with_children(children)
        if isinstance(node, Inset):
            return node.with_parts(self._descend(node.host, results, theme), self._descend(node.overlay, results, theme))
        return node


def collect(
    tree: Any,
    mode: str = 'keep',
    guide_area: Optional[GuideArea] = None,
    theme: Optional[Theme] = None
) -> Tuple[CompositionNode, CollectedGuides]:
    """Module-level shortcut for ``GuideCollector().collect``."""
    return GuideCollector().collect(tree, mode, guide_area, theme)
