"""
Composition annotations: titles, captions and automatic subplot tags.

Tags follow a sequence style per nesting level. A group whose layout has
``tag_level="new"`` takes one tag at the current level and tags its own
plots with the next level's sequence, so ``tag_levels=["1", "a"]`` yields
tags such as ``1``, ``2a``, ``2b``, ``3``.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..base import Theme
from ..errors import ConstructionError
from .composer import CompositionNode, GroupNode, Grid, Inset, Leaf, as_node, map_leaves

logger = logging.getLogger(__name__)

__all__ = [
    'TAG_STYLES',
    'Annotation',
    'latin_numeral',
    'roman_numeral',
    'tag_value',
    'AnnotationApplier',
    'annotate'
]

TAG_STYLES = ('a', 'A', '1', 'i', 'I')

_STYLE_ALIASES = {
    'latin': 'a',
    'LATIN': 'A',
    'arabic': '1',
    'roman': 'i',
    'ROMAN': 'I',
}

_ROMAN_NUMERALS = [
    (1000, 'M'), (900, 'CM'), (500, 'D'), (400, 'CD'),
    (100, 'C'), (90, 'XC'), (50, 'L'), (40, 'XL'),
    (10, 'X'), (9, 'IX'), (5, 'V'), (4, 'IV'), (1, 'I'),
]

TagStyle = Union[str, Sequence[str]]


def latin_numeral(n: int, upper: bool = False) -> str:
    """1 -> a, 26 -> z, 27 -> aa."""
    if n < 1:
        raise ValueError(f"Latin numerals start at 1, got {n}")
    letters = []
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        letters.append(chr(ord('a') + remainder))
    value = ''.join(reversed(letters))
    return value.upper() if upper else value


def roman_numeral(n: int, upper: bool = True) -> str:
    """1 -> I, 4 -> IV, 1994 -> MCMXCIV."""
    if n < 1:
        raise ValueError(f"Roman numerals start at 1, got {n}")
    parts = []
    for value, numeral in _ROMAN_NUMERALS:
        count, n = divmod(n, value)
        parts.append(numeral * count)
    result = ''.join(parts)
    return result if upper else result.lower()


def _normalize_style(style: Any) -> TagStyle:
    if isinstance(style, str):
        style = _STYLE_ALIASES.get(style, style)
        if style not in TAG_STYLES:
            raise ConstructionError(
                f"Unknown tag style: {style!r}. Available styles: {list(TAG_STYLES)} or a sequence of labels"
            )
        return style
    labels = tuple(style)
    if not labels or not all(isinstance(label, str) for label in labels):
        raise ConstructionError("A custom tag sequence must be a non-empty sequence of strings")
    return labels


def tag_value(style: TagStyle, index: int) -> str:
    """The tag at 0-based ``index`` of a sequence style."""
    if isinstance(style, tuple):
        if index >= len(style):
            raise ConstructionError(f"Custom tag sequence has {len(style)} labels, needed at least {index + 1}")
        return style[index]
    position = index + 1
    if style == '1':
        return str(position)
    if style in ('a', 'A'):
        return latin_numeral(position, upper=style == 'A')
    return roman_numeral(position, upper=style == 'I')


@dataclass(frozen=True)
class Annotation:
    """Title, caption and tag settings of a composition root."""

    title: Optional[str] = None
    subtitle: Optional[str] = None
    caption: Optional[str] = None
    theme: Optional[Theme] = None
    tag_levels: Optional[Tuple[TagStyle, ...]] = None
    tag_prefix: str = ''
    tag_suffix: str = ''
    tag_sep: str = ''

    def with_theme(self, theme: Theme) -> 'Annotation':
        return replace(self, theme=theme)

    def merged_with(self, newer: 'Annotation') -> 'Annotation':
        """Settings of ``newer`` replace these where given."""
        changes = {}
        for name in ('title', 'subtitle', 'caption', 'theme', 'tag_levels'):
            value = getattr(newer, name)
            if value is not None:
                changes[name] = value
        for name in ('tag_prefix', 'tag_suffix', 'tag_sep'):
            value = getattr(newer, name)
            if value:
                changes[name] = value
        return replace(self, **changes)

    def format_tag(self, path: Sequence[str]) -> str:
        return f"{self.tag_prefix}{self.tag_sep.join(path)}{self.tag_suffix}"


class AnnotationApplier:
    """Attaches annotations to compositions and assigns tags."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def annotate(
        self,
        tree: Any,
        title: Optional[str] = None,
        subtitle: Optional[str] = None,
        caption: Optional[str] = None,
        theme: Optional[Any] = None,
        tag_levels: Optional[Sequence[Any]] = None,
        tag_prefix: str = '',
        tag_suffix: str = '',
        tag_sep: str = ''
    ) -> GroupNode:
        """
        Annotate the root of ``tree`` and tag its plots.

        A bare plot or inset is wrapped into a one-cell grid so it has a
        root to carry the annotation. Earlier annotation settings survive
        unless replaced.
        """
        node = as_node(tree)
        if not isinstance(node, GroupNode):
            node = Grid([node])

        if isinstance(tag_levels, str):
            tag_levels = [tag_levels]
        levels = tuple(_normalize_style(style) for style in tag_levels) if tag_levels is not None else None

        annotation = Annotation(
            title=title,
            subtitle=subtitle,
            caption=caption,
            theme=Theme.coerce(theme) if theme is not None else None,
            tag_levels=levels,
            tag_prefix=tag_prefix,
            tag_suffix=tag_suffix,
            tag_sep=tag_sep,
        )
        if node.annotation is not None:
            annotation = node.annotation.merged_with(annotation)

        node = node.with_annotation(annotation)
        if annotation.tag_levels:
            node = self.apply_tags(node, annotation)
        elif levels is not None:
            # Empty tag levels switch tagging off
            node = map_leaves(node, _clear_tag)
        return node

    def apply_tags(self, tree: Any, annotation: Annotation) -> CompositionNode:
        """Assign tags to every non-blank plot following ``annotation``."""
        levels = annotation.tag_levels or ()
        if not levels:
            return as_node(tree)
        counter = [0]
        tagged = self._visit(as_node(tree), annotation, levels, 0, (), counter, is_root=True)
        self.logger.debug(f"Assigned {counter[0]} top-level tags")
        return tagged

    def _next(self, levels, level: int, counter: List[int]) -> str:
        value = tag_value(levels[level], counter[0])
        counter[0] += 1
        return value

    def _visit(
        self,
        node: CompositionNode,
        annotation: Annotation,
        levels: Tuple[TagStyle, ...],
        level: int,
        prefix: Tuple[str, ...],
        counter: List[int],
        is_root: bool = False
    ) -> CompositionNode:
        if isinstance(node, Leaf):
            if node.is_spacer:
                return node
            path = prefix + (self._next(levels, level, counter),)
            return Leaf(node.plot.copy(tag=annotation.format_tag(path), tag_path=path))

        if isinstance(node, GroupNode):
            if not is_root and node.layout.tag_level == 'new':
                if level + 1 < len(levels):
                    path = prefix + (self._next(levels, level, counter),)
                    sub_counter = [0]
                    return node.with_children(
                        self._visit(child, annotation, levels, level + 1, path, sub_counter)
                        for child in node.children
                    )
                self.logger.debug(f"No tag style for level {level + 2}; continuing the current sequence")
            return node.with_children(
                self._visit(child, annotation, levels, level, prefix, counter)
                for child in node.children
            )

        if isinstance(node, Inset):
            host = self._visit(node.host, annotation, levels, level, prefix, counter)
            overlay = self._visit(node.overlay, annotation, levels, level, prefix, counter)
            return node.with_parts(host, overlay)

        return node


def _clear_tag(leaf: Leaf) -> Leaf:
    if leaf.plot.tag is None and not leaf.plot.tag_path:
        return leaf
    return Leaf(leaf.plot.copy(tag=None, tag_path=()))


def annotate(tree: Any, **kwargs) -> GroupNode:
    """Module-level shortcut for ``AnnotationApplier().annotate``."""
    return AnnotationApplier().annotate(tree, **kwargs)
