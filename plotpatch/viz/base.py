"""
Base data structures for the plotpatch composition system.

A ``Plot`` is the unit the composition engine arranges. The engine never draws
chart content itself; it hands each plot a matplotlib axes through the plot's
``draw`` callable and only ever touches the plot's theme, tag and guides.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple, Callable, Mapping, Union
import json
import logging

import matplotlib.colors as mcolors

from ..utils.json_utils import convert_for_json_serialization

logger = logging.getLogger(__name__)

__all__ = [
    'THEME_DEFAULTS',
    'LEGEND_POSITIONS',
    'Theme',
    'GuideDescriptor',
    'AxisSizes',
    'Plot'
]


THEME_DEFAULTS: Dict[str, Any] = {
    'legend_position': 'right',
    'font_size': 9.0,
    'title_size': 11.0,
    'tag_size': 12.0,
    'background': 'white',
    'panel_background': 'white',
    'text_color': 'black',
}

LEGEND_POSITIONS = ('right', 'left', 'top', 'bottom', 'none')


class Theme:
    """
    Theme settings with per-attribute provenance.

    Attributes set on the theme itself are *explicit*. Attributes filled in by
    a broadcast (``apply_to_all``) are *inherited*. Lookups prefer explicit,
    then inherited, then ``THEME_DEFAULTS``. Themes are never modified in
    place; every change returns a new theme.
    """

    def __init__(self, **settings):
        self._validate(settings)
        self._explicit: Dict[str, Any] = dict(settings)
        self._inherited: Dict[str, Any] = {}

    @staticmethod
    def _validate(settings: Mapping[str, Any]) -> None:
        unknown = sorted(name for name in settings if name not in THEME_DEFAULTS)
        if unknown:
            raise ValueError(
                f"Unknown theme settings: {unknown}. "
                f"Available settings: {sorted(THEME_DEFAULTS)}"
            )
        position = settings.get('legend_position')
        if position is not None and position not in LEGEND_POSITIONS:
            raise ValueError(
                f"Unknown legend_position: {position!r}. "
                f"Available positions: {list(LEGEND_POSITIONS)}"
            )

    @classmethod
    def coerce(cls, value: Union['Theme', Mapping[str, Any], None]) -> 'Theme':
        """Turn a mapping (or None) into a Theme; Themes pass through."""
        if value is None:
            return cls()
        if isinstance(value, Theme):
            return value
        if isinstance(value, Mapping):
            return cls(**value)
        raise TypeError(f"Cannot use {type(value).__name__} as a theme")

    def get(self, name: str, default: Any = None) -> Any:
        if name in self._explicit:
            return self._explicit[name]
        if name in self._inherited:
            return self._inherited[name]
        if default is not None:
            return default
        return THEME_DEFAULTS.get(name)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def is_explicit(self, name: str) -> bool:
        return name in self._explicit

    @property
    def explicit(self) -> Dict[str, Any]:
        return dict(self._explicit)

    @property
    def inherited(self) -> Dict[str, Any]:
        return dict(self._inherited)

    def settings(self) -> Dict[str, Any]:
        """All settings that differ from the defaults, explicit ones winning."""
        return {**self._inherited, **self._explicit}

    def update(self, **settings) -> 'Theme':
        """Return a copy with additional explicit settings."""
        self._validate(settings)
        theme = Theme(**{**self._explicit, **settings})
        theme._inherited = {k: v for k, v in self._inherited.items() if k not in settings}
        return theme

    def inherit(self, other: Union['Theme', Mapping[str, Any]]) -> 'Theme':
        """
        Return a copy with ``other``'s settings merged in as inherited values.

        Explicit settings of this theme are never overwritten. A later
        broadcast replaces the inherited value of an earlier one.
        """
        incoming = Theme.coerce(other).settings()
        theme = Theme(**self._explicit)
        merged = {**self._inherited, **incoming}
        theme._inherited = {k: v for k, v in merged.items() if k not in self._explicit}
        return theme

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Theme):
            return NotImplemented
        return self._explicit == other._explicit and self._inherited == other._inherited

    def __repr__(self) -> str:
        return f"Theme(explicit={self._explicit!r}, inherited={self._inherited!r})"


def _normalize_color(color: Any) -> Any:
    # Equal colors written differently ("red", "#ff0000", (1, 0, 0)) must
    # produce the same appearance key.
    if isinstance(color, str) and not mcolors.is_color_like(color):
        raise ValueError(f"Invalid guide color: {color!r}")
    return mcolors.to_hex(color, keep_alpha=True)


@dataclass(frozen=True, eq=False)
class GuideDescriptor:
    """
    A legend or colorbar contributed by a plot.

    ``aesthetic`` and ``source`` describe where the guide came from. They are
    not part of its appearance, so two guides from different data that look
    the same are duplicates.
    """

    title: Optional[str] = None
    labels: Tuple[str, ...] = ()
    colors: Tuple[Any, ...] = ()
    markers: Tuple[str, ...] = ()
    kind: str = 'legend'  # 'legend' or 'colorbar'
    cmap: Optional[str] = None
    value_range: Optional[Tuple[float, float]] = None

    # Origin information
    aesthetic: str = 'colour'
    source: Optional[str] = None

    def __post_init__(self):
        if self.kind not in ('legend', 'colorbar'):
            raise ValueError(f"Unknown guide kind: {self.kind!r}")
        if self.kind == 'legend' and self.colors and len(self.colors) != len(self.labels):
            raise ValueError(
                f"Guide {self.title!r} has {len(self.labels)} labels but {len(self.colors)} colors"
            )

    def appearance(self) -> Dict[str, Any]:
        """The rendered appearance of this guide as plain data."""
        return {
            'kind': self.kind,
            'title': self.title,
            'labels': [str(label) for label in self.labels],
            'colors': [_normalize_color(color) for color in self.colors],
            'markers': list(self.markers),
            'cmap': self.cmap,
            'value_range': list(self.value_range) if self.value_range is not None else None,
        }

    def appearance_key(self) -> str:
        """Serialized appearance used to detect duplicate guides."""
        return json.dumps(convert_for_json_serialization(self.appearance()), sort_keys=True)


@dataclass(frozen=True)
class AxisSizes:
    """Space (inches) taken by axis decorations on each side of the panel."""

    left: float = 0.55
    bottom: float = 0.45
    right: float = 0.15
    top: float = 0.25


@dataclass(eq=False)
class Plot:
    """
    A single, unassembled plot.

    ``draw`` receives the matplotlib axes covering the plot's panel region.
    Plots compare by identity; the engine works on copies when it needs to
    change theme, tag or guides.
    """

    title: Optional[str] = None
    draw: Optional[Callable[[Any], None]] = None
    guides: List[GuideDescriptor] = field(default_factory=list)
    theme: Theme = field(default_factory=Theme)
    axis_sizes: AxisSizes = field(default_factory=AxisSizes)

    # Written by the annotation pass
    tag: Optional[str] = None
    tag_path: Tuple[str, ...] = ()

    # Spacers occupy a cell but draw nothing and take no tag
    blank: bool = False

    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.theme, Theme):
            self.theme = Theme.coerce(self.theme)
        self.guides = list(self.guides)

    @classmethod
    def spacer(cls) -> 'Plot':
        return cls(blank=True, axis_sizes=AxisSizes(0.0, 0.0, 0.0, 0.0))

    def copy(self, **changes) -> 'Plot':
        """Return a shallow copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    # Composition sugar, same semantics as the node operators
    def __add__(self, other):
        from .context.composer import combine
        return combine(self, other)

    def __or__(self, other):
        from .context.composer import stack_row
        return stack_row(self, other)

    def __truediv__(self, other):
        from .context.composer import stack_col
        return stack_col(self, other)

    def __and__(self, other):
        from .context.composer import apply_to_all
        return apply_to_all(self, other)

    def __repr__(self) -> str:
        label = 'spacer' if self.blank else repr(self.title)
        return f"Plot({label}, tag={self.tag!r}, guides={len(self.guides)})"
