"""
Geometry primitives shared by the layout solver and the inset placer.

Rectangles use matplotlib's figure convention: origin at the bottom left,
``x0 <= x1`` and ``y0 <= y1``. Lengths are either fractions of a reference
region (``npc``), absolute offsets in inches, or a mix of both.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..errors import ConstructionError

__all__ = [
    'INCHES_PER_UNIT',
    'Rect',
    'UNIT_RECT',
    'Length',
    'unit',
    'npc',
    'mm',
    'cm',
    'inches',
    'pt',
    'BoundingBox'
]

INCHES_PER_UNIT = {
    'in': 1.0,
    'cm': 1.0 / 2.54,
    'mm': 1.0 / 25.4,
    'pt': 1.0 / 72.0,
}


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def within(self, parent: 'Rect') -> 'Rect':
        """Map this parent-relative rectangle into the parent's coordinates."""
        return Rect(
            parent.x0 + self.x0 * parent.width,
            parent.y0 + self.y0 * parent.height,
            parent.x0 + self.x1 * parent.width,
            parent.y0 + self.y1 * parent.height,
        )

    def relative_to(self, parent: 'Rect') -> 'Rect':
        """Express this rectangle as fractions of ``parent``."""
        return Rect(
            (self.x0 - parent.x0) / parent.width,
            (self.y0 - parent.y0) / parent.height,
            (self.x1 - parent.x0) / parent.width,
            (self.y1 - parent.y0) / parent.height,
        )

    def scale(self, sx: float, sy: float) -> 'Rect':
        return Rect(self.x0 * sx, self.y0 * sy, self.x1 * sx, self.y1 * sy)

    def shrink(self, left: float = 0.0, bottom: float = 0.0, right: float = 0.0, top: float = 0.0) -> 'Rect':
        """Move each edge inwards; never collapses past the centre."""
        x0 = self.x0 + left
        x1 = self.x1 - right
        y0 = self.y0 + bottom
        y1 = self.y1 - top
        if x1 < x0:
            x0 = x1 = (self.x0 + self.x1) / 2
        if y1 < y0:
            y0 = y1 = (self.y0 + self.y1) / 2
        return Rect(x0, y0, x1, y1)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, bottom, width, height) as expected by ``Figure.add_axes``."""
        return (self.x0, self.y0, self.width, self.height)

    def isclose(self, other: 'Rect', tol: float = 1e-9) -> bool:
        return all(abs(a - b) <= tol for a, b in zip(
            (self.x0, self.y0, self.x1, self.y1),
            (other.x0, other.y0, other.x1, other.y1)
        ))


UNIT_RECT = Rect(0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True)
class Length:
    """
    A position along one axis of a reference region.

    ``npc`` is a fraction of the region measured from its lower edge. When
    ``npc`` is None the length is purely absolute and is anchored at the
    edge it is used for: left/bottom measure from the lower edge, right/top
    from the upper edge. ``offset`` is always in inches.
    """

    npc: Optional[float] = None
    offset: float = 0.0

    @classmethod
    def coerce(cls, value: Union['Length', float, int]) -> 'Length':
        if isinstance(value, Length):
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Cannot use {type(value).__name__} as a length")
        return cls(npc=float(value))

    @property
    def is_absolute(self) -> bool:
        return self.npc is None

    def resolve(self, start: float, extent: float, from_end: bool = False) -> float:
        """Position in inches inside the region ``[start, start + extent]``."""
        if self.npc is None:
            base = start + extent if from_end else start
        else:
            base = start + self.npc * extent
        return base + self.offset

    def __add__(self, other):
        other = Length.coerce(other)
        if self.npc is None and other.npc is None:
            npc_value = None
        else:
            npc_value = (self.npc or 0.0) + (other.npc or 0.0)
        return Length(npc=npc_value, offset=self.offset + other.offset)

    __radd__ = __add__

    def __neg__(self):
        return Length(npc=None if self.npc is None else -self.npc, offset=-self.offset)

    def __sub__(self, other):
        return self + (-Length.coerce(other))

    def __rsub__(self, other):
        return Length.coerce(other) + (-self)


def unit(value: float, units: str) -> Length:
    """Build a length from a value and a unit name (npc, in, cm, mm, pt)."""
    if units == 'npc':
        return Length(npc=float(value))
    if units not in INCHES_PER_UNIT:
        raise ConstructionError(
            f"Unknown unit: {units!r}. Available units: {['npc'] + list(INCHES_PER_UNIT)}"
        )
    return Length(offset=float(value) * INCHES_PER_UNIT[units])


def npc(value: float) -> Length:
    return unit(value, 'npc')


def mm(value: float) -> Length:
    return unit(value, 'mm')


def cm(value: float) -> Length:
    return unit(value, 'cm')


def inches(value: float) -> Length:
    return unit(value, 'in')


def pt(value: float) -> Length:
    return unit(value, 'pt')


@dataclass(frozen=True)
class BoundingBox:
    """Edges of an inset relative to its reference region."""

    left: Length = Length(npc=0.0)
    bottom: Length = Length(npc=0.0)
    right: Length = Length(npc=1.0)
    top: Length = Length(npc=1.0)

    def __post_init__(self):
        for edge in ('left', 'bottom', 'right', 'top'):
            value = Length.coerce(getattr(self, edge))
            if value.npc is not None and not 0.0 <= value.npc <= 1.0:
                raise ConstructionError(
                    f"Inset {edge} edge must be a fraction in [0, 1], got {value.npc}"
                )
            object.__setattr__(self, edge, value)
