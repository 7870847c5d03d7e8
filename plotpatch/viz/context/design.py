"""
Grid specifications: layout constraints, area designs and grid dimensions.

A design is either text, one character per cell and one line per row::

    AAB
    AAB
    CC#

or a sequence of ``Area`` objects. ``#`` marks an intentionally empty cell.
Every other character names an area whose cells must form a filled
rectangle. Areas are handed to children in sorted character order.
"""

import math
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Sequence, Tuple, Union

from ..errors import ConstructionError

logger = logging.getLogger(__name__)

__all__ = [
    'EMPTY_CELL',
    'Area',
    'area',
    'ParsedDesign',
    'parse_design',
    'LayoutSpec',
    'auto_grid_dims',
    'resolve_grid_dims'
]

EMPTY_CELL = '#'
GUIDE_MODES = (None, 'keep', 'collect')
TAG_LEVEL_MODES = (None, 'keep', 'new')


@dataclass(frozen=True)
class Area:
    """A rectangular block of grid cells, 1-based and inclusive."""

    top: int
    left: int
    bottom: int
    right: int

    def __post_init__(self):
        for name in ('top', 'left', 'bottom', 'right'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConstructionError(f"Area {name} must be a positive integer, got {value!r}")
        if self.bottom < self.top or self.right < self.left:
            raise ConstructionError(f"Area has inverted bounds: {self}")

    @property
    def row_span(self) -> int:
        return self.bottom - self.top + 1

    @property
    def col_span(self) -> int:
        return self.right - self.left + 1


def area(top: int, left: int, bottom: Optional[int] = None, right: Optional[int] = None) -> Area:
    """Build an area; a missing bottom/right makes it a single row/column."""
    return Area(top, left, top if bottom is None else bottom, left if right is None else right)


@dataclass(frozen=True)
class ParsedDesign:
    nrow: int
    ncol: int
    areas: Tuple[Area, ...]
    labels: Tuple[str, ...] = ()


def _parse_text_design(design: str) -> ParsedDesign:
    rows = [line.strip() for line in design.splitlines()]
    rows = [row for row in rows if row]
    if not rows:
        raise ConstructionError("Design is empty")

    ncol = len(rows[0])
    for index, row in enumerate(rows):
        if len(row) != ncol:
            raise ConstructionError(
                f"Design row {index + 1} has {len(row)} cells, expected {ncol}"
            )

    cells = {}
    for r, row in enumerate(rows):
        for c, char in enumerate(row):
            if char.isspace() or not char.isprintable():
                raise ConstructionError(
                    f"Unmapped character {char!r} in design row {r + 1}, column {c + 1}"
                )
            if char == EMPTY_CELL:
                continue
            cells.setdefault(char, []).append((r, c))

    labels = tuple(sorted(cells))
    areas = []
    for label in labels:
        occupied = cells[label]
        top = min(r for r, _ in occupied)
        bottom = max(r for r, _ in occupied)
        left = min(c for _, c in occupied)
        right = max(c for _, c in occupied)
        # Cells are unique, so a full bounding box count means a filled rectangle
        if len(occupied) != (bottom - top + 1) * (right - left + 1):
            raise ConstructionError(f"Design area {label!r} is not rectangular")
        areas.append(Area(top + 1, left + 1, bottom + 1, right + 1))

    return ParsedDesign(nrow=len(rows), ncol=ncol, areas=tuple(areas), labels=labels)


def parse_design(design: Union[str, Sequence[Area]]) -> ParsedDesign:
    """
    Parse a design into grid dimensions and ordered areas.

    Raises:
        ConstructionError: for ragged rows, unmapped characters or
            non-rectangular areas.
    """
    if isinstance(design, str):
        return _parse_text_design(design)

    areas = tuple(design)
    if not areas:
        raise ConstructionError("Design is empty")
    for item in areas:
        if not isinstance(item, Area):
            raise ConstructionError(f"Design entries must be Area objects, got {type(item).__name__}")
    return ParsedDesign(
        nrow=max(a.bottom for a in areas),
        ncol=max(a.right for a in areas),
        areas=areas,
    )


def auto_grid_dims(n: int) -> Tuple[int, int]:
    """
    Choose (nrow, ncol) for ``n`` panels.

    Minimises ``|nrow * ncol - n|`` with ``ncol >= nrow`` and enough cells
    for every panel; ties go to the most square grid, then to more columns.
    """
    if n < 1:
        raise ConstructionError(f"Cannot lay out {n} panels")
    best = None
    for nrow in range(1, n + 1):
        for ncol in range(nrow, n + 1):
            if nrow * ncol < n:
                continue
            key = (abs(nrow * ncol - n), ncol - nrow, -ncol)
            if best is None or key < best[0]:
                best = (key, (nrow, ncol))
    return best[1]


def _check_positive(name: str, value) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConstructionError(f"{name} must be a positive integer, got {value!r}")


def _check_weights(name: str, weights) -> Optional[Tuple[float, ...]]:
    if weights is None:
        return None
    if isinstance(weights, (int, float)):
        weights = (weights,)
    weights = tuple(float(w) for w in weights)
    if not weights or any(w <= 0 for w in weights):
        raise ConstructionError(f"{name} must be positive numbers, got {weights!r}")
    return weights


@dataclass(frozen=True)
class LayoutSpec:
    """Layout constraints attached to a group node."""

    nrow: Optional[int] = None
    ncol: Optional[int] = None
    byrow: bool = True
    widths: Optional[Tuple[float, ...]] = None
    heights: Optional[Tuple[float, ...]] = None
    design: Optional[Union[str, Tuple[Area, ...]]] = None
    guides: Optional[str] = None
    tag_level: Optional[str] = None

    # Parsed form of ``design``, filled in on construction
    parsed_design: Optional[ParsedDesign] = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        _check_positive('nrow', self.nrow)
        _check_positive('ncol', self.ncol)
        object.__setattr__(self, 'widths', _check_weights('widths', self.widths))
        object.__setattr__(self, 'heights', _check_weights('heights', self.heights))
        if self.guides not in GUIDE_MODES:
            raise ConstructionError(f"Unknown guides mode: {self.guides!r}")
        if self.tag_level not in TAG_LEVEL_MODES:
            raise ConstructionError(f"Unknown tag_level: {self.tag_level!r}")
        if self.design is not None:
            if not isinstance(self.design, str):
                object.__setattr__(self, 'design', tuple(self.design))
            object.__setattr__(self, 'parsed_design', parse_design(self.design))
        else:
            object.__setattr__(self, 'parsed_design', None)

    @classmethod
    def constraint_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.init)

    def merge(self, **constraints) -> 'LayoutSpec':
        """Return a spec with the given constraints replacing the current ones."""
        unknown = set(constraints) - set(self.constraint_names())
        if unknown:
            raise TypeError(f"Unknown layout constraints: {sorted(unknown)}")
        return replace(self, **constraints)


def resolve_grid_dims(
    n: int,
    layout: LayoutSpec,
    force_nrow: Optional[int] = None,
    force_ncol: Optional[int] = None
) -> Tuple[int, int]:
    """
    Grid dimensions for ``n`` children under ``layout``.

    Forced dimensions (rows and columns) win over everything else; a design
    comes next, then explicit nrow/ncol, then ``auto_grid_dims``.
    """
    if force_nrow is not None:
        return force_nrow, max(n, 1)
    if force_ncol is not None:
        return max(n, 1), force_ncol

    if layout.parsed_design is not None:
        parsed = layout.parsed_design
        if n > len(parsed.areas):
            raise ConstructionError(
                f"Design has {len(parsed.areas)} areas but the composition has {n} children"
            )
        return parsed.nrow, parsed.ncol

    nrow, ncol = layout.nrow, layout.ncol
    if nrow is None and ncol is None:
        nrow, ncol = auto_grid_dims(n)
    elif nrow is None:
        nrow = math.ceil(n / ncol)
    elif ncol is None:
        ncol = math.ceil(n / nrow)

    if nrow * ncol < n:
        raise ConstructionError(
            f"A {nrow}x{ncol} grid has room for {nrow * ncol} children, got {n}"
        )
    return nrow, ncol
