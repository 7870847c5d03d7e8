"""
Inset placement.

Resolves an inset's bounding box against its host's reference region. All
geometry here is in inches so absolute units (mm, pt, ...) keep their
physical size whatever the figure size.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..base import AxisSizes, Plot
from ..errors import DegenerateBoundsError
from .composer import CompositionNode, Inset, Leaf, as_node
from .geometry import BoundingBox, Length, Rect

logger = logging.getLogger(__name__)

__all__ = [
    'PositionedOverlay',
    'InsetPlacer',
    'panel_region',
    'place',
    'inset'
]


@dataclass(frozen=True)
class PositionedOverlay:
    """An overlay with its resolved rectangle (inches)."""

    overlay: CompositionNode
    rect: Rect
    reference: Rect
    align_to: str

    def relative_to(self, region: Rect) -> Rect:
        """The overlay rectangle as fractions of ``region``."""
        return self.rect.relative_to(region)


def panel_region(region: Rect, margins: AxisSizes) -> Rect:
    """The data-drawing rectangle of a plot occupying ``region`` (inches)."""
    return region.shrink(margins.left, margins.bottom, margins.right, margins.top)


class InsetPlacer:
    """Computes inset rectangles against panel or full host regions."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def resolve(self, reference: Rect, box: BoundingBox) -> Rect:
        """
        Resolve ``box`` inside ``reference``.

        Raises:
            DegenerateBoundsError: if the box has no positive width or height.
        """
        left = box.left.resolve(reference.x0, reference.width)
        right = box.right.resolve(reference.x0, reference.width, from_end=True)
        bottom = box.bottom.resolve(reference.y0, reference.height)
        top = box.top.resolve(reference.y0, reference.height, from_end=True)

        if not left < right:
            raise DegenerateBoundsError(
                f"Inset left edge ({left:.3f}in) must lie left of its right edge ({right:.3f}in)"
            )
        if not bottom < top:
            raise DegenerateBoundsError(
                f"Inset bottom edge ({bottom:.3f}in) must lie below its top edge ({top:.3f}in)"
            )
        return Rect(left, bottom, right, top)

    def reference_region(
        self,
        host: Any,
        host_region: Rect,
        align_to: str = 'panel',
        margins: Optional[AxisSizes] = None
    ) -> Rect:
        """The region an inset on ``host`` is measured against."""
        if align_to == 'full':
            return host_region

        if isinstance(host, Plot):
            host = Leaf(host)
        if isinstance(host, Leaf):
            return panel_region(host_region, margins or host.plot.axis_sizes)

        # A composite host has no single panel
        self.logger.debug(f"Inset host {type(host).__name__} has no panel; aligning to its full region")
        return host_region

    def place(
        self,
        host: Any,
        host_region: Rect,
        overlay: Any,
        box: BoundingBox,
        align_to: str = 'panel',
        margins: Optional[AxisSizes] = None
    ) -> PositionedOverlay:
        """Position ``overlay`` on ``host`` occupying ``host_region`` (inches)."""
        reference = self.reference_region(host, host_region, align_to, margins)
        rect = self.resolve(reference, box)
        self.logger.debug(f"Placed inset at {rect} against {align_to} region {reference}")
        return PositionedOverlay(overlay=as_node(overlay), rect=rect, reference=reference, align_to=align_to)


def place(
    host: Any,
    host_region: Rect,
    overlay: Any,
    box: BoundingBox,
    align_to: str = 'panel',
    margins: Optional[AxisSizes] = None
) -> PositionedOverlay:
    """Module-level shortcut for ``InsetPlacer().place``."""
    return InsetPlacer().place(host, host_region, overlay, box, align_to, margins)


def inset(
    host: Any,
    overlay: Any,
    left: Union[Length, float] = 0.0,
    bottom: Union[Length, float] = 0.0,
    right: Union[Length, float] = 1.0,
    top: Union[Length, float] = 1.0,
    align_to: str = 'panel'
) -> Inset:
    """
    Overlay ``overlay`` on ``host``.

    Edges are fractions of the reference region or lengths built with
    ``mm``, ``pt`` and friends, e.g. ``top=npc(1) - mm(15)``.
    """
    box = BoundingBox(left=left, bottom=bottom, right=right, top=top)
    return Inset(host, overlay, box, align_to)
