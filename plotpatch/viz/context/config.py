"""
Configuration for composition and rendering.
"""

import os
import logging
from dataclasses import dataclass, fields, replace
from typing import Tuple

from ..base import LEGEND_POSITIONS

logger = logging.getLogger(__name__)

GUIDE_MODES = ('keep', 'collect')


@dataclass
class CompositionConfig:
    """Configuration for composition behavior and rendering."""

    # Output geometry
    figsize: Tuple[float, float] = (8.0, 6.0)  # inches
    dpi: int = 100
    max_image_size: int = 4096

    # Fraction of each cell kept as gap around its content
    spacing: float = 0.02

    # Guide handling for the root of the composition
    guides: str = 'keep'
    legend_position: str = 'right'
    legend_width: float = 1.2  # inches reserved for collected guides on the side
    legend_height: float = 0.6  # inches reserved for collected guides above/below

    # Tag formatting
    tag_prefix: str = ''
    tag_suffix: str = ''
    tag_sep: str = ''

    # Annotation space
    title_height: float = 0.45  # inches
    caption_height: float = 0.3  # inches

    def __post_init__(self):
        if self.guides not in GUIDE_MODES:
            raise ValueError(f"Unknown guides mode: {self.guides!r}. Available modes: {list(GUIDE_MODES)}")
        if self.legend_position not in LEGEND_POSITIONS:
            raise ValueError(
                f"Unknown legend_position: {self.legend_position!r}. "
                f"Available positions: {list(LEGEND_POSITIONS)}"
            )
        if len(self.figsize) != 2 or min(self.figsize) <= 0:
            raise ValueError(f"figsize must be two positive numbers, got {self.figsize!r}")
        if not 0.0 <= self.spacing < 0.5:
            raise ValueError(f"spacing must be in [0, 0.5), got {self.spacing}")

    @classmethod
    def from_environment(cls, **overrides) -> 'CompositionConfig':
        """
        Create config from environment variables.

        Recognized variables:
        - PLOTPATCH_FIGSIZE: "width,height" in inches
        - PLOTPATCH_DPI
        - PLOTPATCH_SPACING
        - PLOTPATCH_GUIDES: "keep" or "collect"
        - PLOTPATCH_LEGEND_POSITION
        """
        values = {}

        figsize = os.environ.get('PLOTPATCH_FIGSIZE')
        if figsize:
            width, height = (float(part) for part in figsize.split(','))
            values['figsize'] = (width, height)

        dpi = os.environ.get('PLOTPATCH_DPI')
        if dpi:
            values['dpi'] = int(dpi)

        spacing = os.environ.get('PLOTPATCH_SPACING')
        if spacing:
            values['spacing'] = float(spacing)

        guides = os.environ.get('PLOTPATCH_GUIDES')
        if guides:
            values['guides'] = guides.strip().lower()

        legend_position = os.environ.get('PLOTPATCH_LEGEND_POSITION')
        if legend_position:
            values['legend_position'] = legend_position.strip().lower()

        values.update(overrides)
        if values:
            logger.debug(f"Composition config overrides: {values}")
        return cls(**values)

    def with_changes(self, **changes) -> 'CompositionConfig':
        return replace(self, **changes)

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}
