"""
Composition engine: tree construction, layout solving, guides, insets,
annotations and rendering.
"""

from .composer import (
    CompositionNode,
    Leaf,
    GuideArea,
    GroupNode,
    Combine,
    Row,
    Column,
    Grid,
    Inset,
    spacer,
    guide_area,
    combine,
    stack_row,
    stack_col,
    wrap_plots,
    set_layout,
    index_get,
    index_set,
    leaves,
    plots,
    apply_to_all,
    apply_to_level
)
from .config import CompositionConfig
from .design import Area, area, LayoutSpec, parse_design, auto_grid_dims
from .geometry import Rect, Length, BoundingBox, npc, mm, cm, inches, pt
from .layouts import GridAssignment, LayoutSolver, solve
from .guides import CollectedGuides, GuideCollector, collect
from .insets import InsetPlacer, inset
from .annotations import Annotation, AnnotationApplier, annotate
from .renderer import CompositionRenderer, render, render_image, save

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
    'CompositionConfig',
    'Area',
    'area',
    'LayoutSpec',
    'parse_design',
    'auto_grid_dims',
    'Rect',
    'Length',
    'BoundingBox',
    'npc',
    'mm',
    'cm',
    'inches',
    'pt',
    'GridAssignment',
    'LayoutSolver',
    'solve',
    'CollectedGuides',
    'GuideCollector',
    'collect',
    'InsetPlacer',
    'inset',
    'Annotation',
    'AnnotationApplier',
    'annotate',
    'CompositionRenderer',
    'render',
    'render_image',
    'save'
]
