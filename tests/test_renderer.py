"""
Tests for the matplotlib render pass.
"""

import json

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pytest

from plotpatch.viz.base import AxisSizes, GuideDescriptor
from plotpatch.viz.context.annotations import annotate
from plotpatch.viz.context.composer import guide_area, set_layout, spacer, wrap_plots
from plotpatch.viz.context.config import CompositionConfig
from plotpatch.viz.context.insets import inset
from plotpatch.viz.context.renderer import CompositionRenderer, render, render_image

CONFIG = CompositionConfig(figsize=(4, 3), dpi=50)


@pytest.fixture
def figure_cleanup():
    yield
    plt.close('all')


def test_one_axes_per_plot(make_plot, figure_cleanup):
    """Every plot leaf gets exactly one axes and its draw callable is called."""
    drawn = []
    plots = [make_plot(str(i), draw=drawn.append) for i in range(3)]
    fig = render(plots[0] + plots[1] + plots[2], CONFIG)
    assert len(fig.axes) == 3
    assert drawn == fig.axes


def test_spacers_get_no_axes(make_plot, figure_cleanup):
    fig = render(make_plot('a') + spacer() + make_plot('b'), CONFIG)
    assert len(fig.axes) == 2


def test_axes_follow_layout(make_plot, figure_cleanup):
    """A column puts its first plot above the second."""
    fig = render(make_plot('top') / make_plot('bottom'), CONFIG)
    top, bottom = fig.axes
    assert top.get_position().y0 > bottom.get_position().y1


def test_kept_guides_are_drawn_per_plot(make_plot, species_guide, figure_cleanup):
    fig = render(make_plot('a', [species_guide]) + make_plot('b'), CONFIG)
    assert fig.axes[0].get_legend() is not None
    assert fig.axes[1].get_legend() is None


def test_kept_colorbar_adds_axes(make_plot, figure_cleanup):
    depth = GuideDescriptor(title='depth', kind='colorbar', cmap='magma', value_range=(0.0, 5.0))
    fig = render(make_plot('a', [depth]), CONFIG)
    assert len(fig.axes) == 2


def test_collected_guides_in_guide_area(make_plot, species_guide, figure_cleanup):
    """One deduplicated legend is drawn in the reserved cell."""
    tree = wrap_plots(make_plot('a', [species_guide]), make_plot('b', [species_guide]), guide_area(), guides='collect')
    fig = render(tree, CONFIG)
    assert len(fig.axes) == 3
    assert fig.axes[0].get_legend() is None
    assert fig.axes[-1].get_legend() is not None


def test_collected_guides_reserve_side_strip(make_plot, species_guide, figure_cleanup):
    tree = make_plot('a', [species_guide]) + make_plot('b', [species_guide])
    fig = render(tree, CONFIG.with_changes(guides='collect'))
    plot_axes = fig.axes[:2]
    # 1.2in of the 4in figure is kept for the legend
    assert max(ax.get_position().x1 for ax in plot_axes) <= 0.7 + 1e-9
    assert fig.axes[-1].get_legend() is not None


def test_tags_and_titles_are_written(make_plot, figure_cleanup):
    tree = annotate(make_plot('a') + make_plot('b'), title='Overview', caption='Survey data', tag_levels='a')
    fig = render(tree, CONFIG)
    assert [t.get_text() for t in fig.axes[0].texts] == ['a']
    assert [t.get_text() for t in fig.axes[1].texts] == ['b']
    figure_texts = [t.get_text() for t in fig.texts]
    assert 'Overview' in figure_texts
    assert 'Survey data' in figure_texts


def test_render_applies_configured_tag_format(make_plot, figure_cleanup):
    tree = annotate(make_plot('a') + make_plot('b'), tag_levels='A')
    fig = render(tree, CONFIG.with_changes(tag_prefix='Fig. '))
    assert fig.axes[0].texts[0].get_text() == 'Fig. A'


def test_inset_axes_drawn_over_host(make_plot, figure_cleanup):
    tree = inset(make_plot('host'), make_plot('overlay'), left=0.6, bottom=0.6)
    fig = render(tree, CONFIG)
    host, overlay = fig.axes
    assert overlay.get_position().x0 > host.get_position().x0
    assert overlay.get_position().y0 > host.get_position().y0


def test_render_image_size_and_cleanup(make_plot):
    """Images match figsize * dpi and no figure is left open."""
    before = set(plt.get_fignums())
    image = render_image(make_plot('a') | make_plot('b'), CONFIG)
    assert image.size == (200, 150)
    assert image.mode == 'RGB'
    assert set(plt.get_fignums()) == before


def test_save_writes_image_and_layout_metadata(make_plot, tmp_path):
    path = tmp_path / 'figure.png'
    tree = annotate(make_plot('a') + make_plot('b'), tag_levels='1')
    info = CompositionRenderer(CONFIG).save(tree, str(path))

    assert path.exists()
    assert info['metadata_saved']
    metadata = json.loads((tmp_path / 'figure_metadata.json').read_text())
    assert metadata['tags'] == ['1', '2']
    assert metadata['layout']['ncol'] == 2


def test_prepare_does_not_draw(make_plot):
    before = set(plt.get_fignums())
    prepared = CompositionRenderer(CONFIG).prepare(make_plot('a') + make_plot('b'))
    assert len(prepared.layout.leaf_rects()) == 2
    assert set(plt.get_fignums()) == before


def test_panel_inset_matches_host_panel(make_plot, figure_cleanup):
    """A full-size inset aligned to the panel lands exactly on the host axes."""
    overlay = make_plot('overlay', axis_sizes=AxisSizes(0.0, 0.0, 0.0, 0.0))
    tree = inset(make_plot('host'), overlay, 0, 0, 1, 1, align_to='panel')
    fig = render(tree, CompositionConfig(figsize=(8, 6), dpi=50))
    host, over = [ax.get_position() for ax in fig.axes]
    assert (over.x0, over.y0, over.x1, over.y1) == pytest.approx((host.x0, host.y0, host.x1, host.y1))


def test_nested_collected_legend_sits_beside_group(make_plot, species_guide, figure_cleanup):
    """Guides collected by a nested group get their own strip next to its plots."""
    group = set_layout(make_plot('b', [species_guide]) | make_plot('c', [species_guide]), guides='collect')
    fig = render(make_plot('a') / group, CompositionConfig(figsize=(8, 6), dpi=50))
    assert len(fig.axes) == 4
    b, c, legend_axes = fig.axes[1], fig.axes[2], fig.axes[-1]
    assert b.get_legend() is None and c.get_legend() is None
    assert legend_axes.get_legend() is not None
    assert legend_axes.get_position().x0 >= max(b.get_position().x1, c.get_position().x1) - 1e-9
    # The strip stays within the group's row
    assert legend_axes.get_position().y1 <= fig.axes[0].get_position().y0


def test_kept_legend_does_not_overlap_neighbour(make_plot, species_guide, figure_cleanup):
    """Room for a plot's own legend is taken from its cell, not its neighbour's."""
    fig = render(make_plot('a', [species_guide]) | make_plot('b'), CompositionConfig(figsize=(8, 4), dpi=50))
    fig.canvas.draw()
    renderer = fig.canvas.get_renderer()
    legend_box = fig.axes[0].get_legend().get_window_extent(renderer)
    neighbour_box = fig.axes[1].get_window_extent(renderer)
    assert legend_box.x1 <= neighbour_box.x0


def test_cleared_tags_are_not_drawn(make_plot, figure_cleanup):
    tree = annotate(make_plot('a') + make_plot('b'), tag_levels='a')
    fig = render(annotate(tree, tag_levels=[]), CONFIG)
    assert all(not ax.texts for ax in fig.axes)
