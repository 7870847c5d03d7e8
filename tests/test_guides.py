"""
Tests for guide deduplication and collection.
"""

import pytest

from plotpatch.viz.base import GuideDescriptor
from plotpatch.viz.context.composer import GuideArea, guide_area, index_get, leaves, set_layout, wrap_plots
from plotpatch.viz.context.guides import GuideCollector, collect, deduplicate_guides
from plotpatch.viz.errors import ConstructionError


def test_same_appearance_from_different_data_merges(species_guide):
    """Colors written differently but rendering the same count as duplicates."""
    lookalike = GuideDescriptor(
        title='species',
        labels=('setosa', 'virginica'),
        colors=('#ff0000', (0.0, 0.0, 1.0)),
        aesthetic='fill',
        source='other_frame'
    )
    unique = deduplicate_guides([species_guide, lookalike])
    assert unique == [species_guide]


def test_different_appearance_never_merges(species_guide):
    relabeled = GuideDescriptor(title='species', labels=('setosa', 'versicolor'), colors=('red', 'blue'))
    recolored = GuideDescriptor(title='species', labels=('setosa', 'virginica'), colors=('red', 'green'))
    retitled = GuideDescriptor(title='kind', labels=('setosa', 'virginica'), colors=('red', 'blue'))
    unique = deduplicate_guides([species_guide, relabeled, recolored, retitled])
    assert len(unique) == 4


def test_deduplication_is_idempotent(species_guide):
    colorbar = GuideDescriptor(title='depth', kind='colorbar', cmap='viridis', value_range=(0, 10))
    once = deduplicate_guides([species_guide, colorbar, species_guide, colorbar])
    assert deduplicate_guides(once) == once
    assert once == [species_guide, colorbar]


def test_guide_rejects_mismatched_colors():
    with pytest.raises(ValueError):
        GuideDescriptor(labels=('a', 'b'), colors=('red',))


def test_keep_mode_returns_tree_untouched(make_plot, species_guide):
    tree = make_plot('a', [species_guide]) + make_plot('b', [species_guide])
    kept, collected = collect(tree)
    assert kept is tree
    assert len(collected) == 0


def test_collect_strips_and_deduplicates(make_plot, species_guide):
    """Collected guides are removed from plots and merged."""
    a = make_plot('a', [species_guide])
    tree = a + make_plot('b', [species_guide])
    stripped, collected = collect(tree, 'collect')

    assert list(collected) == [species_guide]
    assert collected.position == 'right'
    assert all(not leaf.plot.guides for leaf in leaves(stripped))
    assert a.guides == [species_guide]


def test_collected_guides_go_to_guide_area(make_plot, species_guide):
    tree = wrap_plots(make_plot('a', [species_guide]), make_plot('b', [species_guide]), guide_area())
    _, collected = collect(tree, 'collect')
    assert collected.position == 'area'
    assert isinstance(collected.area, GuideArea)


def test_collected_position_follows_theme(make_plot, species_guide):
    tree = make_plot('a', [species_guide]) + make_plot('b', [species_guide])
    _, collected = collect(tree, 'collect', theme={'legend_position': 'bottom'})
    assert collected.position == 'bottom'


def test_unknown_collect_mode(make_plot):
    with pytest.raises(ConstructionError):
        collect(make_plot('a') + make_plot('b'), 'merge')


def test_nested_keep_opts_out(make_plot, species_guide):
    """A nested group laid out with guides='keep' keeps its own guides."""
    inner = set_layout(make_plot('b', [species_guide]) | make_plot('c', [species_guide]), guides='keep')
    tree = make_plot('a', [species_guide]) + inner
    stripped, collected = collect(tree, 'collect')

    assert len(collected) == 1
    assert not index_get(stripped, 0).plot.guides
    assert all(leaf.plot.guides for leaf in leaves(index_get(stripped, 1)))


def test_collect_nested_uses_group_layouts(make_plot, species_guide):
    """Groups asking for collection are collected; the rest keep their guides."""
    inner = set_layout(make_plot('b', [species_guide]) + make_plot('c', [species_guide]), guides='collect')
    tree = make_plot('a', [species_guide]) + inner
    rewritten, results = GuideCollector().collect_nested(tree)

    assert len(results) == 1
    group, collected = results[0]
    assert group is index_get(rewritten, 1)
    assert len(collected) == 1
    assert index_get(rewritten, 0).plot.guides == [species_guide]


def test_collect_nested_root_layout(make_plot, species_guide):
    tree = wrap_plots(make_plot('a', [species_guide]), make_plot('b', [species_guide]), guides='collect')
    rewritten, results = GuideCollector().collect_nested(tree)
    assert results[0][0] is rewritten
    assert all(not leaf.plot.guides for leaf in leaves(rewritten))
