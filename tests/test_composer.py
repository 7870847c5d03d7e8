"""
Tests for composition tree construction, indexing and theme broadcast.
"""

import pytest

from plotpatch.viz.base import Plot, Theme
from plotpatch.viz.context.composer import (
    Column,
    Combine,
    Grid,
    Leaf,
    Row,
    apply_to_all,
    apply_to_level,
    combine,
    index_get,
    index_set,
    leaves,
    plots,
    spacer,
    wrap_plots
)
from plotpatch.viz.errors import CompositionError, ConstructionError, LeafIndexError


def test_operators_build_expected_nodes(make_plot):
    """+, | and / build Combine, Row and Column nodes."""
    a, b = make_plot('a'), make_plot('b')
    assert isinstance(a + b, Combine)
    assert isinstance(a | b, Row)
    assert isinstance(a / b, Column)


def test_chained_operators_extend_same_level(make_plot):
    a, b, c = make_plot('a'), make_plot('b'), make_plot('c')
    assert len(a + b + c) == 3
    assert len(a | b | c) == 3
    assert len(a / b / c) == 3


def test_combine_returns_new_tree(make_plot):
    """Extending a composition leaves the original untouched."""
    pair = make_plot('a') + make_plot('b')
    triple = pair + make_plot('c')
    assert len(pair) == 2
    assert len(triple) == 3
    assert triple.children[0] is pair.children[0]


def test_mixed_operators_nest(make_plot):
    a, b, c = make_plot('a'), make_plot('b'), make_plot('c')
    tree = (a | b) / c
    assert isinstance(tree, Column)
    assert isinstance(tree.children[0], Row)
    assert [p.title for p in plots(tree)] == ['a', 'b', 'c']


def test_combining_non_plot_is_a_type_error(make_plot):
    with pytest.raises(TypeError):
        combine(make_plot('a'), 3)
    with pytest.raises(TypeError):
        make_plot('a') + "not a plot"


def test_empty_group_is_rejected():
    with pytest.raises(ConstructionError):
        Combine([])


def test_error_hierarchy():
    """Engine errors share a base and map onto builtin error types."""
    assert issubclass(ConstructionError, CompositionError)
    assert issubclass(ConstructionError, ValueError)
    assert issubclass(LeafIndexError, IndexError)


def test_index_set_then_get_returns_replacement(make_plot):
    """Replacing one item keeps the sibling identical and the original intact."""
    a, b, c = make_plot('a', theme={'font_size': 12}), make_plot('b'), make_plot('c')
    tree = a + b
    updated = index_set(tree, 0, c)

    assert index_get(updated, 0).plot is c
    assert index_get(updated, 1) is index_get(tree, 1)
    assert index_get(updated, 1).plot.theme == b.theme
    assert index_get(tree, 0).plot is a


def test_indexing_operator_and_negative_indices(make_plot):
    tree = make_plot('a') + make_plot('b') + make_plot('c')
    assert tree[0].plot.title == 'a'
    assert tree[-1].plot.title == 'c'


def test_index_out_of_range(make_plot):
    """Out-of-range access raises and leaves the tree unchanged."""
    tree = make_plot('a') + make_plot('b')
    with pytest.raises(LeafIndexError):
        index_get(tree, 2)
    with pytest.raises(IndexError):
        index_set(tree, -3, make_plot('c'))
    assert len(tree) == 2


def test_index_requires_integer(make_plot):
    with pytest.raises(TypeError):
        index_get(make_plot('a') + make_plot('b'), 'first')


def test_index_addresses_direct_children(make_plot):
    """A nested group counts as one item."""
    inner = make_plot('b') | make_plot('c')
    tree = make_plot('a') + inner
    assert len(tree) == 2
    assert index_get(tree, 1) is inner


def test_apply_to_all_keeps_explicit_settings(make_plot):
    """Broadcast fills unset attributes but never overrides explicit ones."""
    styled = make_plot('styled', theme={'font_size': 14})
    plain = make_plot('plain')
    tree = (styled + plain) & {'font_size': 8, 'text_color': 'red'}

    first, second = [leaf.plot for leaf in leaves(tree)]
    assert first.theme['font_size'] == 14
    assert first.theme['text_color'] == 'red'
    assert second.theme['font_size'] == 8
    assert second.theme['text_color'] == 'red'


def test_apply_to_all_does_not_touch_original_plots(make_plot):
    plain = make_plot('plain')
    apply_to_all(plain + make_plot('other'), {'font_size': 20})
    assert plain.theme['font_size'] == 9.0
    assert not plain.theme.inherited


def test_later_broadcast_replaces_earlier_inherited_value(make_plot):
    tree = make_plot('a') + make_plot('b')
    tree = (tree & {'font_size': 8}) & {'font_size': 10}
    assert all(p.theme['font_size'] == 10 for p in plots(tree))


def test_apply_to_level_only_touches_top_level(make_plot):
    """The * operator themes direct leaves and leaves nested groups alone."""
    tree = make_plot('top') + (make_plot('nested1') | make_plot('nested2'))
    themed = tree * Theme(font_size=16)
    top = index_get(themed, 0).plot
    nested = plots(index_get(themed, 1))
    assert top.theme['font_size'] == 16
    assert all(p.theme['font_size'] == 9.0 for p in nested)
    assert apply_to_level(make_plot('single'), {'font_size': 5}).plot.theme['font_size'] == 5


def test_spacers_are_skipped(make_plot):
    """Spacers hold a cell but are not plots and take no theme."""
    tree = (make_plot('a') + spacer() + make_plot('b')) & {'font_size': 3}
    assert len(tree) == 3
    assert [p.title for p in plots(tree)] == ['a', 'b']
    assert not index_get(tree, 1).plot.theme.settings()


def test_wrap_plots_with_constraints(make_plot):
    tree = wrap_plots([make_plot(str(i)) for i in range(3)], ncol=1)
    assert isinstance(tree, Grid)
    assert (tree.nrow, tree.ncol) == (3, 1)


def test_theme_validates_legend_position():
    with pytest.raises(ValueError):
        Theme(legend_position='middle')


def test_leaf_requires_plot():
    with pytest.raises(TypeError):
        Leaf("plot")
    assert Leaf(Plot(title='x')).plot.title == 'x'


def test_theme_rejects_unknown_settings(make_plot):
    """Misspelled setting names fail instead of being silently ignored."""
    with pytest.raises(ValueError, match='fontsize'):
        Theme(fontsize=12)
    with pytest.raises(ValueError):
        Theme(font_size=12).update(colour='red')
    with pytest.raises(ValueError):
        make_plot('a') & {'fontsize': 12}
