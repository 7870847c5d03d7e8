"""
Tests for titles, captions and tag sequencing.
"""

import pytest

from plotpatch.viz.context.annotations import annotate, latin_numeral, roman_numeral, tag_value
from plotpatch.viz.context.composer import Grid, index_get, leaves, set_layout, spacer
from plotpatch.viz.errors import ConstructionError


def _tags(tree):
    return [leaf.plot.tag for leaf in leaves(tree) if not leaf.is_spacer]


@pytest.mark.parametrize("n, expected", [(1, 'a'), (26, 'z'), (27, 'aa'), (28, 'ab'), (53, 'ba')])
def test_latin_numerals(n, expected):
    assert latin_numeral(n) == expected
    assert latin_numeral(n, upper=True) == expected.upper()


@pytest.mark.parametrize("n, expected", [(1, 'I'), (4, 'IV'), (9, 'IX'), (14, 'XIV'), (1994, 'MCMXCIV')])
def test_roman_numerals(n, expected):
    assert roman_numeral(n) == expected
    assert roman_numeral(n, upper=False) == expected.lower()


def test_tag_value_styles():
    assert tag_value('1', 0) == '1'
    assert tag_value('A', 2) == 'C'
    assert tag_value('i', 3) == 'iv'
    assert tag_value(('x', 'y'), 1) == 'y'


def test_single_level_tags_in_order(make_plot):
    tree = annotate(make_plot('a') + make_plot('b') + make_plot('c'), tag_levels='A')
    assert _tags(tree) == ['A', 'B', 'C']


def test_new_tag_level_restarts_counter(make_plot):
    """A subtree marked "new" takes one parent tag and restarts its own sequence."""
    inner = set_layout(make_plot('b') + make_plot('c'), tag_level='new')
    tree = make_plot('a') + inner + make_plot('d')
    tagged = annotate(tree, tag_levels=['I', 'a'])

    assert _tags(tagged) == ['I', 'IIa', 'IIb', 'III']
    nested = [leaf.plot.tag_path for leaf in leaves(index_get(tagged, 1))]
    assert nested == [('II', 'a'), ('II', 'b')]


def test_tag_separator_prefix_and_suffix(make_plot):
    inner = set_layout(make_plot('b') + make_plot('c'), tag_level='new')
    tagged = annotate(make_plot('a') + inner, tag_levels=['1', 'a'], tag_prefix='(', tag_suffix=')', tag_sep='.')
    assert _tags(tagged) == ['(1)', '(2.a)', '(2.b)']


def test_new_level_without_style_continues_sequence(make_plot):
    inner = set_layout(make_plot('b') + make_plot('c'), tag_level='new')
    tagged = annotate(make_plot('a') + inner + make_plot('d'), tag_levels=['1'])
    assert _tags(tagged) == ['1', '2', '3', '4']


def test_spacers_take_no_tag(make_plot):
    tagged = annotate(make_plot('a') + spacer() + make_plot('b'), tag_levels='a')
    assert _tags(tagged) == ['a', 'b']
    assert index_get(tagged, 1).plot.tag is None


def test_custom_sequence_runs_out(make_plot):
    with pytest.raises(ConstructionError):
        annotate(make_plot('a') + make_plot('b') + make_plot('c'), tag_levels=[['x', 'y']])


def test_unknown_tag_style(make_plot):
    with pytest.raises(ConstructionError):
        annotate(make_plot('a') + make_plot('b'), tag_levels='q')


def test_named_styles_are_accepted(make_plot):
    tagged = annotate(make_plot('a') + make_plot('b'), tag_levels='roman')
    assert _tags(tagged) == ['i', 'ii']


def test_broadcast_after_tagging_keeps_tags(make_plot):
    tagged = annotate(make_plot('a') + make_plot('b'), tag_levels='a')
    themed = tagged & {'font_size': 20}
    assert _tags(themed) == ['a', 'b']
    assert themed.annotation.tag_levels == ('a',)


def test_annotate_does_not_modify_plots(make_plot):
    a = make_plot('a')
    annotate(a + make_plot('b'), tag_levels='1')
    assert a.tag is None
    assert a.tag_path == ()


def test_annotating_bare_plot_wraps_it(make_plot):
    tree = annotate(make_plot('solo'), title='Solo')
    assert isinstance(tree, Grid)
    assert tree.annotation.title == 'Solo'
    assert len(tree) == 1


def test_repeated_annotate_merges_settings(make_plot):
    tree = annotate(make_plot('a') + make_plot('b'), title='Title', tag_levels='A')
    tree = annotate(tree, caption='Source: field survey')
    assert tree.annotation.title == 'Title'
    assert tree.annotation.caption == 'Source: field survey'
    assert _tags(tree) == ['A', 'B']


def test_broadcast_reaches_annotation_theme(make_plot):
    tree = annotate(make_plot('a') + make_plot('b'), title='Title')
    themed = tree & {'legend_position': 'bottom'}
    assert themed.annotation.theme['legend_position'] == 'bottom'


def test_empty_tag_levels_remove_tags(make_plot):
    """Re-annotating with no tag levels clears earlier tags."""
    tree = annotate(make_plot('a') + (make_plot('b') | make_plot('c')), tag_levels='a')
    assert _tags(tree) == ['a', 'b', 'c']
    cleared = annotate(tree, tag_levels=[])
    assert cleared.annotation.tag_levels == ()
    assert _tags(cleared) == [None, None, None]
    assert all(leaf.plot.tag_path == () for leaf in leaves(cleared))
