"""
Tests for composition configuration and environment overrides.
"""

import pytest

from plotpatch.viz.context.config import CompositionConfig


def test_defaults():
    config = CompositionConfig()
    assert config.figsize == (8.0, 6.0)
    assert config.guides == 'keep'
    assert config.legend_position == 'right'
    assert set(config.to_dict()) >= {'figsize', 'dpi', 'spacing', 'tag_prefix', 'max_image_size'}


def test_from_environment(monkeypatch):
    """PLOTPATCH_* variables override the defaults."""
    monkeypatch.setenv('PLOTPATCH_FIGSIZE', '10,4')
    monkeypatch.setenv('PLOTPATCH_DPI', '72')
    monkeypatch.setenv('PLOTPATCH_SPACING', '0.05')
    monkeypatch.setenv('PLOTPATCH_GUIDES', 'COLLECT')
    monkeypatch.setenv('PLOTPATCH_LEGEND_POSITION', 'bottom')

    config = CompositionConfig.from_environment()
    assert config.figsize == (10.0, 4.0)
    assert config.dpi == 72
    assert config.spacing == 0.05
    assert config.guides == 'collect'
    assert config.legend_position == 'bottom'


def test_explicit_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv('PLOTPATCH_DPI', '72')
    config = CompositionConfig.from_environment(dpi=150)
    assert config.dpi == 150


def test_environment_absent_gives_defaults(monkeypatch):
    for name in ('PLOTPATCH_FIGSIZE', 'PLOTPATCH_DPI', 'PLOTPATCH_SPACING',
                 'PLOTPATCH_GUIDES', 'PLOTPATCH_LEGEND_POSITION'):
        monkeypatch.delenv(name, raising=False)
    assert CompositionConfig.from_environment() == CompositionConfig()


@pytest.mark.parametrize("changes", [
    {'guides': 'merge'},
    {'legend_position': 'center'},
    {'figsize': (0, 4)},
    {'spacing': 0.6},
])
def test_invalid_values_are_rejected(changes):
    with pytest.raises(ValueError):
        CompositionConfig(**changes)


def test_with_changes_returns_copy():
    config = CompositionConfig()
    wider = config.with_changes(figsize=(12, 4))
    assert wider.figsize == (12, 4)
    assert config.figsize == (8.0, 6.0)
