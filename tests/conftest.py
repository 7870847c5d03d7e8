"""
Shared fixtures for plotpatch tests.
"""

import matplotlib
matplotlib.use('Agg')

import pytest

from plotpatch.viz.base import GuideDescriptor, Plot


@pytest.fixture
def make_plot():
    """Factory for plots with a title and optional guides."""
    def _make(title='plot', guides=None, **kwargs):
        return Plot(title=title, guides=list(guides or []), **kwargs)
    return _make


@pytest.fixture
def species_guide():
    return GuideDescriptor(
        title='species',
        labels=('setosa', 'virginica'),
        colors=('red', 'blue'),
        source='iris'
    )
