"""Shared pytest fixtures for the calibration tests."""

import pytest

from sensor_calibration.bus import DeltaBus


def make_delta(*values, source=None):
    """Build a single-update delta from (path, value) pairs."""
    update = {'values': [{'path': path, 'value': value} for path, value in values]}
    if source is not None:
        update['$source'] = source
    return {'updates': [update]}


@pytest.fixture
def bus():
    return DeltaBus()


@pytest.fixture
def wind_options():
    return {
        'calibrations': [{
            'path': 'environment.wind.angleApparent',
            'period': 360,
            'mappings': [
                {'in': 100, 'out': 30},
                {'in': 0, 'out': 350},
                {'in': 50, 'out': 10},
            ],
        }],
    }
