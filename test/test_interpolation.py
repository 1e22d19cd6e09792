import pytest

from sensor_calibration.interpolation import LinearInterpolator


@pytest.mark.parametrize("points", [
    [(0, 0), (10, 100)],
    [(0, 350), (50, 370), (100, 390)],
    [(-3.1416, -3.1), (0.0, 0.02), (3.1416, 3.15)],
    [(1, 5), (2, 3), (7, -4), (9, 12.5)],
])
def test_exact_at_breakpoints(points):
    convert = LinearInterpolator(points)
    for x, y in points:
        assert convert(x) == y


def test_interpolates_between_neighbours():
    convert = LinearInterpolator([(0, 0), (10, 100), (20, 120)])
    assert convert(5) == pytest.approx(50.0)
    assert convert(15) == pytest.approx(110.0)


def test_extrapolates_with_end_segments():
    convert = LinearInterpolator([(0, 0), (10, 100), (20, 120)])
    assert convert(-5) == pytest.approx(-50.0)
    assert convert(30) == pytest.approx(140.0)


def test_unsorted_points_are_sorted():
    convert = LinearInterpolator([(20, 120), (0, 0), (10, 100)])
    assert convert.points == [(0.0, 0.0), (10.0, 100.0), (20.0, 120.0)]
    assert convert(5) == pytest.approx(50.0)


def test_duplicate_inputs_keep_their_order():
    convert = LinearInterpolator([(10, 100), (0, 5), (0, 1)])
    assert convert.points == [(0.0, 5.0), (0.0, 1.0), (10.0, 100.0)]


def test_returns_float():
    assert isinstance(LinearInterpolator([(0, 0), (10, 100)])(5), float)


def test_needs_two_points():
    with pytest.raises(ValueError):
        LinearInterpolator([(0, 0)])
    with pytest.raises(ValueError):
        LinearInterpolator([])
