import math

import numpy as np
import pytest

from knn_service.core.distance import euclidean_distance


def test_scalar_distance():
    assert euclidean_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == 5.0
    assert euclidean_distance(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0, 3.0])) == 0.0
    assert isinstance(euclidean_distance(np.array([0.0]), np.array([2.0])), float)


def test_distance_is_symmetric():
    rng = np.random.default_rng(0)
    a, b = rng.normal(size=(2, 16))
    assert euclidean_distance(a, b) == pytest.approx(euclidean_distance(b, a))


def test_row_distances_match_scalar_distances():
    rng = np.random.default_rng(1)
    point = rng.normal(size=8)
    rows = rng.normal(size=(20, 8))
    dists = euclidean_distance(point, rows)
    assert dists.shape == (20,)
    for i, row in enumerate(rows):
        assert dists[i] == pytest.approx(euclidean_distance(point, row))
        assert dists[i] == pytest.approx(math.sqrt(sum((x - y) ** 2 for x, y in zip(point, row))))

