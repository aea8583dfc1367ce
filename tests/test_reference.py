import numpy as np
import pytest

from knn_service.core.reference import numpy_knn_bruteforce, recall_at_k, squared_distance_matrix


def test_squared_distance_matrix_matches_direct():
    rng = np.random.default_rng(2)
    queries = rng.normal(size=(5, 4))
    points = rng.normal(size=(7, 4))
    out = squared_distance_matrix(queries, points)
    assert out.shape == (5, 7)
    expected = ((queries[:, None, :] - points[None, :, :]) ** 2).sum(axis=2)
    np.testing.assert_allclose(out, expected, rtol=1e-9, atol=1e-9)
    assert (out >= 0).all()


def test_squared_distance_matrix_dimension_mismatch():
    with pytest.raises(ValueError):
        squared_distance_matrix(np.zeros((2, 3)), np.zeros((2, 4)))


def test_squared_distance_matrix_empty_queries():
    assert squared_distance_matrix(np.zeros((0, 3)), np.zeros((4, 3))).shape == (0, 4)


def test_bruteforce_small_scenario():
    train = np.array([[0.0, 0.0], [1.0, 0.0], [5.0, 5.0]])
    indices, distances = numpy_knn_bruteforce(train, np.array([[0.0, 0.0]]), 2)
    assert indices.tolist() == [[0, 1]]
    np.testing.assert_allclose(distances, [[0.0, 1.0]])


def test_bruteforce_batches_agree_with_single_batch():
    rng = np.random.default_rng(8)
    train = rng.normal(size=(40, 3))
    test = rng.normal(size=(9, 3))
    whole, _ = numpy_knn_bruteforce(train, test, 4)
    batched, _ = numpy_knn_bruteforce(train, test, 4, batch_size_q=2)
    np.testing.assert_array_equal(whole, batched)


def test_recall_at_k():
    assert recall_at_k(np.array([[0, 1], [2, 3]]), np.array([[1, 0], [2, 4]])) == 0.75
    assert recall_at_k(np.empty((0, 2)), np.empty((0, 2))) == 1.0
