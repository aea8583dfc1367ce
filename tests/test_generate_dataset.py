import numpy as np

from knn_service.data.dataset import read_points
from scripts.generate_dataset import generate_dataset


def test_generated_points_within_range(tmp_path):
    path = tmp_path / "train.bin"
    generate_dataset(str(path), 250, 4, -2.0, 3.0, np.random.default_rng(0), desc="train")

    points = read_points(str(path))
    assert points.shape == (250, 4)
    assert points.min() >= -2.0
    assert points.max() <= 3.0


def test_generate_empty_set(tmp_path):
    path = tmp_path / "test.bin"
    generate_dataset(str(path), 0, 3, 0.0, 1.0, np.random.default_rng(0))
    assert read_points(str(path)).shape == (0, 3)
