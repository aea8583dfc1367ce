import os
import logging
import numpy as np
from dataclasses import dataclass

from knn_service.exceptions import DatasetFormatError, PreconditionViolation

# File layout: int32 point count, int32 dimension, then count * dimension float64 values (row-major)
HEADER_DTYPE = np.dtype('<i4')
FEATURE_DTYPE = np.dtype('<f8')


def _as_points(points, name: str) -> np.ndarray:
    if not isinstance(points, np.ndarray):
        points = np.asarray(points, dtype=np.float64)
    elif points.dtype != np.float64:
        logging.warning(f"{name} points have dtype {points.dtype}. Converting to float64.")
        points = points.astype(np.float64)
    if points.ndim != 2:
        raise PreconditionViolation(f"{name} points must be 2D (count, D), got shape {points.shape}")
    return points


@dataclass
class Dataset:
    """
    Training and query points sharing one dimensionality, plus the number of
    neighbours to find. A point's id is its row index (load order).
    """
    train: np.ndarray
    test: np.ndarray
    k: int

    def __post_init__(self):
        self.train = _as_points(self.train, "Training")
        self.test = _as_points(self.test, "Test")
        # read-only views; the caller's arrays keep their own flags
        self.train = self.train.view()
        self.train.setflags(write=False)
        self.test = self.test.view()
        self.test.setflags(write=False)

    @property
    def n(self) -> int:
        return self.train.shape[0]

    @property
    def m(self) -> int:
        return self.test.shape[0]

    @property
    def d(self) -> int:
        return self.train.shape[1]

    def validate(self):
        """Raise PreconditionViolation unless both sets share D and 1 <= K <= N."""
        if self.train.shape[1] != self.test.shape[1]:
            raise PreconditionViolation(
                f"Dimension mismatch - train: {self.train.shape[1]}, test: {self.test.shape[1]}"
            )
        if self.k <= 0 or self.k > self.n:
            raise PreconditionViolation(f"K must be between 1 and {self.n} (number of training points), got {self.k}")
        return self


def read_points(path: str) -> np.ndarray:
    """
    Read a binary point file.

    Returns:
        (count, D) float64 array; row i is the point with id i.

    Raises:
        DatasetFormatError: file missing or unreadable, header or payload
                            truncated, negative header values.
    """
    if not os.path.isfile(path):
        raise DatasetFormatError(f"Could not open point file: {path}")

    try:
        with open(path, 'rb') as f:
            header = np.fromfile(f, dtype=HEADER_DTYPE, count=2)
            if header.shape[0] != 2:
                raise DatasetFormatError(f"Could not read point count and dimension from {path}")
            count, dim = int(header[0]), int(header[1])
            if count < 0 or dim <= 0:
                raise DatasetFormatError(f"Invalid header in {path}: count={count}, dimension={dim}")

            values = np.fromfile(f, dtype=FEATURE_DTYPE, count=count * dim)
    except OSError as e:
        raise DatasetFormatError(f"Could not read point file {path}: {e}") from e

    if values.shape[0] != count * dim:
        raise DatasetFormatError(
            f"Truncated point file {path}: expected {count * dim} values, read {values.shape[0]}"
        )

    return values.astype(np.float64).reshape(count, dim)


def write_points(path: str, points) -> None:
    """Write a (count, D) array in the binary point format."""
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2:
        raise ValueError(f"points must be 2D (count, D), got shape {points.shape}")
    count, dim = points.shape
    with open(path, 'wb') as f:
        np.array([count, dim], dtype=HEADER_DTYPE).tofile(f)
        points.astype(FEATURE_DTYPE).tofile(f)


def load_dataset(train_file: str, test_file: str, k: int) -> Dataset:
    """Read both point files and validate them together."""
    logging.info(f"Reading training set from {train_file}...")
    train = read_points(train_file)
    logging.info(f"Reading test set from {test_file}...")
    test = read_points(test_file)

    dataset = Dataset(train=train, test=test, k=k).validate()
    logging.info(f"Datasets loaded. Train: {dataset.n} points, Test: {dataset.m} points, "
                 f"Dimensions: {dataset.d}, K: {dataset.k}")
    return dataset
