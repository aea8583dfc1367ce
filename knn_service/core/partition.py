import logging
from dataclasses import dataclass
from typing import List

from knn_service.exceptions import PreconditionViolation


@dataclass(frozen=True)
class Shard:
    """Contiguous slice [start, start + length) of the training set owned by one worker"""
    index: int
    start: int
    length: int

    @property
    def stop(self) -> int:
        return self.start + self.length

    @property
    def indices(self) -> range:
        return range(self.start, self.stop)


def effective_worker_count(requested: int, n_train: int) -> int:
    """
    Number of workers actually used for `requested` threads over `n_train`
    training points. Never more than one worker per training point.
    """
    if requested <= 0:
        raise PreconditionViolation(f"Number of threads must be positive, got {requested}")
    if n_train <= 0:
        raise PreconditionViolation(f"Training set must not be empty, got {n_train} points")
    if requested > n_train:
        logging.warning(f"Requested {requested} threads for {n_train} training points. Using {n_train} threads.")
        return n_train
    return requested


def partition_shards(n_train: int, num_workers: int) -> List[Shard]:
    """
    Split [0, n_train) into one shard per worker.

    Every shard gets n_train // workers points; the last one also absorbs
    the remainder (at most workers - 1 extra points).
    """
    num_workers = effective_worker_count(num_workers, n_train)
    base = n_train // num_workers
    remainder = n_train % num_workers

    shards = []
    for i in range(num_workers):
        length = base
        if i == num_workers - 1:
            length += remainder
        shards.append(Shard(index=i, start=i * base, length=length))
    return shards
