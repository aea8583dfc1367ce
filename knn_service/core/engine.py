import logging
import time
import numpy as np
from dataclasses import dataclass
from typing import List, Tuple

from knn_service.data.dataset import Dataset
from knn_service.exceptions import WorkerError, WorkerSpawnFailure
from .heap import BoundedTopKHeap
from .partition import Shard, partition_shards
from .worker import ShardWorker


@dataclass
class KnnResult:
    """Completed per-query heaps, one per test point, in test-set order"""
    heaps: List[BoundedTopKHeap]
    k: int
    num_threads: int

    def __len__(self):
        return len(self.heaps)

    def neighbors(self, query_idx: int) -> List[Tuple[int, float]]:
        """(id, distance) pairs for one query point, nearest first."""
        return [(point_id, dist) for dist, point_id in self.heaps[query_idx].sorted_items()]

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            tuple[np.ndarray, np.ndarray]:
                - indices (M, K) int64, nearest first.
                - distances (M, K) float64, ascending.
        """
        m = len(self.heaps)
        indices = np.full((m, self.k), -1, dtype=np.int64)
        distances = np.full((m, self.k), np.inf, dtype=np.float64)
        for q, heap in enumerate(self.heaps):
            for j, (dist, point_id) in enumerate(heap.sorted_items()):
                indices[q, j] = point_id
                distances[q, j] = dist
        return indices, distances


class ParallelKnnSearcher:
    """
    Exact brute-force k-NN: the training set is split into contiguous shards,
    one thread per shard, and every thread offers its candidates to the
    shared per-query heaps.
    """
    def __init__(self, dataset: Dataset, num_threads: int):
        """
        Validates everything up front so that no thread is started for
        inputs that cannot produce an exact answer.

        Args:
            dataset: Loaded training/test points and K.
            num_threads: Requested worker count; capped at the number of
                         training points.

        Raises:
            PreconditionViolation: invalid dataset or thread count.
        """
        self.dataset = dataset.validate()
        self.shards: List[Shard] = partition_shards(dataset.n, num_threads)
        self.num_threads = len(self.shards)
        logging.info(f"Initialized ParallelKnnSearcher: N={dataset.n}, M={dataset.m}, D={dataset.d}, "
                     f"K={dataset.k}, threads={self.num_threads}")

    def _create_heaps(self) -> List[BoundedTopKHeap]:
        return [BoundedTopKHeap(self.dataset.k) for _ in range(self.dataset.m)]

    def _create_worker(self, shard: Shard, heaps: List[BoundedTopKHeap]) -> ShardWorker:
        return ShardWorker(shard, self.dataset.train, self.dataset.test, heaps)

    def search(self) -> KnnResult:
        """
        Run the parallel phase and wait for every worker.

        Raises:
            AllocationError: heap storage could not be reserved.
            WorkerSpawnFailure: a worker could not be started. Workers that
                                did start are joined first.
            WorkerError: a worker failed while scanning its shard.
        """
        heaps = self._create_heaps()

        logging.info(f"Starting parallel processing with {self.num_threads} threads...")
        start_time = time.time()

        workers: List[ShardWorker] = []
        for shard in self.shards:
            worker = self._create_worker(shard, heaps)
            try:
                worker.start()
            except RuntimeError as e:
                logging.error(f"Could not start worker {shard.index}: {e}. Joining {len(workers)} started workers.")
                for started in workers:
                    started.join()
                raise WorkerSpawnFailure(f"Could not start worker for shard {shard.index}: {e}") from e
            workers.append(worker)

        for worker in workers:
            worker.join()

        failed = [w for w in workers if w.error is not None]
        if failed:
            raise WorkerError(failed[0].shard.index, failed[0].error) from failed[0].error

        end_time = time.time()
        logging.info(f"Parallel processing finished in {end_time - start_time:.4f} seconds.")
        return KnnResult(heaps=heaps, k=self.dataset.k, num_threads=self.num_threads)


def run_knn(dataset: Dataset, num_threads: int) -> KnnResult:
    return ParallelKnnSearcher(dataset, num_threads).search()
