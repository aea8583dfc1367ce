import threading
import logging
from typing import Optional, Sequence

from .distance import euclidean_distance
from .heap import BoundedTopKHeap
from .partition import Shard


class ShardWorker(threading.Thread):
    """Background thread that offers every (training point, query) pair of one shard to the query heaps"""
    def __init__(self,
                 shard: Shard,
                 train,
                 test,
                 heaps: Sequence[BoundedTopKHeap]):
        super().__init__(name=f"knn-shard-{shard.index}", daemon=True)
        self.shard = shard
        self.train = train
        self.test = test
        self.heaps = heaps
        self.error: Optional[BaseException] = None
        self.pairs_evaluated = 0

    def run(self):
        """Scan the shard; the heap lock is only held inside each insert call"""
        logging.debug(f"Worker {self.shard.index} started on training points [{self.shard.start}, {self.shard.stop}).")
        try:
            for train_id in self.shard.indices:
                # distances to all query points, consumed in query-index order
                distances = euclidean_distance(self.train[train_id], self.test)
                for query_idx, heap in enumerate(self.heaps):
                    heap.insert(distances[query_idx], train_id)
                self.pairs_evaluated += len(self.heaps)
        except Exception as e:
            logging.error(f"Error in worker for shard {self.shard.index}: {e}", exc_info=True)
            self.error = e
            return

        logging.debug(f"Worker {self.shard.index} finished ({self.pairs_evaluated} pairs).")
