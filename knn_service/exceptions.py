class KnnError(Exception):
    """Base class for every fatal condition raised by the search pipeline"""


class AllocationError(KnnError, MemoryError):
    """Heap storage could not be reserved"""


class PreconditionViolation(KnnError, ValueError):
    """Inputs rejected before any parallel work is dispatched"""


class DatasetFormatError(KnnError, ValueError):
    """A point file is missing, truncated or has an invalid header"""


class WorkerSpawnFailure(KnnError, RuntimeError):
    """A worker thread could not be started"""


class WorkerError(KnnError, RuntimeError):
    """A worker raised while scanning its shard"""
    def __init__(self, shard_index: int, cause: BaseException):
        super().__init__(f"Worker for shard {shard_index} failed: {cause}")
        self.shard_index = shard_index
        self.cause = cause
