import numpy as np


def euclidean_distance(a: np.ndarray, b: np.ndarray):
    """
    Euclidean distance sqrt(sum((a_i - b_i)^2)), computed in float64.

    a: (D,) vector.
    b: (D,) vector -> returns a float, or (M, D) matrix -> returns an (M,)
       array with the distance from `a` to every row of `b`.

    Both operands must share D; this is the caller's responsibility and is
    not checked here. Pure function, safe to call from any thread.
    """
    diff = np.subtract(b, a, dtype=np.float64)
    dist = np.sqrt(np.sum(diff * diff, axis=-1))
    if np.ndim(dist) == 0:
        return float(dist)
    return dist
