import logging
import time
import numpy as np


def squared_distance_matrix(queries: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    (Q, N) matrix of squared Euclidean distances from every query to every
    point, via |q|^2 + |p|^2 - 2 q.p. Rounding can push exact matches slightly
    below zero, so results are clamped at 0.
    """
    queries = np.atleast_2d(np.asarray(queries, dtype=np.float64))
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    if queries.shape[1] != points.shape[1]:
        raise ValueError(f"Dimension mismatch: queries D={queries.shape[1]}, points D={points.shape[1]}")

    query_norms = np.einsum('ij,ij->i', queries, queries)
    point_norms = np.einsum('ij,ij->i', points, points)
    dist_sq = query_norms[:, np.newaxis] + point_norms[np.newaxis, :] - 2.0 * (queries @ points.T)
    return np.maximum(dist_sq, 0.0)


def numpy_knn_bruteforce(A_np, X_np, K, batch_size_q=1024):
    """
    Finds the K nearest neighbors with one vectorised NumPy distance matrix
    per query batch. Used to cross-check the threaded search.

    Args:
        A_np (np.ndarray): Database (training) vectors (N, D).
        X_np (np.ndarray): Query vectors (Q, D).
        K (int): Number of neighbors to find, 1 <= K <= N.
        batch_size_q (int): Number of queries per distance matrix.

    Returns:
        tuple[np.ndarray, np.ndarray]:
            - indices (Q, K), int64, nearest first.
            - Euclidean distances (Q, K), float64, ascending.
    """
    A_np = np.asarray(A_np, dtype=np.float64)
    X_np = np.asarray(X_np, dtype=np.float64)

    if A_np.ndim != 2: raise ValueError(f"Database A_np must be 2D (N, D), got shape {A_np.shape}")
    if X_np.ndim != 2: raise ValueError(f"Queries X_np must be 2D (Q, D), got shape {X_np.shape}")
    N_A, D = A_np.shape
    Q, query_D = X_np.shape
    if query_D != D: raise ValueError(f"Dimension mismatch: A_np D={D}, X_np D={query_D}")
    if not 0 < K <= N_A: raise ValueError(f"K must be between 1 and {N_A}, got {K}")

    logging.info(f"Running k-NN Brute Force (NumPy reference): Q={Q}, N={N_A}, D={D}, K={K}")
    start_time = time.time()

    all_topk_indices = np.empty((Q, K), dtype=np.int64)
    all_topk_distances = np.empty((Q, K), dtype=np.float64)

    for q_start in range(0, Q, batch_size_q):
        q_end = min(q_start + batch_size_q, Q)
        batch_distances_sq = squared_distance_matrix(X_np[q_start:q_end], A_np)

        if K >= N_A: # all points requested, just sort
            batch_topk_indices = np.argsort(batch_distances_sq, axis=1)[:, :K]
        else:
            # K smallest, unordered, then sorted within the K
            unstructured = np.argpartition(batch_distances_sq, kth=K - 1, axis=1)[:, :K]
            unstructured_dists = np.take_along_axis(batch_distances_sq, unstructured, axis=1)
            order = np.argsort(unstructured_dists, axis=1)
            batch_topk_indices = np.take_along_axis(unstructured, order, axis=1)

        all_topk_indices[q_start:q_end] = batch_topk_indices
        all_topk_distances[q_start:q_end] = np.sqrt(
            np.take_along_axis(batch_distances_sq, batch_topk_indices, axis=1)
        )

    logging.info(f"k-NN Brute Force (NumPy reference) computation time: {time.time() - start_time:.4f} seconds")
    return all_topk_indices, all_topk_distances


def recall_at_k(found: np.ndarray, expected: np.ndarray) -> float:
    """Mean fraction of expected neighbour ids present in each found row"""
    found = np.asarray(found)
    expected = np.asarray(expected)
    if expected.size == 0:
        return 1.0
    total_correct = 0
    for found_row, expected_row in zip(found, expected):
        res_set = set(found_row.tolist())
        total_correct += sum(1 for idx in expected_row.tolist() if idx in res_set)
    return total_correct / expected.size
