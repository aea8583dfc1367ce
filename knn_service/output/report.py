import json
import logging
from typing import List

from knn_service.core.distance import euclidean_distance
from knn_service.core.engine import KnnResult
from knn_service.data.dataset import Dataset


def _query_block(result: KnnResult, query_idx: int) -> List[str]:
    lines = [f"Test point {query_idx}:", "K nearest neighbors:"]
    for point_id, dist in result.neighbors(query_idx):
        lines.append(f"  ID: {point_id}, Distance: {dist:.6f}")
    return lines


def format_results(result: KnnResult) -> str:
    lines = [f"KNN results (K={result.k})", "==============================", ""]
    for i in range(len(result)):
        lines.extend(_query_block(result, i))
        lines.append("")
    return "\n".join(lines)


def format_preview(result: KnnResult, max_queries: int = 3) -> str:
    """First few query blocks, for a quick look on the console"""
    lines = []
    for i in range(min(len(result), max_queries)):
        lines.extend(_query_block(result, i))
    return "\n".join(lines)


def save_results(result: KnnResult, filename: str):
    """
    Write the neighbours of every test point, nearest first.

    A `.json` filename produces a JSON document, anything else the plain
    text report.
    """
    if filename.endswith(".json"):
        payload = {
            "k": result.k,
            "num_threads": result.num_threads,
            "queries": [
                {
                    "query": i,
                    "neighbors": [{"id": point_id, "distance": dist} for point_id, dist in result.neighbors(i)],
                }
                for i in range(len(result))
            ],
        }
        with open(filename, 'w') as f:
            json.dump(payload, f, indent=2)
    else:
        with open(filename, 'w') as f:
            f.write(format_results(result))

    logging.info(f"Results saved to {filename}")


def log_debug_distances(dataset: Dataset, max_queries: int = 2, max_train: int = 5):
    """Dump the first computed distances at DEBUG level to eyeball the distance function"""
    if not logging.getLogger().isEnabledFor(logging.DEBUG):
        return
    for q in range(min(dataset.m, max_queries)):
        coords = ", ".join(f"{v:.2f}" for v in dataset.test[q])
        logging.debug(f"Test point {q}: [{coords}]")
        for i in range(min(dataset.n, max_train)):
            dist = euclidean_distance(dataset.test[q], dataset.train[i])
            logging.debug(f"  Train {i}: {dist:.6f}")
