import argparse
import os
import numpy as np
from tqdm import tqdm

from knn_service.data.dataset import FEATURE_DTYPE, HEADER_DTYPE, read_points

CHUNK_ROWS = 100_000


def generate_dataset(filename, points, dimensions, low, high, rng, desc=None):
    """Write `points` uniform random vectors in [low, high] to a binary point file, chunk by chunk"""
    with open(filename, 'wb') as f:
        np.array([points, dimensions], dtype=HEADER_DTYPE).tofile(f)
        for start in tqdm(range(0, points, CHUNK_ROWS), desc=desc or filename, unit="chunk"):
            rows = min(CHUNK_ROWS, points - start)
            rng.uniform(low, high, size=(rows, dimensions)).astype(FEATURE_DTYPE).tofile(f)


def print_dataset(filename, max_print):
    points = read_points(filename)
    print(f"\n--- Contents of {filename} ---")
    print(f"Number of points: {points.shape[0]}")
    print(f"Dimensions: {points.shape[1]}\n")
    for i, row in enumerate(points[:max_print]):
        print(f"Point {i}: " + " ".join(f"{v:.2f}" for v in row))
    if points.shape[0] > max_print:
        print(f"--===({points.shape[0]} points in total)===--")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate random training and test point files")
    parser.add_argument("n_train", type=int, help="Number of training points")
    parser.add_argument("m_test", type=int, help="Number of test points")
    parser.add_argument("dimensions", type=int, help="Dimension of every point")
    parser.add_argument("min", type=float, help="Minimum feature value")
    parser.add_argument("max", type=float, help="Maximum feature value")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--output-dir", default=".", help="Directory for train.bin and test.bin")
    parser.add_argument("--print-rows", type=int, default=10, help="Rows of each file to print afterwards")
    args = parser.parse_args()

    if args.n_train < 0 or args.m_test < 0 or args.dimensions <= 0:
        parser.error("point counts must be non-negative and dimensions positive")

    rng = np.random.default_rng(args.seed)
    os.makedirs(args.output_dir, exist_ok=True)
    train_path = os.path.join(args.output_dir, "train.bin")
    test_path = os.path.join(args.output_dir, "test.bin")

    print(f"Generating {args.n_train} training points and {args.m_test} test points "
          f"({args.dimensions} dimensions) in [{args.min:.2f}, {args.max:.2f}]")
    generate_dataset(train_path, args.n_train, args.dimensions, args.min, args.max, rng, desc="train")
    generate_dataset(test_path, args.m_test, args.dimensions, args.min, args.max, rng, desc="test")
    print(f"\nFiles '{train_path}' and '{test_path}' generated.")

    print_dataset(train_path, args.print_rows)
    print_dataset(test_path, args.print_rows)
