import argparse
import logging
import sys

from knn_service.config import Settings
from knn_service.core.engine import ParallelKnnSearcher
from knn_service.core.reference import numpy_knn_bruteforce, recall_at_k
from knn_service.data.dataset import load_dataset
from knn_service.exceptions import KnnError
from knn_service.metrics.collector import ExecutionStats
from knn_service.output.report import format_preview, log_debug_distances, save_results


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Exact parallel brute-force K-nearest-neighbour search")
    parser.add_argument("train_file", nargs="?", default=settings.train_file, help="Binary file with the training points")
    parser.add_argument("test_file", nargs="?", default=settings.test_file, help="Binary file with the test (query) points")
    parser.add_argument("k", nargs="?", type=int, default=settings.k, help="Number of nearest neighbours")
    parser.add_argument("num_threads", nargs="?", type=int, default=settings.num_threads, help="Number of worker threads")
    parser.add_argument("output", nargs="?", default=settings.output_file, help="Results file (.json for JSON output)")
    parser.add_argument("--stats-output", default=settings.stats_file, help="Write execution statistics to this JSON file")
    parser.add_argument("--verify", action=argparse.BooleanOptionalAction, default=settings.verify,
                        help="Cross-check the results against a vectorised NumPy search")
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=settings.debug,
                        help="Log the first computed distances")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=settings.log_level, help="Logging level")
    return parser


def run(args) -> int:
    stats = ExecutionStats()
    stats.start_phase("total")

    try:
        with stats.phase("read"):
            dataset = load_dataset(args.train_file, args.test_file, args.k)

        log_debug_distances(dataset)

        searcher = ParallelKnnSearcher(dataset, args.num_threads)
        stats.num_threads = searcher.num_threads

        with stats.phase("processing"):
            result = searcher.search()
    except KnnError as e:
        logging.error(f"KNN search aborted: {e}")
        return 1

    logging.info("Saving results...")
    try:
        save_results(result, args.output)
    except OSError as e:
        logging.error(f"Could not write results to {args.output}: {e}")
        return 1

    print("\nFirst results:")
    print(format_preview(result))

    if args.verify:
        with stats.phase("verify"):
            expected, _ = numpy_knn_bruteforce(dataset.train, dataset.test, dataset.k)
            found, _ = result.as_arrays()
            recall = recall_at_k(found, expected)
        logging.info(f"Recall against NumPy reference: {recall * 100:.2f}%")

    stats.end_phase("total")
    print()
    print(stats.summary())
    if args.stats_output:
        stats.save_results(args.stats_output)

    return 0


def main(argv=None) -> int:
    # Load configuration
    settings = Settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    # argparse does not check defaults against choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")

    logging.basicConfig(level=args.log_level, format='%(asctime)s - %(levelname)s - %(message)s')
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
