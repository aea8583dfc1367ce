import time
import json
from contextlib import contextmanager
from typing import Dict, Any

class ExecutionStats:
    def __init__(self, num_threads: int = 0):
        self.num_threads = num_threads
        self.phase_times = {}  # Map of phase name to (start_time, end_time)

    def start_phase(self, name: str):
        """Record when a phase starts"""
        self.phase_times[name] = (time.time(), None)

    def end_phase(self, name: str):
        """Record when a phase completes"""
        if name in self.phase_times:
            start_time, _ = self.phase_times[name]
            self.phase_times[name] = (start_time, time.time())

    @contextmanager
    def phase(self, name: str):
        self.start_phase(name)
        try:
            yield self
        finally:
            self.end_phase(name)

    def elapsed(self, name: str) -> float:
        """Seconds spent in a phase, 0 if it never ran, up to now if still running"""
        if name not in self.phase_times:
            return 0.0
        start_time, end_time = self.phase_times[name]
        if end_time is None:
            end_time = time.time()
        return end_time - start_time

    def calculate_metrics(self) -> Dict[str, Any]:
        """Per-phase timings in seconds"""
        metrics = {
            "read_time": self.elapsed("read"),
            "processing_time": self.elapsed("processing"),
            "total_time": self.elapsed("total"),
            "num_threads": self.num_threads,
        }
        # Phases beyond the standard three (e.g. "write", "verify")
        for name in self.phase_times:
            if name not in ("read", "processing", "total"):
                metrics[f"{name}_time"] = self.elapsed(name)
        return metrics

    def summary(self) -> str:
        metrics = self.calculate_metrics()
        lines = [
            "=== EXECUTION STATISTICS ===",
            f"Data read time: {metrics['read_time']:.6f} seconds",
            f"Parallel processing time: {metrics['processing_time']:.6f} seconds",
            f"Total execution time: {metrics['total_time']:.6f} seconds",
            f"Threads used: {metrics['num_threads']}",
            "============================",
        ]
        return "\n".join(lines)

    def save_results(self, filename: str):
        """Save metrics to a JSON file"""
        metrics = self.calculate_metrics()

        with open(filename, 'w') as f:
            json.dump(metrics, f, indent=2)

        print(f"Statistics saved to {filename}")
        return metrics
