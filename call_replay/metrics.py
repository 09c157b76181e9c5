"""
Summary statistics and plots for a finished replay.
"""

import json
from pathlib import Path
from typing import Dict
import numpy as np
import matplotlib.pyplot as plt

import config
from call_replay.replay import ReplayOrchestrator


class ReplayReport:
    """Compute replay statistics and generate reports."""

    def __init__(
        self,
        replay: ReplayOrchestrator,
        output_dir: str = config.REPORT_DIR,
        run_id: str = "default",
    ):
        """Initialize report.

        Args:
            replay: Orchestrator after ``run``
            output_dir: Output directory for reports
            run_id: Identifier for this run
        """
        self.replay = replay
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id

    def compute_wait_stats(self) -> Dict[str, float]:
        """Mean and stdev of realized waits over captured snapshots."""
        waits = [s.realized_wait for s in self.replay.snapshots]
        if not waits:
            return {"mean_wait": 0.0, "stdev_wait": 0.0, "samples": 0}
        return {
            "mean_wait": float(np.mean(waits)),
            "stdev_wait": float(np.std(waits)),
            "samples": len(waits),
        }

    def compute_service_stats(self) -> Dict[str, Dict]:
        """Per-service sample counts, mean wait and event counters."""
        stats = {}
        for service in self.replay.services:
            samples = self.replay.snapshots.for_service(service)
            counters = self.replay.policy.counters.get(service)
            stats[service] = {
                "samples": len(samples),
                "mean_wait": float(np.mean([s.realized_wait for s in samples])) if samples else 0.0,
                "qualified_workers": len(self.replay.registry.qualified(service)),
                "events": counters.to_dict() if counters else {},
            }
        return stats

    def summarize(self) -> Dict:
        """Generate the replay report.

        Returns:
            Report dictionary
        """
        snapshots = self.replay.snapshots
        scheduler = self.replay.scheduler
        return {
            "run_id": self.run_id,
            "calls": len(self.replay.calls),
            "workers": len(self.replay.registry),
            "services": list(self.replay.services),
            "snapshots": len(snapshots),
            "discarded_snapshots": self.replay.discarded_snapshots,
            "mean_queue_length": (
                float(np.mean([s.queue_length for s in snapshots])) if len(snapshots) else 0.0
            ),
            "wait_times": self.compute_wait_stats(),
            "per_service": self.compute_service_stats(),
            "events": {
                "dispatched": scheduler.dispatched_count,
                "dropped": scheduler.dropped_count,
                "pending": scheduler.pending_count,
                "replay_end": scheduler.now,
            },
        }

    def save_report_json(self, report: Dict) -> str:
        """Save report as JSON file.

        Returns:
            Path to saved file
        """
        path = self.output_dir / f"report_{self.run_id}.json"

        def default_serializer(obj):
            if isinstance(obj, (np.integer, np.floating)):
                return obj.item()
            return str(obj)

        with open(path, "w") as f:
            json.dump(report, f, indent=2, default=default_serializer)

        return str(path)

    def _plot_path(self, name: str) -> Path:
        path = self.output_dir.parent / "plots" / f"{name}_{self.run_id}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def plot_wait_distribution(self) -> str:
        """Histogram of realized waits per service.

        Returns:
            Path to saved figure, empty if there is nothing to plot
        """
        if not len(self.replay.snapshots):
            return ""

        fig, ax = plt.subplots(figsize=(12, 6))
        for service in self.replay.services:
            waits = [s.realized_wait for s in self.replay.snapshots.for_service(service)]
            if waits:
                ax.hist(waits, bins=50, alpha=0.5, label=f"Service {service}")

        ax.set_xlabel("Realized wait (s)")
        ax.set_ylabel("Calls")
        ax.set_title("Realized Wait Distribution")
        ax.legend()
        ax.grid(True, alpha=0.3)

        path = self._plot_path("waits")
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close(fig)

        return str(path)

    def plot_queue_length(self) -> str:
        """Queue length seen by each arrival, per service.

        Returns:
            Path to saved figure, empty if there is nothing to plot
        """
        df = self.replay.snapshots.get_dataframe()
        if df.empty:
            return ""

        fig, ax = plt.subplots(figsize=(12, 6))
        for service, group in df.groupby("service"):
            ax.plot(group["arrival_time"], group["queue_length"], label=f"Service {service}", linewidth=1)

        ax.set_xlabel("Arrival time")
        ax.set_ylabel("Queue Length")
        ax.set_title("Queue Length at Arrival")
        ax.legend()
        ax.grid(True, alpha=0.3)

        path = self._plot_path("queue")
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close(fig)

        return str(path)
