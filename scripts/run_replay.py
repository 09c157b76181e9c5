"""
Main orchestration script for the call-center replay.
Loads the call history, replays it and exports the snapshot datasets.
"""

from pathlib import Path
import argparse
import logging
import sys
import time

# Ensure root directory is in path for config import
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import config
from call_replay.errors import EmptyReplayError
from call_replay.export import export_datasets
from call_replay.ingest import prepare_calls, read_activities, read_calls, select_top_services
from call_replay.metrics import ReplayReport
from call_replay.replay import ReplayOrchestrator


def run_replay(calls_file: str, activities_file: str, run_id: str = "replay") -> dict:
    """Run a full replay and export its datasets.

    Args:
        calls_file: Call history CSV
        activities_file: Worker activity CSV
        run_id: Identifier used in report filenames

    Returns:
        Report dictionary
    """
    started = time.perf_counter()

    print("Loading historical data...")
    all_calls = read_calls(calls_file)
    activities = read_activities(activities_file) if Path(activities_file).exists() else []

    services = select_top_services(all_calls)
    calls = prepare_calls(all_calls, services)
    if not calls:
        raise EmptyReplayError(f"No valid calls for services {services} in {calls_file}")

    print(f"  Services: {services}")
    print(f"  Valid calls: {len(calls)}")
    print(f"  Worker activities: {len(activities)}")
    print(f"  Period: {calls[0].received} to {calls[-1].received}")

    replay = ReplayOrchestrator(calls, activities=activities, services=services)
    for service in services:
        print(f"  Service {service}: {len(replay.registry.qualified(service))} qualified workers")

    print("Replaying events...")
    replay.run(require_calls=True)
    print(f"  Snapshots captured: {len(replay.snapshots)} ({replay.discarded_snapshots} discarded)")

    train_path, test_path = export_datasets(replay.snapshots.snapshots, services)

    report_builder = ReplayReport(replay, output_dir=config.REPORT_DIR, run_id=run_id)
    report = report_builder.summarize()
    report_builder.save_report_json(report)
    report_builder.plot_wait_distribution()
    report_builder.plot_queue_length()

    elapsed = time.perf_counter() - started

    print(f"\n{'=' * 50}")
    print(f"SUMMARY")
    print(f"{'=' * 50}")
    wait = report["wait_times"]
    print(f"Snapshots: {report['snapshots']}")
    print(f"Mean wait: {wait['mean_wait']:.2f} s ({wait['mean_wait'] / 60:.2f} min)")
    print(f"Mean queue length: {report['mean_queue_length']:.2f}")
    for service, stats in report["per_service"].items():
        print(f"  Service {service}: {stats['samples']} samples, {stats['mean_wait']:.2f} s mean wait")
    print(f"\nOutputs:")
    print(f"  Training set: {train_path}")
    print(f"  Test set:     {test_path}")
    print(f"  Reports:      {config.REPORT_DIR}")
    print(f"Replay finished in {elapsed:.2f} seconds")
    print(f"{'=' * 50}")

    return report


def main():
    """Entry point for the replay."""
    parser = argparse.ArgumentParser(description="Replay a contact-center call history")
    parser.add_argument("--calls", default=config.CALLS_FILE, help="call history CSV")
    parser.add_argument("--activities", default=config.ACTIVITIES_FILE, help="worker activity CSV")
    parser.add_argument("--run-id", default="replay", help="identifier for report files")
    parser.add_argument("--verbose", action="store_true", help="log every routing decision")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Call-Center Replay")
    print(f"=" * 50)
    run_replay(args.calls, args.activities, run_id=args.run_id)


if __name__ == "__main__":
    main()
