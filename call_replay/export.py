"""
Training dataset export of captured snapshots.
"""

import logging
from pathlib import Path
from typing import Iterable, Sequence, Tuple

import numpy as np
import pandas as pd

import config
from call_replay.errors import ReplayError
from call_replay.snapshot import Snapshot

logger = logging.getLogger(__name__)


def encode_service(service: str, services: Sequence[str]) -> int:
    """1-based position of ``service`` in ``services``, 0 if absent."""
    try:
        return list(services).index(service) + 1
    except ValueError:
        return 0


def snapshots_to_dataset(snapshots: Iterable[Snapshot], services: Sequence[str]) -> pd.DataFrame:
    """Tabulate snapshots with the ``config.DATASET_COLUMNS`` layout."""
    rows = []
    for snapshot in snapshots:
        # Dataset layout has exactly four other-queue columns
        others = (list(snapshot.other_queue_lengths) + [0] * 4)[:4]
        rows.append([
            encode_service(snapshot.service, services),
            snapshot.queue_length,
            *others,
            snapshot.hour,
            snapshot.day_of_week,
            snapshot.available_workers,
            snapshot.les_predictor,
            snapshot.avg_les_predictor,
            snapshot.realized_wait,
        ])
    return pd.DataFrame(rows, columns=config.DATASET_COLUMNS)


def split_dataset(
    df: pd.DataFrame,
    train_fraction: float = config.TRAINING_SPLIT,
    seed: int = config.SHUFFLE_SEED,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Shuffle rows with a fixed seed and split them.

    Returns:
        (training, test)
    """
    if not 0 <= train_fraction <= 1:
        raise ValueError(f"train_fraction must be within [0, 1], got {train_fraction}")

    order = np.random.RandomState(seed).permutation(len(df))
    shuffled = df.iloc[order].reset_index(drop=True)
    train_size = int(len(shuffled) * train_fraction)
    return shuffled.iloc[:train_size], shuffled.iloc[train_size:]


def export_datasets(
    snapshots: Sequence[Snapshot],
    services: Sequence[str],
    output_dir: str = config.DATASET_DIR,
    train_fraction: float = config.TRAINING_SPLIT,
    seed: int = config.SHUFFLE_SEED,
) -> Tuple[str, str]:
    """Write the shuffled training and test partitions as CSV.

    Args:
        snapshots: Captured snapshots
        services: In-scope services, defining the ``T`` encoding
        output_dir: Directory for both files
        train_fraction: Share of rows in the training file
        seed: Shuffle seed

    Returns:
        (training_path, test_path)
    """
    if len(snapshots) == 0:
        raise ReplayError("No snapshots captured, nothing to export")

    train, test = split_dataset(snapshots_to_dataset(snapshots, services), train_fraction, seed)

    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)
    train_path = output / config.TRAINING_FILE
    test_path = output / config.TEST_FILE
    train.to_csv(train_path, index=False, float_format="%.2f")
    test.to_csv(test_path, index=False, float_format="%.2f")

    logger.info("Exported %d training and %d test rows to %s", len(train), len(test), output)
    return str(train_path), str(test_path)
