"""
Wait-time predictors attached to every snapshot.

LES is the mean of a service's recent waits. Avg-LES is the mean of all
services' LES values weighted by how many waits each has seen. Both are
inflated by the current load on the service.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import config
from call_replay.estimator import RollingStatistics


@dataclass(frozen=True)
class Predictors:
    les: float
    avg_les: float


class PredictorCalculator:
    """Compute LES and Avg-LES from rolling statistics and current load."""

    def __init__(
        self,
        statistics: RollingStatistics,
        services: Optional[Iterable[str]] = None,
        load_correction: float = config.LOAD_CORRECTION_FACTOR,
        no_worker_penalty: float = config.NO_WORKER_PENALTY,
    ):
        """Initialize calculator.

        Args:
            statistics: Rolling statistics store (read only)
            services: Services entering Avg-LES; all services known to
                ``statistics`` when omitted
            load_correction: Share of the load term added to both predictors
            no_worker_penalty: Fallback multiplier when no worker is idle
        """
        self.statistics = statistics
        self.services = list(services) if services is not None else None
        self.load_correction = load_correction
        self.no_worker_penalty = no_worker_penalty

    def fallback_wait(self, service: str, queue_length: int, idle_workers: int) -> float:
        """Wait estimate for a service with no observed waits."""
        estimate = queue_length / max(1, idle_workers) * self.statistics.average_service_time(service)
        if idle_workers <= 0:
            estimate *= self.no_worker_penalty
        return estimate

    def les(self, service: str, queue_length: int, idle_workers: int) -> float:
        """Uncorrected per-service predictor."""
        window = self.statistics.wait_window(service)
        if window.is_empty():
            return self.fallback_wait(service, queue_length, idle_workers)
        return window.mean()

    def avg_les(self, fallback: float) -> float:
        """Uncorrected cross-service predictor.

        Args:
            fallback: Returned when no service has any observed wait
        """
        services = self.services if self.services is not None else self.statistics.services
        total = 0.0
        total_weight = 0.0
        for service in services:
            window = self.statistics.wait_window(service)
            if window.is_empty():
                continue
            weight = max(1.0, float(len(window)))
            total += window.mean() * weight
            total_weight += weight

        if total_weight == 0:
            return fallback
        return total / total_weight

    def load_term(self, service: str, queue_length: int, idle_workers: int) -> float:
        return (
            queue_length / max(1, idle_workers)
            * self.statistics.average_service_time(service)
            * self.load_correction
        )

    def compute(self, service: str, queue_length: int, idle_workers: int) -> Predictors:
        """Both predictors for a call arriving at ``service``.

        Args:
            service: Service of the arriving call
            queue_length: Calls waiting for the service before the arrival
            idle_workers: Idle workers qualified for the service

        Returns:
            Corrected predictors, floored at zero
        """
        les = self.les(service, queue_length, idle_workers)
        avg_les = self.avg_les(fallback=les)

        correction = self.load_term(service, queue_length, idle_workers)
        return Predictors(
            les=max(0.0, les + correction),
            avg_les=max(0.0, avg_les + correction),
        )
