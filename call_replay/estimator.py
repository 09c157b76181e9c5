"""
Rolling statistics of recent wait and service times per service.
"""

from collections import deque
from typing import Dict, Iterable, List
import numpy as np
import config
from call_replay.records import CallRecord


class RollingWindow:
    """Fixed-capacity window; the oldest observation is dropped once full."""

    def __init__(self, window_size: int = config.ROLLING_WINDOW_SIZE):
        """Initialize rolling window.

        Args:
            window_size: Maximum number of observations kept
        """
        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        self.window_size = window_size
        self.data_window = deque(maxlen=window_size)

    def add(self, value: float):
        self.data_window.append(value)

    def mean(self) -> float:
        """Mean of the window, 0.0 when empty."""
        if not self.data_window:
            return 0.0
        return float(np.mean(self.data_window))

    def is_empty(self) -> bool:
        return not self.data_window

    def values(self) -> List[float]:
        return list(self.data_window)

    def __len__(self) -> int:
        return len(self.data_window)


class RollingStatistics:
    """Per-service wait-time and service-time windows."""

    def __init__(
        self,
        services: Iterable[str] = (),
        window_size: int = config.ROLLING_WINDOW_SIZE,
        max_wait: float = config.MAX_WAIT_TIME,
        max_service: float = config.MAX_SERVICE_TIME,
        default_service_times: Dict[str, float] = config.DEFAULT_SERVICE_TIMES,
        default_service_time: float = config.DEFAULT_SERVICE_TIME,
    ):
        """Initialize statistics store.

        Args:
            services: Services to create windows for up front
            window_size: Capacity of every window
            max_wait: Waits at or above this are not recorded
            max_service: Service times at or above this are not recorded
            default_service_times: Mean service time by service category
            default_service_time: Mean service time for any other service
        """
        self.window_size = window_size
        self.max_wait = max_wait
        self.max_service = max_service
        self.default_service_times = {k.lower(): v for k, v in default_service_times.items()}
        self.default_service_time = default_service_time

        self._wait: Dict[str, RollingWindow] = {}
        self._service: Dict[str, RollingWindow] = {}
        for service in services:
            self.wait_window(service)
            self.service_window(service)

    def wait_window(self, service: str) -> RollingWindow:
        if service not in self._wait:
            self._wait[service] = RollingWindow(self.window_size)
        return self._wait[service]

    def service_window(self, service: str) -> RollingWindow:
        if service not in self._service:
            self._service[service] = RollingWindow(self.window_size)
        return self._service[service]

    @property
    def services(self) -> List[str]:
        return list(self._wait)

    def record_wait(self, service: str, wait: float) -> bool:
        """Add a wait observation if it is plausible.

        Returns:
            True if recorded
        """
        if 0 <= wait < self.max_wait:
            self.wait_window(service).add(wait)
            return True
        return False

    def record_service_time(self, service: str, duration: float) -> bool:
        """Add a service-time observation if it is plausible.

        Returns:
            True if recorded
        """
        if 0 < duration < self.max_service:
            self.service_window(service).add(duration)
            return True
        return False

    def record_completion(self, call: CallRecord):
        """Record the observed wait and service time of a finished call."""
        wait = call.wait_seconds
        if wait is not None:
            self.record_wait(call.service, wait)

        duration = call.service_seconds
        if duration is not None:
            self.record_service_time(call.service, duration)

    def average_wait(self, service: str) -> float:
        return self.wait_window(service).mean()

    def default_service_time_for(self, service: str) -> float:
        return self.default_service_times.get(service.lower(), self.default_service_time)

    def average_service_time(self, service: str) -> float:
        """Mean observed service time, or the category default before any is seen."""
        window = self.service_window(service)
        if window.is_empty():
            return self.default_service_time_for(service)
        return window.mean()
