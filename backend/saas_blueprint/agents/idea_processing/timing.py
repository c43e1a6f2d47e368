"""
Timing Utilities for Latency Instrumentation

Logs execution times of the pipeline stages and completion calls.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)


def log_timing(node_name: str, action: str, duration_ms: Optional[float] = None):
    """Log a timing event in standard format."""
    if duration_ms is not None:
        logger.info("[TIMING] %s: %s duration=%.0fms", node_name, action, duration_ms)
    else:
        logger.info("[TIMING] %s: %s", node_name, action)


class StepTimer:
    """
    Times named steps within one pipeline run.

    Usage:
        timer = StepTimer("pipeline")
        async with timer.async_step("business_analysis"):
            await client.complete(...)
        timer.summary()
    """

    def __init__(self, node_name: str):
        self.node_name = node_name
        self.steps: dict[str, int] = {}
        self.start_time = time.perf_counter()

    @asynccontextmanager
    async def async_step(self, step_name: str):
        """Time a single async step."""
        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self.steps[step_name] = int(duration_ms)
            log_timing(self.node_name, step_name, duration_ms)

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.start_time) * 1000)

    def summary(self) -> int:
        """Log and return the total elapsed milliseconds."""
        total_ms = self.elapsed_ms()
        log_timing(self.node_name, "TOTAL", total_ms)
        return total_ms
