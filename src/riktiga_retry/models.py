"""Retry policy."""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetrySpec:
    """Bounded exponential backoff policy. Delays are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 0.5
    backoff_multiplier: float = 1.5
    max_delay: float | None = None
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")
        if self.backoff_multiplier <= 1:
            raise ValueError(
                f"backoff_multiplier must be > 1, got {self.backoff_multiplier}"
            )
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")

    def compute_delay(self, attempt: int) -> float:
        """Delay after the failed attempt with zero-based index attempt."""
        delay = self.initial_delay * (self.backoff_multiplier**attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        if self.jitter:
            return delay * (0.9 + random.random() * 0.2)
        return delay

    def total_wait(self) -> float:
        """Sum of every delay taken when all attempts fail."""
        return sum(self.compute_delay(i) for i in range(self.max_attempts - 1))
