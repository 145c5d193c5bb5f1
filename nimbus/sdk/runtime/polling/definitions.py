"""Wait policies for long-running operation polling.

This module defines the policies that decide how long the poller sleeps
between two status checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ...config import PollingSettings


class WaitPolicy(Protocol):
    """Maps (attempt, server hint) to a delay in seconds."""

    def __call__(self, attempt: int, retry_after: float | None = None) -> float: ...


@dataclass(frozen=True)
class ExponentialBackoff:
    """Exponential backoff seeded at ``initial`` and capped at ``maximum``.

    A server-supplied Retry-After always overrides the computed delay.

    Attributes:
        initial: Delay before the first status check (seconds)
        maximum: Upper bound for computed delays (seconds)
        multiplier: Growth factor per attempt

    Examples:
        >>> policy = ExponentialBackoff(initial=1.0, maximum=8.0)
        >>> [policy(n) for n in range(5)]
        [1.0, 2.0, 4.0, 8.0, 8.0]
        >>> policy(0, retry_after=15.0)
        15.0
    """

    initial: float = 1.0
    maximum: float = 30.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.initial < 0:
            raise ValueError("initial must be >= 0")
        if self.maximum < self.initial:
            raise ValueError("maximum must be >= initial")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")

    @classmethod
    def from_settings(cls, settings: PollingSettings) -> ExponentialBackoff:
        return cls(
            initial=settings.initial_interval_seconds,
            maximum=settings.max_interval_seconds,
            multiplier=settings.multiplier,
        )

    def __call__(self, attempt: int, retry_after: float | None = None) -> float:
        if retry_after is not None:
            return max(retry_after, 0.0)
        # Cap the exponent so large attempt counts cannot overflow a float
        exponent = min(max(attempt, 0), 64)
        return min(self.initial * (self.multiplier**exponent), self.maximum)


@dataclass(frozen=True)
class FixedInterval:
    """Constant delay between status checks, overridden by Retry-After."""

    seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError("seconds must be >= 0")

    def __call__(self, attempt: int, retry_after: float | None = None) -> float:
        if retry_after is not None:
            return max(retry_after, 0.0)
        return self.seconds
