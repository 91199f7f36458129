"""
Payment Simulation - Injectable Latency and Randomness

Payment back-ends are simulated: each one waits through one or more
verification/processing windows, then succeeds with a fixed probability.

Both sources of non-determinism live here so they can be controlled:
- rng: random.Random (seed it for reproducible runs)
- latency_scale: 1.0 = real delays, 0 = no waiting (tests, demos)
- forced_outcome: True/False pins success/decline, None = sample the rate
- cancel_event: setting it interrupts every in-flight wait
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from typing import Optional

import structlog

from order_system.config import Settings, get_settings

logger = structlog.get_logger(__name__)


@dataclass
class PaymentSimulation:
    """
    Latency + outcome source shared by the payment strategies.

    Thread-safe for concurrent attempts: waits block only the calling thread
    and cancellation is a threading.Event.
    """

    rng: random.Random = field(default_factory=random.Random)
    latency_scale: float = 1.0
    forced_outcome: Optional[bool] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self) -> None:
        if self.latency_scale < 0:
            raise ValueError(f"latency_scale must be >= 0, got {self.latency_scale}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> PaymentSimulation:
        """Build from ORDER_SYSTEM_PAYMENT_LATENCY_SCALE / ORDER_SYSTEM_RANDOM_SEED."""
        settings = settings or get_settings()
        return cls(
            rng=random.Random(settings.random_seed),
            latency_scale=settings.payment_latency_scale,
        )

    @classmethod
    def instant(cls, succeed: Optional[bool] = None, seed: Optional[int] = None) -> PaymentSimulation:
        """No waiting; optionally pin the outcome."""
        return cls(rng=random.Random(seed), latency_scale=0.0, forced_outcome=succeed)

    def pause(self, min_ms: int, max_ms: int) -> bool:
        """
        Wait a random duration in [min_ms, max_ms) milliseconds.

        Returns:
            True if the wait completed, False if it was cancelled.
            No other side effects either way.
        """
        delay_ms = min_ms + self.rng.randrange(max(max_ms - min_ms, 1))
        seconds = delay_ms / 1000 * self.latency_scale

        if self.cancel_event.is_set():
            return False
        if seconds <= 0:
            return True
        return not self.cancel_event.wait(seconds)

    def succeeds(self, success_rate: int) -> bool:
        """Independent draw per attempt: True with success_rate percent probability."""
        if self.forced_outcome is not None:
            return self.forced_outcome
        return self.rng.randrange(100) < success_rate

    def cancel(self) -> None:
        """Interrupt every in-flight and future wait until reset()."""
        logger.warning("payment_simulation_cancelled")
        self.cancel_event.set()

    def reset(self) -> None:
        self.cancel_event.clear()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
