"""Content-stable detection for the render host.

Instead of fixed sleeps, readiness is a single predicate: the layout height
must report the same value on several consecutive polls. A timeout is an
expected fallback, never an error.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadinessPolicy:
    """Bounds for waiting on rendered content.

    Attributes:
        load_timeout_ms: Bound on the native load event and font loading
        settle_delay_ms: Minimum wait before the first height probe
        poll_interval_ms: Delay between height probes
        stable_checks: Consecutive identical heights required
        max_wait_ms: Bound on the whole polling phase
    """

    load_timeout_ms: int = 3000
    settle_delay_ms: int = 700
    poll_interval_ms: int = 100
    stable_checks: int = 2
    max_wait_ms: int = 5000

    def __post_init__(self):
        """Validate bounds."""
        for name in ("load_timeout_ms", "settle_delay_ms", "poll_interval_ms", "max_wait_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.stable_checks < 1:
            raise ValueError(f"stable_checks must be >= 1, got {self.stable_checks}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadinessPolicy':
        """Create ReadinessPolicy from dictionary."""
        defaults = cls()
        return cls(
            load_timeout_ms=int(data.get('load_timeout_ms', defaults.load_timeout_ms)),
            settle_delay_ms=int(data.get('settle_delay_ms', defaults.settle_delay_ms)),
            poll_interval_ms=int(data.get('poll_interval_ms', defaults.poll_interval_ms)),
            stable_checks=int(data.get('stable_checks', defaults.stable_checks)),
            max_wait_ms=int(data.get('max_wait_ms', defaults.max_wait_ms)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'load_timeout_ms': self.load_timeout_ms,
            'settle_delay_ms': self.settle_delay_ms,
            'poll_interval_ms': self.poll_interval_ms,
            'stable_checks': self.stable_checks,
            'max_wait_ms': self.max_wait_ms,
        }


@dataclass
class ReadinessResult:
    """Outcome of a readiness wait.

    Attributes:
        height: Last height reported by the probe
        stable: True if the height settled before max_wait_ms
        polls: Number of probe calls
        waited_ms: Time spent waiting, settle delay included
    """

    height: int
    stable: bool
    polls: int
    waited_ms: float


def wait_until_stable(
    probe: Callable[[], int],
    policy: Optional[ReadinessPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> ReadinessResult:
    """Poll a height probe until it repeats stable_checks times in a row.

    Args:
        probe: Callable returning the current layout height in CSS pixels
        policy: Wait bounds (defaults to ReadinessPolicy())
        sleep: Sleep function in seconds (injectable for tests)
        clock: Monotonic clock in seconds (injectable for tests)

    Returns:
        ReadinessResult with the last observed height
    """
    policy = policy or ReadinessPolicy()
    start = clock()

    if policy.settle_delay_ms:
        sleep(policy.settle_delay_ms / 1000.0)

    deadline = start + (policy.settle_delay_ms + policy.max_wait_ms) / 1000.0
    last_height = probe()
    polls = 1
    streak = 1

    while streak < policy.stable_checks:
        if clock() >= deadline:
            waited_ms = (clock() - start) * 1000.0
            logger.warning(
                f"Content height did not settle within {policy.max_wait_ms} ms "
                f"(last height {last_height}px after {polls} polls), continuing"
            )
            return ReadinessResult(last_height, False, polls, waited_ms)

        sleep(policy.poll_interval_ms / 1000.0)
        height = probe()
        polls += 1
        if height == last_height:
            streak += 1
        else:
            logger.debug(f"Content height changed {last_height}px -> {height}px")
            streak = 1
            last_height = height

    waited_ms = (clock() - start) * 1000.0
    logger.debug(f"Content stable at {last_height}px after {polls} polls ({waited_ms:.0f} ms)")
    return ReadinessResult(last_height, True, polls, waited_ms)
