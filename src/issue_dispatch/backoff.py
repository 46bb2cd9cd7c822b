"""
Retry delay for consecutive polling failures.

Failures are counted from 1: the first failure waits `base`, each further
failure multiplies by `multiplier`, never exceeding `cap`. Seconds.
"""

from pydantic import BaseModel

DEFAULT_BASE = 2.0
DEFAULT_CAP = 60.0
DEFAULT_MULTIPLIER = 2.0


def next_delay(
    failure_count: int,
    base: float = DEFAULT_BASE,
    cap: float = DEFAULT_CAP,
    multiplier: float = DEFAULT_MULTIPLIER,
) -> float:
    exponent = max(failure_count, 1) - 1
    # cap before multiplying out huge exponents
    delay = base
    for _ in range(exponent):
        delay *= multiplier
        if delay >= cap:
            return cap
    return min(delay, cap)


class BackoffPolicy(BaseModel):
    model_config = {"frozen": True}

    base: float = DEFAULT_BASE
    cap: float = DEFAULT_CAP
    multiplier: float = DEFAULT_MULTIPLIER

    def delay(self, failure_count: int) -> float:
        return next_delay(failure_count, self.base, self.cap, self.multiplier)
