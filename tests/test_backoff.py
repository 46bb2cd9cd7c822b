"""Backoff delays."""

from issue_dispatch.backoff import BackoffPolicy, next_delay


def test_default_sequence_is_capped():
    assert [next_delay(n) for n in range(1, 7)] == [2.0, 4.0, 8.0, 16.0, 32.0, 60.0]


def test_never_exceeds_cap_and_never_decreases():
    delays = [next_delay(n, base=1.5, cap=45.0, multiplier=3.0) for n in range(1, 200)]
    assert max(delays) == 45.0
    assert delays == sorted(delays)


def test_counts_below_one_use_base():
    assert next_delay(0) == 2.0
    assert next_delay(-3) == 2.0


def test_base_above_cap_is_clamped():
    assert next_delay(1, base=90.0, cap=60.0) == 60.0


def test_policy_delegates():
    policy = BackoffPolicy(base=0.5, cap=3.0, multiplier=3.0)
    assert [policy.delay(n) for n in (1, 2, 3)] == [0.5, 1.5, 3.0]
