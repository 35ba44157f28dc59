"""
Tests for the conflict retry helpers
"""

import pytest
from unittest.mock import Mock

from policy_bootstrap.libs.core.exceptions import ConflictError, StoreError
from policy_bootstrap.libs.core.retry import RetryPolicy, optimistic_update, retry_on_conflict


class TestRetryPolicy:
    """Backoff schedule"""

    def test_default_policy_bounds(self):
        policy = RetryPolicy()
        assert policy.steps == 5
        assert policy.duration == 0.01
        assert policy.factor == 1.0
        assert policy.jitter == 0.1

    def test_delays_between_attempts(self):
        delays = list(RetryPolicy(steps=4, duration=0.5, factor=2.0, jitter=0.0).delays())
        assert delays == [0.5, 1.0, 2.0]

    def test_jitter_stays_within_fraction(self):
        for delay in RetryPolicy(steps=20, duration=1.0, factor=1.0, jitter=0.1).delays():
            assert 1.0 <= delay <= 1.1

    def test_no_retry_has_no_delays(self):
        policy = RetryPolicy.no_retry()
        assert policy.steps == 1
        assert list(policy.delays()) == []


class TestRetryOnConflict:
    """Retrying a mutation that loses optimistic-concurrency races"""

    def test_succeeds_after_conflicts(self):
        fn = Mock(side_effect=[ConflictError("stale"), ConflictError("stale"), "done"])
        sleep = Mock()

        result = retry_on_conflict(RetryPolicy(steps=5, jitter=0.0), fn, sleep=sleep)

        assert result == "done"
        assert fn.call_count == 3
        assert sleep.call_count == 2

    def test_gives_up_after_steps(self):
        fn = Mock(side_effect=ConflictError("stale"))
        sleep = Mock()

        with pytest.raises(ConflictError):
            retry_on_conflict(RetryPolicy(steps=3, jitter=0.0), fn, sleep=sleep)

        assert fn.call_count == 3
        assert sleep.call_count == 2

    def test_other_errors_are_not_retried(self):
        fn = Mock(side_effect=StoreError("boom", status=500))
        sleep = Mock()

        with pytest.raises(StoreError):
            retry_on_conflict(RetryPolicy(), fn, sleep=sleep)

        assert fn.call_count == 1
        sleep.assert_not_called()


class TestOptimisticUpdate:
    """Read-mutate-write cycles"""

    def test_no_write_when_mutation_reports_nothing(self):
        write = Mock()

        result = optimistic_update(lambda: {"v": 1}, lambda current: None, write)

        assert result is None
        write.assert_not_called()

    def test_rereads_after_conflict(self):
        reads = iter([{"v": 1}, {"v": 2}])
        write = Mock(side_effect=[ConflictError("stale"), "written"])
        mutated = []

        def mutate(current):
            mutated.append(current["v"])
            return current

        result = optimistic_update(lambda: next(reads), mutate, write,
                                   RetryPolicy(steps=2, jitter=0.0), sleep=Mock())

        assert result == "written"
        assert mutated == [1, 2]
        write.assert_called_with({"v": 2})

    def test_single_attempt_policy_raises_conflict(self):
        write = Mock(side_effect=ConflictError("stale"))

        with pytest.raises(ConflictError):
            optimistic_update(lambda: {}, lambda current: current, write, RetryPolicy.no_retry())

        assert write.call_count == 1
