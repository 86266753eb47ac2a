import pytest

from stamper.retry import RetryPolicy


class Flaky:
    def __init__(self, failures, exc=RuntimeError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


def test_linear_backoff_schedule():
    sleeps = []
    func = Flaky(failures=2)

    assert RetryPolicy(sleep=sleeps.append).call(func) == "ok"
    assert func.calls == 3
    assert sleeps == [1.0, 2.0]


def test_raises_last_error_after_budget():
    sleeps = []
    func = Flaky(failures=5)

    with pytest.raises(RuntimeError, match="failure 3"):
        RetryPolicy(retries=2, backoff_step=0.5, sleep=sleeps.append).call(func)
    assert sleeps == [0.5, 1.0]


def test_unlisted_exceptions_are_not_retried():
    func = Flaky(failures=1, exc=KeyError)

    with pytest.raises(KeyError):
        RetryPolicy(sleep=lambda s: None).call(func, exceptions=ValueError)
    assert func.calls == 1


def test_zero_retries_means_single_attempt():
    sleeps = []
    func = Flaky(failures=1)

    with pytest.raises(RuntimeError, match="failure 1"):
        RetryPolicy(retries=0, sleep=sleeps.append).call(func)
    assert func.calls == 1
    assert sleeps == []
