import errno

import pytest

from filekv.core.errors import StorageIOError, classify
from filekv.core.throttling.backoff import RetryPolicy


def policy(max_attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(initial=0.001, maximum=0.002, jitter=0, max_attempts=max_attempts)


class Flaky:
    def __init__(self, failures: int, retryable: bool = True):
        self.failures = failures
        self.retryable = retryable
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise StorageIOError("too many open files", retryable=self.retryable)
        return "ok"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_transient_failure_is_retried():
    op = Flaky(failures=2)
    assert await policy().run(op) == "ok"
    assert op.calls == 3


@pytest.mark.ut
@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    op = Flaky(failures=10)
    with pytest.raises(StorageIOError):
        await policy(max_attempts=3).run(op)
    assert op.calls == 3


@pytest.mark.ut
@pytest.mark.asyncio
async def test_permanent_failure_is_not_retried():
    op = Flaky(failures=1, retryable=False)
    with pytest.raises(StorageIOError):
        await policy().run(op)
    assert op.calls == 1


@pytest.mark.ut
@pytest.mark.asyncio
async def test_other_exceptions_propagate():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await policy().run(op)
    assert calls == 1


@pytest.mark.ut
def test_classify():
    assert classify(OSError(errno.EMFILE, "Too many open files"))
    assert classify(OSError(errno.EAGAIN, "Try again"))
    assert not classify(OSError(errno.EACCES, "Permission denied"))
    assert not classify(OSError(errno.ENOSPC, "No space left on device"))
    assert not classify(OSError("no errno"))
