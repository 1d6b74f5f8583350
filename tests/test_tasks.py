"""
Tests for the bounded background executor.
"""

import threading
import time

import pytest

from bookapi.exceptions import TaskRejectedError
from bookapi.services.tasks import BoundedExecutor


@pytest.fixture
def executor():
    executor = BoundedExecutor(max_workers=1, queue_capacity=1)
    yield executor
    executor.shutdown(wait=True)


def test_runs_task(executor):
    assert executor.submit(sum, [1, 2, 3]).result(timeout=5) == 6


def test_rejects_when_full(executor):
    release = threading.Event()

    running = executor.submit(release.wait, 5)
    queued = executor.submit(release.wait, 5)

    with pytest.raises(TaskRejectedError) as exc_info:
        executor.submit(release.wait, 5)
    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "Async task queue is full"

    release.set()
    assert running.result(timeout=5) is True
    assert queued.result(timeout=5) is True


def wait_until_idle(executor, timeout=5.0):
    # done callbacks free slots after result() has already returned
    deadline = time.monotonic() + timeout
    while executor.in_flight and time.monotonic() < deadline:
        time.sleep(0.01)
    assert executor.in_flight == 0


def test_capacity_is_released(executor):
    release = threading.Event()
    first = [executor.submit(release.wait, 5) for _ in range(executor.capacity)]
    release.set()
    for future in first:
        future.result(timeout=5)
    wait_until_idle(executor)

    # a full batch fits again once every slot is back
    second = [executor.submit(int, str(n)) for n in range(executor.capacity)]

    assert [future.result(timeout=5) for future in second] == [0, 1]
    wait_until_idle(executor)
    assert executor.stats() == {"max_workers": 1, "capacity": 2, "in_flight": 0}


def test_task_errors_surface_on_future(executor):
    future = executor.submit(int, "not a number")

    with pytest.raises(ValueError):
        future.result(timeout=5)
