"""任务屏障测试"""

from __future__ import annotations

import threading

import pytest

from edkit.services.orchestrator import TaskBarrier


class TestTaskBarrier:
    def test_ok_releases_waiters(self) -> None:
        barrier = TaskBarrier()
        results: list[object] = []

        def waiter() -> None:
            results.append(barrier.wait(timeout=5))

        threads = [threading.Thread(target=waiter) for _ in range(3)]
        for t in threads:
            t.start()
        barrier.set_ok()
        for t in threads:
            t.join()
        assert results == [None, None, None]
        assert barrier.resolved

    def test_failure_returned_to_every_waiter(self) -> None:
        barrier = TaskBarrier()
        error = RuntimeError("editor broke")
        barrier.set_failed(error)
        assert barrier.wait() is error
        assert barrier.wait() is error

    def test_single_write(self) -> None:
        barrier = TaskBarrier()
        barrier.set_ok()
        with pytest.raises(RuntimeError, match="只能写入一次"):
            barrier.set_failed(RuntimeError("late"))

    def test_timeout(self) -> None:
        with pytest.raises(TimeoutError):
            TaskBarrier().wait(timeout=0.01)
