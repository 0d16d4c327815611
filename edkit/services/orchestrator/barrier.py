"""任务屏障

每个任务写入一次终态（成功或失败），依赖它的任务阻塞等待。
编辑器任务的屏障即编辑器屏障。只属于一次安装运行，不是进程级全局状态。
"""

from __future__ import annotations

import threading


class TaskBarrier:
    """单写多读的一次性条件"""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._done = False
        self._error: BaseException | None = None

    @property
    def resolved(self) -> bool:
        with self._cond:
            return self._done

    def set_ok(self) -> None:
        self._resolve(None)

    def set_failed(self, error: BaseException) -> None:
        self._resolve(error)

    def _resolve(self, error: BaseException | None) -> None:
        with self._cond:
            if self._done:
                raise RuntimeError("屏障只能写入一次")
            self._done = True
            self._error = error
            self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> BaseException | None:
        """阻塞到终态，返回被依赖任务的失败原因（成功为 None）

        异常:
            TimeoutError: 超时仍未得到终态
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._done, timeout=timeout):
                raise TimeoutError("等待依赖任务结果超时")
            return self._error
