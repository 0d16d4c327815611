"""安装阶段通知管线（Observer 模式）

每个安装任务在状态机迁移时调用 PhasePipeline.emit()，
通过 subscribe() 注册的钩子依次收到通知（进度展示、日志、指标等）。
钩子异常只记日志，不影响任务本身的成败。

用法:
    pipeline = PhasePipeline()
    pipeline.subscribe(my_hook)
    pipeline.emit(component, TaskPhase.DOWNLOADING)
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum

from edkit.core.component import ComponentId

logger = logging.getLogger(__name__)


class TaskPhase(Enum):
    """单个安装任务的状态机阶段"""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    WAITING = "waiting"
    EXTRACTING = "extracting"
    PLACING = "placing"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (TaskPhase.DONE, TaskPhase.FAILED)


class PhaseHook(ABC):
    """阶段观察者钩子基类，实现 on_phase 即可接入管线"""

    @abstractmethod
    def on_phase(self, component: ComponentId, phase: TaskPhase) -> None:
        """接收组件的阶段迁移"""


class LoggingPhaseHook(PhaseHook):
    """把阶段迁移写入 debug 日志"""

    def on_phase(self, component: ComponentId, phase: TaskPhase) -> None:
        logger.debug(
            "阶段迁移: %s -> %s", component, phase.value,
            extra={"component": str(component), "phase": phase.value},
        )


class PhasePipeline:
    """阶段通知管线，可在多个工作线程中并发 emit"""

    def __init__(self) -> None:
        self._hooks: list[PhaseHook] = []
        self._lock = threading.Lock()

    def subscribe(self, hook: PhaseHook) -> None:
        """注册观察者钩子"""
        with self._lock:
            self._hooks.append(hook)

    def emit(self, component: ComponentId, phase: TaskPhase) -> None:
        with self._lock:
            hooks = list(self._hooks)
        for hook in hooks:
            try:
                hook.on_phase(component, phase)
            except Exception:  # noqa: BLE001
                logger.exception("阶段钩子执行失败: %s", type(hook).__name__)
