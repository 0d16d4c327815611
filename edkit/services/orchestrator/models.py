"""安装编排数据模型

- InstallRequest: 一次安装请求
- InstallTask: 单个待安装组件
- TaskResult: 单个组件的结果
- InstallReport: 一次运行的汇总
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from edkit.core.component import ComponentId
from edkit.core.exceptions import InstallError, OrchestrationError
from edkit.core.models import Module
from edkit.core.version import Version

DONE = "done"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class InstallRequest:
    """安装请求 - modules 为空表示只装编辑器"""

    version: Version
    modules: list[str] = field(default_factory=list)
    destination: Path | None = None
    install_sync: bool = False


@dataclass
class InstallTask:
    """单个待安装组件，自带版本和安装目标

    parent 为本次运行中需要先完成的最近同步祖先（通常是编辑器），
    为 None 时不必等待。
    """

    module: Module
    version: Version
    destination: Path
    parent: ComponentId | None = None

    @property
    def component(self) -> ComponentId:
        return self.module.id


@dataclass
class TaskResult:
    """单个组件的安装结果"""

    component: ComponentId
    status: str = DONE  # done / failed / skipped
    message: str = ""
    duration: float = 0.0
    error: BaseException | None = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.status != FAILED


@dataclass
class InstallReport:
    """安装运行报告"""

    version: Version
    destination: Path
    results: list[TaskResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if r.status == FAILED]

    @property
    def installed(self) -> list[ComponentId]:
        return [r.component for r in self.results if r.status == DONE]

    def raise_for_failures(self) -> None:
        """存在失败任务时抛出汇总的 OrchestrationError"""
        if self.success:
            return
        raise OrchestrationError({
            str(r.component): r.error or InstallError(r.message)
            for r in self.failures
        })

    def result_for(self, component: ComponentId) -> TaskResult | None:
        for r in self.results:
            if r.component == component:
                return r
        return None
