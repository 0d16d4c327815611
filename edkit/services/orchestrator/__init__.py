"""安装编排

- barrier.py: 任务屏障（含编辑器屏障）
- models.py: 请求 / 任务 / 结果数据模型
- orchestrator.py: 计划展开与并行执行
"""

from edkit.services.orchestrator.barrier import TaskBarrier
from edkit.services.orchestrator.models import (
    InstallReport,
    InstallRequest,
    InstallTask,
    TaskResult,
)
from edkit.services.orchestrator.orchestrator import InstallPlan, Orchestrator

__all__ = [
    "TaskBarrier",
    "InstallPlan",
    "InstallReport",
    "InstallRequest",
    "InstallTask",
    "Orchestrator",
    "TaskResult",
]
