"""安装编排器

一次 install 运行:
  1. 加版本级进程锁 locks_dir/<version>.lock
  2. 获取目录，构建安装图，按已安装记录标记状态
  3. 把请求展开为任务集合（依赖链 + 可选同步子模块 + 编辑器）
  4. 线程池并行执行；每个任务在 install 步骤前等待最近的待装同步祖先（至少是编辑器）
  5. 结束后由编排线程一次性写入 modules.json，被中断时也记录已完成的组件

祖先失败时，依赖它的任务直接以 DependencyFailedError 结束，不再解包，
因此父模块的失败清理不会与子模块的安装交错。
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from edkit.core.catalog import ModuleCatalog
from edkit.core.component import EDITOR, ComponentId, Platform
from edkit.core.exceptions import (
    DependencyFailedError,
    EdkitError,
    InstallError,
    TaskCancelledError,
    UnsupportedModuleError,
)
from edkit.core.graph import InstallGraph, InstallStatus
from edkit.core.installation import Installation
from edkit.core.loader.loader import Loader, ProgressHandler
from edkit.core.loader.lock import FileLock
from edkit.core.models import Manifest, Module
from edkit.core.pipeline import PhasePipeline, TaskPhase
from edkit.installer import Installer
from edkit.services.orchestrator.barrier import TaskBarrier
from edkit.services.orchestrator.models import (
    DONE,
    FAILED,
    SKIPPED,
    InstallReport,
    InstallRequest,
    InstallTask,
    TaskResult,
)
from edkit.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

ProgressFactory = Callable[[Module], ProgressHandler]


@dataclass
class InstallPlan:
    """展开后的安装计划"""

    manifest: Manifest
    graph: InstallGraph
    tasks: list[InstallTask] = field(default_factory=list)
    installed: set[ComponentId] = field(default_factory=set)

    @property
    def components(self) -> list[ComponentId]:
        return [task.component for task in self.tasks]


class Orchestrator:
    """并行安装编辑器与模块

    Args:
        catalog: 模块目录服务
        loader: 安装包下载器
        install_dir: 默认安装根目录，目标为 install_dir/<version>
        locks_dir: 版本级进程锁目录
        platform: 目标平台
        max_workers: 线程池大小
        prefetch: 为 True 时模块任务在等待编辑器屏障前就开始下载
        executor: 外部命令执行器，测试时注入
        pipeline: 阶段通知管线
        progress_factory: 为每个模块创建下载进度观察者
    """

    def __init__(
        self,
        catalog: ModuleCatalog,
        loader: Loader,
        *,
        install_dir: str | Path,
        locks_dir: str | Path,
        platform: Platform | None = None,
        max_workers: int = 8,
        prefetch: bool = False,
        executor: CommandExecutor | None = None,
        pipeline: PhasePipeline | None = None,
        progress_factory: ProgressFactory | None = None,
    ) -> None:
        self.catalog = catalog
        self.loader = loader
        self.install_dir = Path(install_dir)
        self.locks_dir = Path(locks_dir)
        self.platform = platform or Platform.current()
        self.max_workers = max(1, max_workers)
        self.prefetch = prefetch
        self.executor = executor
        self.pipeline = pipeline or PhasePipeline()
        self.progress_factory = progress_factory
        self._cancel = threading.Event()

    # ---- 对外接口 ----

    def cancel(self) -> None:
        """请求取消；正在运行的外部工具会跑完，之后的任务按失败处理"""
        logger.warning("收到取消请求")
        self._cancel.set()

    def destination_for(self, request: InstallRequest) -> Path:
        if request.destination is not None:
            return Path(request.destination).expanduser()
        return self.install_dir / str(request.version)

    def install(
        self, request: InstallRequest, manifest: Manifest | None = None,
    ) -> InstallReport:
        """执行安装；任一任务失败时抛 OrchestrationError（记录仍会更新）"""
        report = self.run(request, manifest)
        report.raise_for_failures()
        return report

    def run(
        self, request: InstallRequest, manifest: Manifest | None = None,
    ) -> InstallReport:
        """执行安装并返回报告，任务失败不抛异常"""
        self._cancel.clear()
        destination = self.destination_for(request)
        if destination.exists() and not destination.is_dir():
            raise InstallError(f"安装目标不是目录: {destination}")

        with FileLock(self.locks_dir / f"{request.version}.lock"):
            if manifest is None:
                manifest = self.catalog.fetch(request.version)
            installation = Installation(destination, request.version)
            plan = self.plan(manifest, request, installation)
            report = InstallReport(version=request.version, destination=destination)
            report.results.extend(
                TaskResult(component=cid, status=SKIPPED, message="已安装")
                for cid in plan.graph.components()
                if plan.graph.status(cid) is InstallStatus.INSTALLED
            )
            if not plan.tasks:
                logger.info("%s 的请求组件均已安装", request.version)
                return report

            logger.info(
                "安装 %s -> %s: %s", request.version, destination,
                ", ".join(str(c) for c in plan.components),
            )
            results: list[TaskResult] = []
            try:
                self._execute(plan, results)
            finally:
                # 中断时也记录已完成的组件
                report.results.extend(results)
                completed = {r.component for r in results if r.status == DONE}
                if completed:
                    installed = plan.installed | completed
                    installation.write_modules(manifest.records(installed))
        for failure in report.failures:
            logger.error("安装失败: %s: %s", failure.component, failure.message)
        return report

    # ---- 计划 ----

    def plan(
        self,
        manifest: Manifest,
        request: InstallRequest,
        installation: Installation,
    ) -> InstallPlan:
        """展开请求，得到按依赖顺序排列的待安装任务"""
        graph = InstallGraph.build(manifest)
        installed: set[ComponentId] = set()
        if installation.exists():
            installed = installation.installed_modules()
            graph.mark_installed(installed)
        else:
            graph.mark_all_missing()

        wanted = self.expand(graph, manifest, request)
        graph.keep(wanted)

        tasks: list[InstallTask] = []
        pending: set[ComponentId] = set()
        for node in graph.topological_order():
            if node.status is InstallStatus.INSTALLED:
                continue
            cid = node.component
            module = manifest.get(cid)
            if module is None:
                raise UnsupportedModuleError(
                    f"版本 {manifest.version} 的目录中没有 {cid}",
                )
            # 依赖链由近到远，取第一个同样待装的祖先
            parent = next(
                (dep for dep, _ in graph.dependencies_of(cid) if dep in pending), None,
            )
            tasks.append(InstallTask(
                module=module, version=manifest.version,
                destination=installation.path, parent=parent,
            ))
            pending.add(cid)
        return InstallPlan(manifest=manifest, graph=graph, tasks=tasks, installed=installed)

    @staticmethod
    def expand(
        graph: InstallGraph, manifest: Manifest, request: InstallRequest,
    ) -> set[ComponentId]:
        """请求 → 组件集合：依赖链、可选同步子模块，总是包含编辑器"""
        wanted: set[ComponentId] = {EDITOR}
        for text in request.modules:
            cid = manifest.resolve(text)
            if cid is None or cid not in graph:
                raise UnsupportedModuleError(
                    f"版本 {manifest.version} 不支持模块: {text}",
                )
            wanted.add(cid)
            wanted.update(dep for dep, _ in graph.dependencies_of(cid))
            if request.install_sync:
                wanted.update(sub for sub, _ in graph.submodules_of(cid))
        return wanted

    # ---- 执行 ----

    def _execute(self, plan: InstallPlan, results: list[TaskResult]) -> None:
        """并行执行全部任务，结果按任务顺序追加到 results"""
        barriers = {task.component: TaskBarrier() for task in plan.tasks}
        for task in plan.tasks:
            self.pipeline.emit(task.component, TaskPhase.PENDING)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self._run_task, task, barriers) for task in plan.tasks]
            try:
                for task, future in zip(plan.tasks, futures):
                    result = future.result()
                    logger.info(
                        "完成: %s -> %s (%.1f秒)",
                        task.component, result.status, result.duration,
                    )
                    results.append(result)
            except KeyboardInterrupt:
                self.cancel()
                wait(futures)
                results.extend(
                    future.result() for future in futures[len(results):]
                    if future.exception() is None
                )
                raise

    def _run_task(
        self, task: InstallTask, barriers: dict[ComponentId, TaskBarrier],
    ) -> TaskResult:
        cid = task.component
        barrier = barriers[cid]
        start = time.monotonic()
        try:
            if not self.prefetch:
                self._await_parent(task, barriers)
            self._check_cancel(cid)

            self._emit(cid, TaskPhase.DOWNLOADING)
            progress = self.progress_factory(task.module) if self.progress_factory else None
            artifact = self.loader.download(task.module, task.version, progress)
            self._emit(cid, TaskPhase.VERIFYING)

            if self.prefetch:
                self._await_parent(task, barriers)
            self._check_cancel(cid)

            installer = Installer(
                task.module, artifact, task.destination, self.platform,
                executor=self.executor,
            )
            installer.run(
                on_phase=lambda phase: self._emit(cid, phase),
                should_stop=self._cancel.is_set,
            )
        except Exception as e:  # noqa: BLE001
            barrier.set_failed(e)
            if isinstance(e, EdkitError):
                logger.error("[%s] %s", cid, e, extra={"component": str(cid)})
            else:
                logger.exception("[%s] 安装时出现未预期的错误", cid)
            self._emit(cid, TaskPhase.FAILED)
            return TaskResult(
                component=cid, status=FAILED, message=str(e),
                duration=time.monotonic() - start, error=e,
            )
        except BaseException as e:
            # 中断类异常: 先释放等待者再继续抛出
            barrier.set_failed(e)
            raise

        barrier.set_ok()
        self._emit(cid, TaskPhase.DONE)
        return TaskResult(
            component=cid, status=DONE, message="安装完成",
            duration=time.monotonic() - start,
        )

    def _await_parent(
        self, task: InstallTask, barriers: dict[ComponentId, TaskBarrier],
    ) -> None:
        """等待最近的待装同步祖先到达终态；编辑器总在这条链的末端"""
        if task.parent is None:
            return
        self._emit(task.component, TaskPhase.WAITING)
        error = barriers[task.parent].wait()
        if error is not None:
            raise DependencyFailedError(
                f"{task.parent} 安装失败，{task.component} 不再安装: {error}",
            )

    def _check_cancel(self, cid: ComponentId) -> None:
        if self._cancel.is_set():
            raise TaskCancelledError(f"安装已取消: {cid}")

    def _emit(self, cid: ComponentId, phase: TaskPhase) -> None:
        self.pipeline.emit(cid, phase)
