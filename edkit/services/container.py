"""服务容器 - 由 Config 统一装配各组件

依赖关系（→ 表示依赖）:
  catalog      → transport → http
  catalog      → catalog_cache
  loader       → http
  orchestrator → catalog, loader, pipeline

用法:
    container = ServiceContainer()
    report = container.orchestrator.install(request)

    # 测试中注入假实现
    container = ServiceContainer(config=cfg, http=FakeClient(), executor=FakeExecutor())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from edkit.utils.net import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from edkit.core.catalog import CatalogCache, CatalogTransport, ModuleCatalog
    from edkit.core.config import Config
    from edkit.core.installation import InstallationRegistry
    from edkit.core.loader.loader import Loader
    from edkit.core.pipeline import PhasePipeline
    from edkit.services.orchestrator import Orchestrator
    from edkit.services.uninstall_service import UninstallService
    from edkit.utils.net import HttpClient
    from edkit.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器，同一容器内的实例共享"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        http: HttpClient | None = None,
        transport: CatalogTransport | None = None,
        executor: CommandExecutor | None = None,
        refresh: bool = False,
    ) -> None:
        if config is None:
            from edkit.core.config import get_config
            config = get_config()
        self._config = config
        self._instances: dict[str, object] = {}
        self._executor = executor
        self._refresh = refresh
        if http is not None:
            self._instances["http"] = http
        if transport is not None:
            self._instances["transport"] = transport

    @property
    def config(self) -> Config:
        return self._config

    # ---- 基础设施 ----

    @property
    def http(self) -> HttpClient:
        if "http" not in self._instances:
            from edkit.utils.net import UrllibClient
            self._instances["http"] = UrllibClient(
                timeout=self._config.http_timeout,
                user_agent=self._config.user_agent or DEFAULT_USER_AGENT,
            )
        return self._instances["http"]  # type: ignore[return-value]

    @property
    def transport(self) -> CatalogTransport:
        if "transport" not in self._instances:
            from edkit.core.catalog import IniCatalogTransport, LiveCatalogTransport
            if self._config.catalog_source == "ini":
                self._instances["transport"] = IniCatalogTransport(self.http)
            else:
                self._instances["transport"] = LiveCatalogTransport(self.http)
        return self._instances["transport"]  # type: ignore[return-value]

    @property
    def catalog_cache(self) -> CatalogCache:
        if "catalog_cache" not in self._instances:
            from edkit.core.catalog import CatalogCache
            self._instances["catalog_cache"] = CatalogCache(
                self._config.cache_path / "catalog",
                enabled=self._config.catalog_cache_enabled,
                max_age=self._config.max_age_seconds,
                refresh=self._refresh,
            )
        return self._instances["catalog_cache"]  # type: ignore[return-value]

    @property
    def pipeline(self) -> PhasePipeline:
        if "pipeline" not in self._instances:
            from edkit.core.pipeline import LoggingPhaseHook, PhasePipeline
            pipeline = PhasePipeline()
            pipeline.subscribe(LoggingPhaseHook())
            self._instances["pipeline"] = pipeline
        return self._instances["pipeline"]  # type: ignore[return-value]

    # ---- 服务层 ----

    @property
    def catalog(self) -> ModuleCatalog:
        if "catalog" not in self._instances:
            from edkit.core.catalog import ModuleCatalog
            self._instances["catalog"] = ModuleCatalog(
                self.transport,
                self.catalog_cache,
                platform=self._config.platform_enum,
                architecture=self._config.architecture,
            )
        return self._instances["catalog"]  # type: ignore[return-value]

    @property
    def loader(self) -> Loader:
        if "loader" not in self._instances:
            from edkit.core.loader.loader import Loader
            self._instances["loader"] = Loader(
                self._config.cache_path,
                self.http,
                verify=self._config.verify_checksum,
            )
        return self._instances["loader"]  # type: ignore[return-value]

    @property
    def orchestrator(self) -> Orchestrator:
        if "orchestrator" not in self._instances:
            from edkit.services.orchestrator import Orchestrator
            self._instances["orchestrator"] = Orchestrator(
                self.catalog,
                self.loader,
                install_dir=self._config.install_path,
                locks_dir=self._config.locks_path,
                platform=self._config.platform_enum,
                max_workers=self._config.max_workers,
                prefetch=self._config.prefetch_modules,
                executor=self._executor,
                pipeline=self.pipeline,
            )
        return self._instances["orchestrator"]  # type: ignore[return-value]

    @property
    def installations(self) -> InstallationRegistry:
        if "installations" not in self._instances:
            from edkit.core.installation import InstallationRegistry
            self._instances["installations"] = InstallationRegistry(
                self._config.install_path,
            )
        return self._instances["installations"]  # type: ignore[return-value]

    @property
    def uninstaller(self) -> UninstallService:
        if "uninstaller" not in self._instances:
            from edkit.services.uninstall_service import UninstallService
            self._instances["uninstaller"] = UninstallService(self._config.install_path)
        return self._instances["uninstaller"]  # type: ignore[return-value]

