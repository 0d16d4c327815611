"""统一异常体系

所有业务异常继承 EdkitError，替代散落的 ValueError / RuntimeError。
CLI 层可据此输出 `Error [<code>]: <message>` 形式的友好提示。

层次:
  EdkitError
  ├── ConfigError / ValidationError / ParseError
  ├── CatalogError ── CatalogUnavailableError / CatalogFormatError
  ├── LoadError ── ChecksumMismatchError / EmptyOrMissingError
  ├── InstallError ── UnsupportedFormatError / MissingDestinationError
  │                   ExtractionFailedError / DependencyFailedError
  │                   UnsupportedModuleError / AlreadyExistsError
  └── OrchestrationError (聚合多个任务失败)
"""

from __future__ import annotations


class EdkitError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(EdkitError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(EdkitError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ParseError(EdkitError):
    """版本字符串格式错误，不重试"""

    code = "PARSE_ERROR"


# ---- 目录 (catalog) ----


class CatalogError(EdkitError):
    """模块目录获取或解析失败"""

    code = "CATALOG_ERROR"


class CatalogUnavailableError(CatalogError):
    """目录服务不可达；过期缓存不会被自动使用"""

    code = "CATALOG_UNAVAILABLE"


class CatalogFormatError(CatalogError):
    """目录文档既不是扁平 INI 形态也不是发布树形态"""

    code = "CATALOG_FORMAT"


# ---- 下载 (loader) ----


class LoadError(EdkitError):
    """安装包下载失败"""

    code = "LOAD_ERROR"


class ChecksumMismatchError(LoadError):
    """下载内容与期望校验和不一致"""

    code = "CHECKSUM_MISMATCH"


class EmptyOrMissingError(LoadError):
    """下载完成后没有产生任何字节"""

    code = "EMPTY_OR_MISSING"


# ---- 安装 (installer) ----


class InstallError(EdkitError):
    """安装任务失败（只影响所属任务）"""

    code = "INSTALL_ERROR"


class UnsupportedFormatError(InstallError):
    """没有与安装包扩展名匹配的解包策略"""

    code = "UNSUPPORTED_FORMAT"


class MissingDestinationError(InstallError):
    """模块未声明安装目标目录"""

    code = "MISSING_DESTINATION"


class ExtractionFailedError(InstallError):
    """外部解包工具返回非零退出码"""

    code = "EXTRACTION_FAILED"

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class DependencyFailedError(InstallError):
    """编辑器安装失败，依赖它的模块不再执行"""

    code = "DEPENDENCY_FAILED"


class UnsupportedModuleError(InstallError):
    """请求的模块在该版本的目录中不存在"""

    code = "UNSUPPORTED_MODULE"


class AlreadyExistsError(InstallError):
    """移动目录时目标已存在且非空"""

    code = "ALREADY_EXISTS"


class OrchestrationError(EdkitError):
    """一次安装运行中至少一个任务失败"""

    code = "ORCHESTRATION_FAILED"

    def __init__(self, failures: dict[str, BaseException]) -> None:
        lines = [f"  - {name}: {exc}" for name, exc in failures.items()]
        super().__init__(
            f"{len(failures)} 个组件安装失败:\n" + "\n".join(lines),
        )
        self.failures = failures


class TaskCancelledError(InstallError):
    """运行被取消，未完成的任务按失败处理"""

    code = "CANCELLED"
