"""已安装编辑器与 modules.json 记录

modules.json 位于安装目录根部，是模块记录列表（camelCase 字段），
isInstalled 为 true 的条目即已安装模块。编辑器本体不写入记录，
只要安装目录中存在编辑器可执行文件即视为已安装。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from edkit.core.component import EDITOR, ComponentId
from edkit.core.exceptions import ParseError, ValidationError
from edkit.core.version import Version
from edkit.utils.fileio import load_json, save_json

logger = logging.getLogger(__name__)

MODULES_FILE = "modules.json"
EDITOR_MARKERS = ("Editor/Unity", "Unity.app", "Editor/Unity.exe")


class Installation:
    """一个编辑器安装目录"""

    def __init__(self, path: str | Path, version: Version | None = None) -> None:
        self.path = Path(path)
        self._version = version

    def __repr__(self) -> str:
        return f"Installation({str(self.path)!r})"

    @property
    def modules_path(self) -> Path:
        return self.path / MODULES_FILE

    @property
    def has_editor(self) -> bool:
        return any((self.path / marker).exists() for marker in EDITOR_MARKERS)

    def exists(self) -> bool:
        return self.path.is_dir() and (self.has_editor or self.modules_path.is_file())

    @property
    def version(self) -> Version:
        """显式给定的版本，否则从目录名中解析"""
        if self._version is None:
            self._version = Version.from_string_containing(self.path.name)
        return self._version

    # ---- modules.json ----

    def read_modules(self) -> list[dict[str, Any]]:
        try:
            data = load_json(self.modules_path)
        except json.JSONDecodeError as e:
            raise ValidationError(f"modules.json 格式错误: {self.modules_path}: {e}") from e
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValidationError(f"modules.json 必须是列表: {self.modules_path}")
        return [item for item in data if isinstance(item, dict)]

    def installed_modules(self) -> set[ComponentId]:
        """记录中 isInstalled 为 true 的模块；有编辑器时包含编辑器"""
        installed = {
            ComponentId.parse(str(item["id"]))
            for item in self.read_modules()
            if item.get("id") and item.get("isInstalled")
        }
        if self.has_editor:
            installed.add(EDITOR)
        return installed

    def write_modules(self, records: list[dict[str, Any]]) -> None:
        save_json(self.modules_path, records)
        logger.debug("已写入模块记录: %s (%d 项)", self.modules_path, len(records))

    def mark_uninstalled(self, components: Iterable[ComponentId]) -> list[dict[str, Any]]:
        """把指定模块标记为未安装并重写记录"""
        names = {c.record_id for c in components}
        records = self.read_modules()
        for item in records:
            if item.get("id") in names:
                item["isInstalled"] = False
        self.write_modules(records)
        return records


class InstallationRegistry:
    """install_dir 下的全部安装"""

    def __init__(self, install_dir: str | Path) -> None:
        self.install_dir = Path(install_dir)

    def list(self) -> list[Installation]:
        """按版本升序列出；目录名中没有版本号的目录忽略"""
        if not self.install_dir.is_dir():
            return []
        found: list[Installation] = []
        for child in self.install_dir.iterdir():
            if not child.is_dir():
                continue
            installation = Installation(child)
            if not installation.exists():
                continue
            try:
                installation.version
            except ParseError:
                logger.debug("目录名中没有版本号，跳过: %s", child)
                continue
            found.append(installation)
        found.sort(key=lambda inst: inst.version)
        return found

    def find(self, version: Version) -> Installation | None:
        for installation in self.list():
            if installation.version == version:
                return installation
        return None
