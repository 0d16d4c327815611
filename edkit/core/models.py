"""目录数据模型

Module 为一次目录获取产生的不可变记录；Manifest 持有某一版本的全部模块。
两种目录形态（扁平 INI、发布树）都归一化到这里的结构。
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import unquote, urlparse

from edkit.core.checksum import Checksum
from edkit.core.component import BASE_PATH, EDITOR, Component, ComponentId
from edkit.core.version import Version


@dataclass(frozen=True)
class Module:
    """单个可安装单元（编辑器本体或可选模块）"""

    id: ComponentId
    title: str = ""
    description: str = ""
    category: str = ""
    download_url: str = ""
    download_size: int = 0
    installed_size: int = 0
    checksum: Checksum | None = None
    destination: str | None = None  # 含 {UNITY_PATH} 占位符
    rename_from: str | None = None
    rename_to: str | None = None
    sync_parent: ComponentId | None = None
    visible: bool = True
    selected: bool = False
    cmd: str | None = None
    installer_type: str = ""  # 发布树形态的 type 字段，如 ZIP / PKG / TEXT
    eula_url: str | None = None
    eula_label: str | None = None
    eula_message: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_editor(self) -> bool:
        return self.id.is_editor

    @property
    def file_name(self) -> str:
        """下载产物在缓存中的文件名，取 URL 最后一段"""
        path = unquote(urlparse(self.download_url).path)
        name = posixpath.basename(path.rstrip("/"))
        if not name:
            name = self.id.name
        if "." not in name and self._is_text_payload():
            name = f"{name}.po"
        return name

    def _is_text_payload(self) -> bool:
        known = self.id.known
        return (
            (known is not None and known.is_language)
            or self.installer_type.upper() == "TEXT"
        )

    def install_destination(self, base_dir: Path) -> Path | None:
        """把目标模板解析为绝对路径；iOS 的真实目录再拼上 iOSSupport"""
        if self.destination is None:
            return None
        path = resolve_template(self.destination, base_dir)
        if self.id.known is Component.IOS and path.name != "iOSSupport":
            path = path / "iOSSupport"
        return path

    def install_rename(self, base_dir: Path) -> tuple[Path, Path] | None:
        if not self.rename_from or not self.rename_to:
            return None
        return (
            resolve_template(self.rename_from, base_dir),
            resolve_template(self.rename_to, base_dir),
        )

    def to_record(self, *, is_installed: bool) -> dict[str, Any]:
        """installed-module 记录 (modules.json) 中的一项"""
        return {
            "id": self.id.record_id,
            "name": self.title,
            "description": self.description,
            "category": self.category,
            "downloadUrl": self.download_url,
            "downloadSize": self.download_size,
            "installedSize": self.installed_size,
            "visible": self.visible,
            "selected": self.selected,
            "sync": str(self.sync_parent) if self.sync_parent else "",
            "parent": str(self.sync_parent) if self.sync_parent else "",
            "destination": self.destination or "",
            "renameFrom": self.rename_from or "",
            "renameTo": self.rename_to or "",
            "isInstalled": is_installed,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Module:
        """从 modules.json 的一项还原（校验和、EULA 等不在记录中）"""
        sync = record.get("sync") or record.get("parent") or ""
        return cls(
            id=ComponentId.parse(str(record["id"])),
            title=record.get("name", ""),
            description=record.get("description", ""),
            category=record.get("category", ""),
            download_url=record.get("downloadUrl", ""),
            download_size=int(record.get("downloadSize") or 0),
            installed_size=int(record.get("installedSize") or 0),
            destination=record.get("destination") or None,
            rename_from=record.get("renameFrom") or None,
            rename_to=record.get("renameTo") or None,
            sync_parent=ComponentId.parse(sync) if sync else None,
            visible=bool(record.get("visible", True)),
            selected=bool(record.get("selected", False)),
        )


def resolve_template(template: str, base_dir: Path) -> Path:
    """`{UNITY_PATH}/a/b` → base_dir/a/b；绝对路径原样返回"""
    if template == BASE_PATH:
        return base_dir
    prefix = BASE_PATH + "/"
    if template.startswith(prefix):
        return base_dir / template[len(prefix):]
    if template.startswith("/"):
        return Path(template)
    return base_dir / template


@dataclass
class Manifest:
    """某一版本的完整模块目录，构建后不再修改"""

    version: Version
    modules: dict[ComponentId, Module] = field(default_factory=dict)
    shape: str = ""

    def get(self, cid: ComponentId) -> Module | None:
        return self.modules.get(cid)

    def __contains__(self, cid: object) -> bool:
        return cid in self.modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules.values())

    def __len__(self) -> int:
        return len(self.modules)

    @property
    def editor(self) -> Module | None:
        return self.modules.get(EDITOR)

    def resolve(self, text: str) -> ComponentId | None:
        """把用户输入的模块名解析为目录中的 ComponentId"""
        cid = ComponentId.parse(text)
        if cid.is_editor or cid in self.modules:
            return cid
        lowered = text.strip().lower()
        for known in self.modules:
            if known.name.lower() == lowered:
                return known
        return None

    def records(self, installed: set[ComponentId]) -> list[dict[str, Any]]:
        return [
            m.to_record(is_installed=m.id in installed)
            for m in self.modules.values()
            if not m.is_editor
        ]
