"""安装图

以编辑器为唯一根节点的有向无环图；边从被依赖方指向依赖方
（父模块 → 同步子模块）。构建后形状固定，只有状态标记和
keep() 过滤会原地修改。

职责:
- 从 Manifest 构建（未解析的 syncParent 挂到根节点，strict 模式下报错）
- 安装状态标记
- 依赖（向上）/ 子模块（向下）查询
- 按依赖顺序稳定遍历
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from edkit.core.component import EDITOR, ComponentId
from edkit.core.exceptions import CatalogFormatError
from edkit.core.models import Manifest

logger = logging.getLogger(__name__)


class InstallStatus(Enum):
    UNKNOWN = "unknown"
    MISSING = "missing"
    INSTALLED = "installed"


@dataclass
class GraphNode:
    component: ComponentId
    status: InstallStatus = InstallStatus.UNKNOWN


def _child_order(cid: ComponentId) -> str:
    return cid.name


class InstallGraph:
    """模块安装图"""

    def __init__(self) -> None:
        self._nodes: dict[ComponentId, GraphNode] = {}
        self._parent: dict[ComponentId, ComponentId] = {}
        self._children: dict[ComponentId, list[ComponentId]] = {}

    # ---- 构建 ----

    @classmethod
    def build(cls, manifest: Manifest, *, strict: bool = False) -> InstallGraph:
        """从目录构建安装图

        strict=True 时，指向目录中不存在模块的 syncParent 抛 CatalogFormatError；
        默认宽松处理，挂到根节点并记录警告。
        """
        graph = cls()
        graph._add_node(EDITOR)

        parents: dict[ComponentId, ComponentId] = {}
        for module in manifest:
            if module.is_editor:
                continue
            parent = module.sync_parent
            if parent is None or parent.is_editor:
                parents[module.id] = EDITOR
            elif parent.is_unknown:
                # 未知组件只作为叶子节点
                if strict:
                    raise CatalogFormatError(
                        f"模块 {module.id} 的同步父模块 {parent} 是未知组件",
                    )
                logger.warning(
                    "模块 %s 的同步父模块 %s 是未知组件，挂到根节点", module.id, parent,
                )
                parents[module.id] = EDITOR
            elif parent in manifest.modules and parent != module.id:
                parents[module.id] = parent
            else:
                if strict:
                    raise CatalogFormatError(
                        f"模块 {module.id} 的同步父模块 {parent} 不在目录中",
                    )
                logger.warning(
                    "模块 %s 的同步父模块 %s 不存在，挂到根节点", module.id, parent,
                )
                parents[module.id] = EDITOR

        for cid in parents:
            if graph._reaches_root(cid, parents):
                continue
            if strict:
                raise CatalogFormatError(f"模块 {cid} 的同步关系存在环")
            logger.warning("模块 %s 的同步关系存在环，挂到根节点", cid)
            parents[cid] = EDITOR

        for cid in parents:
            graph._add_node(cid)
        for cid in sorted(parents, key=_child_order, reverse=True):
            graph._add_edge(parents[cid], cid)
        return graph

    @staticmethod
    def _reaches_root(
        cid: ComponentId, parents: dict[ComponentId, ComponentId],
    ) -> bool:
        seen: set[ComponentId] = set()
        current = cid
        while current != EDITOR:
            if current in seen:
                return False
            seen.add(current)
            current = parents[current]
        return True

    def _add_node(self, cid: ComponentId) -> None:
        self._nodes.setdefault(cid, GraphNode(cid))
        self._children.setdefault(cid, [])

    def _add_edge(self, parent: ComponentId, child: ComponentId) -> None:
        self._parent[child] = parent
        siblings = self._children[parent]
        siblings.append(child)
        siblings.sort(key=_child_order, reverse=True)

    # ---- 查询 ----

    def __contains__(self, cid: object) -> bool:
        return cid in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._parent)

    def edges(self) -> list[tuple[ComponentId, ComponentId]]:
        return [(p, c) for c, p in self._parent.items()]

    def components(self) -> list[ComponentId]:
        return list(self._nodes)

    def node(self, cid: ComponentId) -> GraphNode:
        try:
            return self._nodes[cid]
        except KeyError:
            raise KeyError(f"组件不在安装图中: {cid}") from None

    def status(self, cid: ComponentId) -> InstallStatus:
        return self.node(cid).status

    def parent_of(self, cid: ComponentId) -> ComponentId | None:
        return self._parent.get(cid)

    def depth(self, cid: ComponentId) -> int:
        return len(self.dependencies_of(cid))

    def find(self, text: str) -> ComponentId | None:
        cid = ComponentId.parse(text)
        if cid in self._nodes:
            return cid
        lowered = text.strip().lower()
        for known in self._nodes:
            if known.name.lower() == lowered:
                return known
        return None

    # ---- 状态 ----

    def mark_installed(self, installed: Iterable[ComponentId]) -> None:
        """集合内的节点标记 INSTALLED，其余 MISSING"""
        installed = set(installed)
        for cid, node in self._nodes.items():
            node.status = (
                InstallStatus.INSTALLED if cid in installed
                else InstallStatus.MISSING
            )

    def mark_all(self, status: InstallStatus) -> None:
        for node in self._nodes.values():
            node.status = status

    def mark_all_missing(self) -> None:
        self.mark_all(InstallStatus.MISSING)

    # ---- 遍历 ----

    def dependencies_of(
        self, cid: ComponentId,
    ) -> list[tuple[ComponentId, InstallStatus]]:
        """沿同步父链向上直到根，根在最后"""
        self.node(cid)
        result: list[tuple[ComponentId, InstallStatus]] = []
        current = self._parent.get(cid)
        while current is not None:
            result.append((current, self._nodes[current].status))
            current = self._parent.get(current)
        return result

    def submodules_of(
        self, cid: ComponentId,
    ) -> list[tuple[ComponentId, InstallStatus]]:
        """全部后代，深度优先先序"""
        self.node(cid)
        result: list[tuple[ComponentId, InstallStatus]] = []
        for child in self._children[cid]:
            result.append((child, self._nodes[child].status))
            result.extend(self.submodules_of(child))
        return result

    def keep(self, components: Iterable[ComponentId]) -> None:
        """只保留集合内的节点；两端都保留的边才保留"""
        wanted = set(components)
        for cid in [c for c in self._nodes if c not in wanted]:
            del self._nodes[cid]
            del self._children[cid]
            self._parent.pop(cid, None)
        for child in [c for c, p in self._parent.items() if p not in wanted]:
            del self._parent[child]
        for cid, children in self._children.items():
            self._children[cid] = [c for c in children if c in wanted]

    def roots(self) -> list[ComponentId]:
        roots = [cid for cid in self._nodes if cid not in self._parent]
        roots.sort(key=_child_order, reverse=True)
        roots.sort(key=lambda c: not c.is_editor)
        return roots

    def topological_order(self) -> Iterator[GraphNode]:
        """父节点总在子节点之前；同级按 id 逆字典序"""
        stack = list(reversed(self.roots()))
        while stack:
            cid = stack.pop()
            yield self._nodes[cid]
            stack.extend(reversed(self._children[cid]))
