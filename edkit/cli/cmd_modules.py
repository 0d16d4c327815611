"""CLI - 模块目录查看"""

from __future__ import annotations

import click

from edkit.cli import _parse_version, _svc
from edkit.core.graph import InstallGraph, InstallStatus
from edkit.core.installation import Installation
from edkit.core.models import Module
from edkit.core.version import Version


def register(group: click.Group) -> None:
    group.add_command(modules)


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"


def _line(module: Module, status: InstallStatus, indent: int = 0) -> str:
    mark = "x" if status is InstallStatus.INSTALLED else " "
    pad = "  " * indent
    return (
        f"  [{mark}] {pad}{str(module.id):32s} {module.title:40s} "
        f"{_format_size(module.download_size):>10s}"
    )


@click.command()
@click.argument("version", callback=_parse_version)
@click.option("--category", "-c", "categories", multiple=True, help="只显示指定分类（可重复）")
@click.option("--all", "show_all", is_flag=True, help="包含隐藏模块")
@click.option("--show-sync", is_flag=True, help="按同步关系缩进显示")
@click.option("--offline", is_flag=True, help="只使用本地目录缓存（允许过期）")
def modules(
    version: Version,
    categories: tuple[str, ...],
    show_all: bool,
    show_sync: bool,
    offline: bool,
) -> None:
    """列出某版本可安装的模块"""
    svc = _svc()
    manifest = svc.catalog.fetch_stale(version) if offline else svc.catalog.fetch(version)

    graph = InstallGraph.build(manifest)
    installation = Installation(svc.orchestrator.install_dir / str(version), version)
    if installation.exists():
        graph.mark_installed(installation.installed_modules())
    else:
        graph.mark_all_missing()

    wanted = {c.lower() for c in categories}

    def visible(module: Module) -> bool:
        if module.is_editor:
            return False
        if not show_all and not module.visible:
            return False
        return not wanted or module.category.lower() in wanted

    shown = 0
    if show_sync:
        for node in graph.topological_order():
            module = manifest.get(node.component)
            if module is None or not visible(module):
                continue
            # 根节点（编辑器）不显示，一级模块不缩进
            click.echo(_line(module, node.status, graph.depth(node.component) - 1))
            shown += 1
    else:
        by_category: dict[str, list[Module]] = {}
        for module in manifest:
            if visible(module):
                by_category.setdefault(module.category or "Other", []).append(module)
        for category in sorted(by_category):
            click.echo(f"{category}:")
            for module in sorted(by_category[category], key=lambda m: str(m.id)):
                click.echo(_line(module, graph.status(module.id)))
                shown += 1

    if not shown:
        click.echo("没有匹配的模块。")
