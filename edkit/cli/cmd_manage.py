"""CLI - 已安装编辑器管理（列表、卸载、版本识别）"""

from __future__ import annotations

import click

from edkit.cli import _parse_version, _svc
from edkit.core.version import Version


def register(group: click.Group) -> None:
    group.add_command(list_installations)
    group.add_command(uninstall)
    group.add_command(version_of)


@click.command(name="list")
@click.option("--path-only", is_flag=True, help="只输出安装路径")
def list_installations(path_only: bool) -> None:
    """列出已安装的编辑器"""
    installations = _svc().installations.list()
    if not installations:
        if not path_only:
            click.echo("没有已安装的编辑器。")
        return
    for inst in installations:
        if path_only:
            click.echo(str(inst.path))
        else:
            click.echo(f"  {str(inst.version):20s} {inst.path}")


@click.command()
@click.argument("version", callback=_parse_version)
@click.option("-m", "--module", "modules", multiple=True, help="要卸载的模块 id（可重复）")
@click.option("--all", "all_modules", is_flag=True, help="卸载全部模块，保留编辑器")
def uninstall(version: Version, modules: tuple[str, ...], all_modules: bool) -> None:
    """卸载编辑器或其中的模块"""
    result = _svc().uninstaller.uninstall(
        version, list(modules), all_modules=all_modules,
    )
    if result.editor_removed:
        click.echo(f"已删除编辑器 {version}")
        return
    for cid in result.removed:
        click.echo(f"  已卸载: {cid}")
    for cid in result.skipped:
        click.echo(f"  跳过:   {cid}（无法单独删除）")
    if not result.removed:
        click.echo("没有卸载任何模块。")


@click.command(name="version-of")
@click.argument("text")
def version_of(text: str) -> None:
    """输出 TEXT 中出现的第一个版本号"""
    click.echo(str(Version.from_string_containing(text)))
