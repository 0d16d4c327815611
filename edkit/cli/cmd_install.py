"""CLI - 安装命令"""

from __future__ import annotations

from pathlib import Path

import click

from edkit.cli import _parse_version, _svc
from edkit.core.version import Version
from edkit.services.orchestrator import InstallReport, InstallRequest


def register(group: click.Group) -> None:
    group.add_command(install)


def _print_report(report: InstallReport) -> None:
    for r in report.results:
        line = f"  {r.status:8s} {r.component}"
        if r.status == "done":
            line += f" ({r.duration:.1f}秒)"
        elif r.status == "failed":
            line += f": {r.message}"
        click.echo(line)


@click.command()
@click.argument("version", callback=_parse_version)
@click.option("-m", "--module", "modules", multiple=True, help="要安装的模块 id（可重复）")
@click.option("--sync", "install_sync", is_flag=True, help="同时安装所选模块的同步子模块")
@click.option(
    "--destination", "-d", type=click.Path(file_okay=False), default=None,
    help="安装目录（默认 install_dir/<version>）",
)
@click.option("--no-verify", is_flag=True, help="跳过安装包校验")
@click.option("--refresh", is_flag=True, help="忽略目录缓存，重新获取")
@click.option("--offline", is_flag=True, help="只使用本地目录缓存（允许过期）")
def install(
    version: Version,
    modules: tuple[str, ...],
    install_sync: bool,
    destination: str | None,
    no_verify: bool,
    refresh: bool,
    offline: bool,
) -> None:
    """安装编辑器及指定模块"""
    svc = _svc(refresh=refresh)
    if no_verify:
        svc.loader.verify = False
    manifest = svc.catalog.fetch_stale(version) if offline else None

    request = InstallRequest(
        version=version,
        modules=list(modules),
        destination=Path(destination) if destination else None,
        install_sync=install_sync,
    )
    target = svc.orchestrator.destination_for(request)
    click.echo(f"安装 {version} -> {target}")
    try:
        report = svc.orchestrator.run(request, manifest)
    except KeyboardInterrupt:
        click.echo("已中断", err=True)
        raise SystemExit(130) from None

    _print_report(report)
    report.raise_for_failures()
    click.echo("安装完成")
