"""edkit 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
EdkitError 统一输出为 `Error [<code>]: <message>`，退出码 1。
"""

from __future__ import annotations

import os
from typing import Any

import click

from edkit import __version__
from edkit.core.config import get_config, init_config
from edkit.core.exceptions import EdkitError, ParseError
from edkit.core.version import Version
from edkit.services.container import ServiceContainer
from edkit.utils.logger import setup_logging


def _svc(**kwargs: Any) -> ServiceContainer:
    """按当前配置创建服务容器"""
    return ServiceContainer(config=get_config(), **kwargs)


def _parse_version(
    _ctx: click.Context, _param: click.Parameter, value: str | None,
) -> Version | None:
    """click 回调: 字符串 → Version"""
    if value is None:
        return None
    try:
        return Version.parse(value)
    except ParseError as e:
        raise click.BadParameter(str(e)) from e


class EdkitGroup(click.Group):
    """把领域异常转换为统一的错误输出"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except EdkitError as e:
            click.echo(f"Error [{e.code}]: {e}", err=True)
            ctx.exit(1)


@click.group(cls=EdkitGroup)
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", envvar="EDKIT_CONFIG", default=None,
    type=click.Path(dir_okay=False), help="配置文件路径",
)
@click.option("-v", "--verbose", is_flag=True, help="输出调试日志")
def main(config_path: str | None, verbose: bool) -> None:
    """edkit - 编辑器及其模块的版本感知安装器"""
    setup_logging(
        level="DEBUG" if verbose else os.getenv("EDKIT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("EDKIT_LOG_JSON", "") == "1",
    )
    init_config(config_path)


# 注册各领域子命令
from edkit.cli.cmd_install import register as _reg_install  # noqa: E402
from edkit.cli.cmd_manage import register as _reg_manage  # noqa: E402
from edkit.cli.cmd_modules import register as _reg_modules  # noqa: E402

_reg_install(main)
_reg_modules(main)
_reg_manage(main)
