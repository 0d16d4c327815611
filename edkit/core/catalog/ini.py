"""扁平 INI 形态目录解析

每个组件一个段，键: title / description / url / size / installedsize / md5 /
cmd / hidden / eulaurl1 / eulalabel1 / eulamessage / sync。
相对 URL 基于下载根地址拼接；未识别的键保留在 Module.extra。
"""

from __future__ import annotations

import configparser
import logging
from urllib.parse import urljoin

from edkit.core.checksum import Checksum
from edkit.core.component import (
    BASE_PATH,
    CATEGORY_COMPONENTS,
    CATEGORY_DEV_TOOLS,
    CATEGORY_PLUGINS,
    EDITOR,
    Component,
    ComponentId,
    Platform,
    category_of,
    destination_template,
    is_visible,
    sync_parent_of,
)
from edkit.core.exceptions import CatalogFormatError, ValidationError
from edkit.core.models import Manifest, Module
from edkit.core.version import ReleaseType, Version

logger = logging.getLogger(__name__)

SHAPE = "ini"

FINAL_BASE_URL = "https://download.unity3d.com/download_unity/"
BETA_BASE_URL = "https://beta.unity3d.com/download/"

_KNOWN_KEYS = frozenset((
    "title", "description", "url", "size", "installedsize", "md5", "cmd",
    "hidden", "eulaurl1", "eulalabel1", "eulamessage", "sync",
))
_VERSIONED_SUFFIXES = (".pkg", ".exe", ".tar.xz")
_DEFAULT_WIN_CMD = "/S /D={INSTDIR}"
# Linux 上这几类组件的 url 原样使用，不拼接下载根地址
_VERBATIM_ON_LINUX = frozenset((
    Component.STANDARD_ASSETS, Component.EXAMPLE, Component.DOCUMENTATION,
))


def cleanup_ini(text: str) -> str:
    """丢弃键名含空白的行（这类行会让标准 INI 解析器出错）"""
    kept = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("["):
            kept.append(line)
            continue
        key = stripped.split("=", 1)[0].strip()
        if " " not in key and "\t" not in key:
            kept.append(line)
    return "\n".join(kept)


def download_base_url(version: Version) -> str:
    """正式版与预览版的下载根地址不同，都需要修订哈希"""
    if not version.revision_hash:
        raise CatalogFormatError(f"版本 {version} 缺少修订哈希，无法定位下载地址")
    root = FINAL_BASE_URL if version.release_type is ReleaseType.FINAL else BETA_BASE_URL
    return f"{root}{version.revision_hash}/"


def ini_url(version: Version, platform: Platform) -> str:
    return urljoin(
        download_base_url(version),
        f"unity-{version}-{platform.ini_token}.ini",
    )


def add_version_to_url(url: str, version: Version) -> str:
    marker = f"-{version}"
    if marker in url:
        return url
    for suffix in _VERSIONED_SUFFIXES:
        if url.endswith(suffix):
            return url[: -len(suffix)] + marker + suffix
    return url


def module_url(
    cid: ComponentId, url: str, version: Version, platform: Platform,
) -> str:
    if url.startswith(("http://", "https://")):
        return url
    if platform is Platform.LINUX and cid.known in _VERBATIM_ON_LINUX:
        return url
    return urljoin(download_base_url(version), add_version_to_url(url, version))


def filter_cmd(cmd: str | None, category: str) -> str | None:
    """只有插件与开发工具保留安装参数；默认静默参数视为无"""
    if not cmd:
        return None
    if category not in (CATEGORY_PLUGINS, CATEGORY_DEV_TOOLS):
        return None
    if cmd == _DEFAULT_WIN_CMD:
        return None
    return cmd.replace('"{FILENAME}" ', "") or None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_size(value: str, section: str, key: str, platform: Platform) -> int:
    if not value.strip():
        return 0
    try:
        size = int(value.strip())
    except ValueError as e:
        raise CatalogFormatError(f"段 [{section}] 的 {key} 不是整数: {value!r}") from e
    # Windows INI 以 KiB 计
    return size * 1024 if platform is Platform.WINDOWS else size


def _parse_md5(value: str, section: str) -> Checksum | None:
    if not value.strip():
        return None
    try:
        return Checksum.parse(value)
    except ValidationError:
        logger.warning("段 [%s] 的 md5 无法识别，忽略: %s", section, value)
        return None


def _build_module(
    section: str,
    data: dict[str, str],
    version: Version,
    platform: Platform,
) -> Module:
    cid = ComponentId.parse(section)
    url = data.get("url", "").strip()
    if not url:
        raise CatalogFormatError(f"段 [{section}] 缺少 url")

    known = cid.known
    if cid.is_editor:
        category = ""
        destination: str | None = BASE_PATH
    elif known is not None:
        category = category_of(known, version)
        destination = destination_template(known, platform)
    else:
        category = CATEGORY_COMPONENTS
        destination = None

    sync_text = data.get("sync", "").strip()
    if sync_text:
        sync_parent: ComponentId | None = ComponentId.parse(sync_text)
    elif known is not None and sync_parent_of(known) is not None:
        sync_parent = ComponentId.of(sync_parent_of(known))
    else:
        sync_parent = None

    hidden = _parse_bool(data.get("hidden", ""))
    visible = (is_visible(known) if known is not None else True) and not hidden

    return Module(
        id=cid,
        title=data.get("title", ""),
        description=data.get("description", ""),
        category=category,
        download_url=module_url(cid, url, version, platform),
        download_size=_parse_size(data.get("size", ""), section, "size", platform),
        installed_size=_parse_size(
            data.get("installedsize", ""), section, "installedsize", platform,
        ),
        checksum=_parse_md5(data.get("md5", ""), section),
        destination=destination,
        sync_parent=sync_parent,
        visible=visible,
        cmd=filter_cmd(data.get("cmd"), category),
        eula_url=data.get("eulaurl1") or None,
        eula_label=data.get("eulalabel1") or None,
        eula_message=data.get("eulamessage") or None,
        extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )


def parse_ini(text: str, version: Version, platform: Platform) -> Manifest:
    """解析 INI 目录文本为 Manifest（未做派生模块合成）"""
    parser = configparser.ConfigParser(
        interpolation=None, strict=False, delimiters=("=",),
        comment_prefixes=(";", "#"),
    )
    try:
        parser.read_string(cleanup_ini(text))
    except configparser.Error as e:
        raise CatalogFormatError(f"INI 目录格式错误: {e}") from e
    if not parser.sections():
        raise CatalogFormatError("INI 目录为空")

    manifest = Manifest(version=version, shape=SHAPE)
    for section in parser.sections():
        module = _build_module(section, dict(parser.items(section)), version, platform)
        if module.id in manifest.modules:
            logger.warning("INI 目录中组件重复，保留第一个: %s", module.id)
            continue
        manifest.modules[module.id] = module

    if EDITOR not in manifest.modules:
        logger.warning("INI 目录中没有编辑器段: %s", version)
    logger.debug("INI 目录解析完成: %s, %d 个模块", version, len(manifest))
    return manifest
