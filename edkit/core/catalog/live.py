"""发布树形态目录解析（GraphQL getUnityReleases）

一个 release 节点包含多个按平台/架构区分的 downloads，每个 download
带编辑器本体的 url/integrity 以及嵌套的 modules 树。解析时:
- 选出与目标平台、架构匹配的 download
- download 本身成为编辑器模块
- modules 树先序展开，子模块的同步父模块为其上一级
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator

from edkit.core.checksum import Checksum
from edkit.core.component import (
    BASE_PATH,
    EDITOR,
    LIVE_CATEGORIES,
    ComponentId,
    Platform,
)
from edkit.core.exceptions import CatalogFormatError, ValidationError
from edkit.core.models import Manifest, Module
from edkit.core.version import Version

logger = logging.getLogger(__name__)

SHAPE = "live"
ENDPOINT = "https://live-platform-api.prd.ld.unity3d.com/graphql"

_HASH_RE = re.compile(r"^[0-9a-fA-F]{12}$")
_UNIT_BYTES = {
    "BYTE": 1,
    "KILOBYTE": 1_000,
    "MEGABYTE": 1_000_000,
    "GIGABYTE": 1_000_000_000,
}
_KNOWN_FIELDS = frozenset((
    "id", "name", "description", "category", "url", "integrity", "type",
    "destination", "extractedPathRename", "subModules", "hidden",
    "preSelected", "downloadSize", "installedSize", "eula",
))

FETCH_RELEASE_QUERY = """\
query GetRelease($version: String, $platform: [UnityReleaseDownloadPlatform!],
                 $architecture: [UnityReleaseDownloadArchitecture!]) {
  getUnityReleases(version: $version, platform: $platform,
                   architecture: $architecture, limit: 1) {
    edges {
      node {
        version
        shortRevision
        downloads {
          url integrity type platform architecture
          downloadSize { value unit }
          installedSize { value unit }
          modules { ...ModuleFields subModules { ...ModuleFields
            subModules { ...ModuleFields subModules { ...ModuleFields } } } }
        }
      }
    }
  }
}

fragment ModuleFields on UnityReleaseModule {
  __typename id slug name description category url integrity type
  destination required hidden preSelected
  extractedPathRename { from to }
  downloadSize { value unit }
  installedSize { value unit }
  eula { url integrity type label message }
}
"""


def request_body(version: Version, platform: Platform, architecture: str) -> dict:
    return {
        "query": FETCH_RELEASE_QUERY,
        "variables": {
            "version": str(version),
            "platform": [platform.live_token],
            "architecture": [architecture.upper()],
        },
    }


def extract_release(response: Any, version: Version) -> dict:
    """从 GraphQL 响应中取第一个 release 节点；没有结果返回空字典"""
    try:
        edges = response["data"]["getUnityReleases"]["edges"]
    except (KeyError, TypeError) as e:
        errors = response.get("errors") if isinstance(response, dict) else None
        raise CatalogFormatError(
            f"发布树响应格式错误 ({version}): {errors or e}",
        ) from e
    if not edges:
        return {}
    return edges[0]["node"]


def parse_size(value: Any) -> int:
    """整数字节数，或 {value, unit} 形式（unit 以 1000 为进位）"""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dict):
        unit = str(value.get("unit", "BYTE")).upper()
        if unit not in _UNIT_BYTES:
            raise CatalogFormatError(f"未知的大小单位: {unit}")
        return int(round(float(value.get("value", 0)) * _UNIT_BYTES[unit]))
    raise CatalogFormatError(f"无法解析的大小字段: {value!r}")


def _parse_integrity(value: str | None) -> Checksum | None:
    if not value:
        return None
    try:
        return Checksum.parse(value)
    except ValidationError:
        logger.debug("完整性字符串无法识别，忽略: %s", value)
        return None


def _select_download(
    release: dict, platform: Platform, architecture: str,
) -> dict:
    downloads = release.get("downloads") or []
    if not downloads:
        raise CatalogFormatError(f"发布 {release.get('version')} 没有任何下载项")
    for download in downloads:
        if (
            str(download.get("platform", "")).upper() == platform.live_token
            and str(download.get("architecture", "")).upper() == architecture.upper()
        ):
            return download
    logger.debug("没有完全匹配的下载项，使用第一个: %s", platform.live_token)
    return downloads[0]


def iter_modules(
    modules: list[dict], parent: str | None = None,
) -> Iterator[tuple[dict, str | None]]:
    """先序展开模块树，返回 (模块, 父模块 id)"""
    for module in modules:
        yield module, parent
        yield from iter_modules(module.get("subModules") or [], module.get("id"))


def _build_module(data: dict, parent: str | None) -> Module:
    raw_id = data.get("id")
    if not raw_id:
        raise CatalogFormatError(f"模块缺少 id: {data.get('name', '?')}")
    rename = data.get("extractedPathRename") or {}
    eula = (data.get("eula") or [{}])[0]
    category = str(data.get("category", ""))
    return Module(
        id=ComponentId.parse(raw_id),
        title=data.get("name", ""),
        description=data.get("description", ""),
        category=LIVE_CATEGORIES.get(category, category),
        download_url=data.get("url", ""),
        download_size=parse_size(data.get("downloadSize")),
        installed_size=parse_size(data.get("installedSize")),
        checksum=_parse_integrity(data.get("integrity")),
        destination=data.get("destination") or None,
        rename_from=rename.get("from") or None,
        rename_to=rename.get("to") or None,
        sync_parent=ComponentId.parse(parent) if parent else None,
        visible=not data.get("hidden", False),
        selected=bool(data.get("preSelected", False)),
        installer_type=str(data.get("type", "")),
        eula_url=eula.get("url"),
        eula_label=eula.get("label"),
        eula_message=eula.get("message"),
        extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
    )


def parse_release(
    release: dict,
    version: Version,
    platform: Platform,
    architecture: str = "x86_64",
) -> Manifest:
    """解析 release 节点为 Manifest（未做派生模块合成）"""
    if not isinstance(release, dict) or not release:
        raise CatalogFormatError(f"发布树为空: {version}")

    short_revision = release.get("shortRevision")
    if not version.revision_hash and short_revision and _HASH_RE.match(short_revision):
        version = version.with_hash(short_revision.lower())

    download = _select_download(release, platform, architecture)
    manifest = Manifest(version=version, shape=SHAPE)
    manifest.modules[EDITOR] = Module(
        id=EDITOR,
        title=f"Unity {version}",
        description=f"Unity {version}",
        download_url=download.get("url", ""),
        download_size=parse_size(download.get("downloadSize")),
        installed_size=parse_size(download.get("installedSize")),
        checksum=_parse_integrity(download.get("integrity")),
        destination=BASE_PATH,
        installer_type=str(download.get("type", "")),
    )

    for data, parent in iter_modules(download.get("modules") or []):
        module = _build_module(data, parent)
        if module.id in manifest.modules:
            logger.warning("发布树中模块重复，保留第一个: %s", module.id)
            continue
        manifest.modules[module.id] = module

    logger.debug("发布树解析完成: %s, %d 个模块", version, len(manifest))
    return manifest
