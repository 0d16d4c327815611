"""派生模块合成

两种目录形态都不包含（或不可靠地包含）的模块，仅根据版本号确定性地补齐:
- 2018 起的离线文档
- 2019.1 起的 Android SDK / NDK 工具链子模块，2019.2 起的 OpenJDK
- 2018.1 起的编辑器语言包

已存在于目录中的模块不会被覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from edkit.core.component import (
    LOCALE_NAMES,
    Component,
    ComponentId,
    Platform,
    category_of,
    destination_template,
    install_path,
    is_visible,
    sync_parent_of,
)
from edkit.core.models import Manifest, Module
from edkit.core.version import Version

logger = logging.getLogger(__name__)

C = Component

DOCS_URL = (
    "https://cloudmedia-docs.unity3d.com/docscloudstorage/"
    "{major}.{minor}/UnityDocumentation.zip"
)
LANGUAGE_URL = "https://new-translate.unity3d.jp/v1/live/54/{major}.{minor}/{locale}"
ANDROID_REPO = "https://dl.google.com/android/repository"
OPEN_JDK_URL = (
    "http://download.unity3d.com/download_unity/open-jdk/open-jdk-{os}-x64/"
    "jdk8u172-b11_4be8440cc514099cfe1b50cbc74128f6955cd90fd5afe15ea7be60f832de67b4.zip"
)
ANDROID_EULA_URL = "https://dl.google.com/dl/android/repository/repository2-1.xml"
ANDROID_EULA_LABEL = "Android SDK and NDK License Terms from Google"
ANDROID_EULA_MESSAGE = (
    "Please review and accept the license terms before downloading and "
    "installing Android's SDK and NDK."
)

_V2018_1 = Version.parse("2018.1.0a1")
_V2018_2 = Version.parse("2018.2.0a0")
_V2019_1 = Version.parse("2019.1.0a1")
_V2019_1_LOCALES = Version.parse("2019.1.0a0")
_V2019_2 = Version.parse("2019.2.0a1")
_V2019_3 = Version.parse("2019.3.0a0")
_V2019_4 = Version.parse("2019.4.0a0")
_V2021_1 = Version.parse("2021.1.0a0")


@dataclass
class AndroidPart:
    """Android 工具链中的一个下载包"""

    component: Component
    name: str
    url: str
    version: str
    installed_size: int
    download_size: int
    main: bool = False
    rename_from: str | None = None
    rename_to: str | None = None


# =========================================================================
# Android 工具链
# =========================================================================


def _android_root(platform: Platform) -> str:
    return "{UNITY_PATH}/" + install_path(C.ANDROID, platform)


def _ndk_tools(os_token: str) -> AndroidPart:
    return AndroidPart(
        C.ANDROID_SDK_NDK_TOOLS, "Android SDK & NDK Tools",
        f"{ANDROID_REPO}/sdk-tools-{os_token}-4333796.zip", "26.1.1",
        174_000_000, 148_000_000, main=True,
    )


def _platform_tools(os_token: str) -> AndroidPart:
    return AndroidPart(
        C.ANDROID_SDK_PLATFORM_TOOLS, "Android SDK Platform Tools",
        f"{ANDROID_REPO}/platform-tools_r28.0.1-{os_token}.zip", "28.0.1",
        15_700_000, 4_550_000,
    )


def _linux_parts(version: Version) -> list[AndroidPart]:
    root = _android_root(Platform.LINUX)
    if version >= _V2019_4:
        build_tools, build_android, bt_sizes = "30.0.2", "11", (140_000_000, 50_200_000)
        platform_rev, platform_android, sdk = "29_r05", "10", "29"
        pl_sizes = (152_500_000, 78_300_000)
    else:
        build_tools, build_android, bt_sizes = "28.0.3", "9", (120_000_000, 52_600_000)
        platform_rev, platform_android, sdk = "28_r06", "9", "28"
        pl_sizes = (121_000_000, 60_600_000)
    if version >= _V2021_1:
        ndk, ndk_sizes = "r21d", (4_341_760_000, 1_126_400_000)
    elif version >= _V2019_3:
        ndk, ndk_sizes = "r19", (2_690_000_000, 785_000_000)
    else:
        ndk, ndk_sizes = "r16b", (2_355_200_000, 626_000_000)

    return [
        _ndk_tools("linux"),
        _platform_tools("linux"),
        AndroidPart(
            C.ANDROID_SDK_BUILD_TOOLS, "Android SDK Build Tools",
            f"{ANDROID_REPO}/build-tools_r{build_tools}-linux.zip", build_tools,
            *bt_sizes,
            rename_from=f"{root}/SDK/build-tools/android-{build_android}",
            rename_to=f"{root}/SDK/build-tools/{build_tools}",
        ),
        AndroidPart(
            C.ANDROID_SDK_PLATFORMS, "Android SDK Platforms",
            f"{ANDROID_REPO}/platform-{platform_rev}.zip", sdk, *pl_sizes,
            rename_from=f"{root}/SDK/platforms/android-{platform_android}",
            rename_to=f"{root}/SDK/platforms/android-{sdk}",
        ),
        AndroidPart(
            C.ANDROID_NDK, "Android NDK",
            f"{ANDROID_REPO}/android-ndk-{ndk}-linux-x86_64.zip", ndk, *ndk_sizes,
            rename_from=f"{root}/NDK/android-ndk-{ndk}",
            rename_to=f"{root}/NDK",
        ),
    ]


def _mac_parts(version: Version) -> list[AndroidPart]:
    root = _android_root(Platform.MAC)
    ndk = "r19b" if version >= _V2019_3 else "r16b"
    return [
        _ndk_tools("darwin"),
        _platform_tools("darwin"),
        AndroidPart(
            C.ANDROID_SDK_BUILD_TOOLS, "Android SDK Build Tools",
            f"{ANDROID_REPO}/build-tools_r28.0.3-macosx.zip", "28.0.3",
            120_000_000, 52_600_000,
            rename_from=f"{root}/SDK/build-tools/android-9",
            rename_to=f"{root}/SDK/build-tools/28.0.3",
        ),
        AndroidPart(
            C.ANDROID_SDK_PLATFORMS, "Android SDK Platforms",
            f"{ANDROID_REPO}/platform-28_r06.zip", "28",
            121_000_000, 60_600_000,
            rename_from=f"{root}/SDK/platforms/android-9",
            rename_to=f"{root}/SDK/platforms/android-28",
        ),
        AndroidPart(
            C.ANDROID_NDK, "Android NDK",
            f"{ANDROID_REPO}/android-ndk-{ndk}-darwin-x86_64.zip", ndk,
            2_700_000_000, 770_000_000,
            rename_from=f"{root}/NDK/android-ndk-{ndk}",
            rename_to=f"{root}/NDK",
        ),
    ]


def android_parts(version: Version, platform: Platform) -> list[AndroidPart]:
    """Windows 的 Android 工具链由编辑器安装包自带，不需要合成"""
    if platform is Platform.LINUX:
        return _linux_parts(version)
    if platform is Platform.MAC:
        return _mac_parts(version)
    return []


def open_jdk_part(platform: Platform) -> AndroidPart | None:
    if platform is Platform.LINUX:
        return AndroidPart(
            C.ANDROID_OPEN_JDK, "OpenJDK", OPEN_JDK_URL.format(os="linux"),
            "8u172-b11", 162_000_000, 73_170_000, main=True,
        )
    if platform is Platform.MAC:
        return AndroidPart(
            C.ANDROID_OPEN_JDK, "OpenJDK", OPEN_JDK_URL.format(os="mac"),
            "8u172-b11", 72_200_000, 165_000_000, main=True,
        )
    return None


def _part_module(
    part: AndroidPart, version: Version, platform: Platform, description: str,
) -> Module:
    component = part.component
    if part.main:
        sync = ComponentId.of(C.ANDROID)
    else:
        parent = sync_parent_of(component)
        sync = ComponentId.of(parent) if parent else None
    eula = part.main and component is C.ANDROID_SDK_NDK_TOOLS
    return Module(
        id=ComponentId.of(component),
        title=part.name,
        description=description,
        category=category_of(component, version),
        download_url=part.url,
        download_size=part.download_size,
        installed_size=part.installed_size,
        destination=destination_template(component, platform),
        rename_from=part.rename_from,
        rename_to=part.rename_to,
        sync_parent=sync,
        visible=is_visible(component),
        eula_url=ANDROID_EULA_URL if eula else None,
        eula_label=ANDROID_EULA_LABEL if eula else None,
        eula_message=ANDROID_EULA_MESSAGE if eula else None,
    )


# =========================================================================
# 文档与语言包
# =========================================================================


def documentation_module(version: Version, platform: Platform) -> Module:
    return Module(
        id=ComponentId.of(C.DOCUMENTATION),
        title="Documentation",
        description="Offline Documentation",
        category=category_of(C.DOCUMENTATION, version),
        download_url=DOCS_URL.format(major=version.major, minor=version.minor),
        destination=destination_template(C.DOCUMENTATION, platform),
        visible=is_visible(C.DOCUMENTATION),
    )


def locales_for(version: Version) -> list[str]:
    """按版本可用的语言包 locale，顺序固定"""
    locales: list[str] = []
    if version >= _V2018_1:
        locales += ["ja", "ko"]
    if version >= _V2018_2:
        locales.append("zh-cn")
    if version >= _V2019_1_LOCALES:
        locales.remove("zh-cn")
        locales += ["zh-hans", "zh-hant"]
    return locales


def language_module(locale: str, version: Version, platform: Platform) -> Module:
    component = Component(f"language-{locale}")
    name = LOCALE_NAMES[locale]
    return Module(
        id=ComponentId.of(component),
        title=name,
        description=name,
        category=category_of(component, version),
        download_url=LANGUAGE_URL.format(
            major=version.major, minor=version.minor, locale=locale,
        ),
        destination=destination_template(component, platform),
        visible=is_visible(component),
        installer_type="TEXT",
    )


# =========================================================================
# 入口
# =========================================================================


def synthesize(manifest: Manifest, platform: Platform) -> Manifest:
    """补齐派生模块，原地修改并返回 manifest"""
    version = manifest.version
    docs = ComponentId.of(C.DOCUMENTATION)
    if manifest.shape == "ini" and version.major >= 2018 and docs in manifest:
        # INI 中 2018 以后的文档地址已失效
        del manifest.modules[docs]

    added: list[Module] = []
    if version.major >= 2018:
        added.append(documentation_module(version, platform))

    if ComponentId.of(C.ANDROID) in manifest:
        if version >= _V2019_1:
            for part in android_parts(version, platform):
                added.append(_part_module(
                    part, version, platform, f"{part.name} {part.version}",
                ))
        jdk = open_jdk_part(platform)
        if version >= _V2019_2 and jdk is not None:
            added.append(_part_module(
                jdk, version, platform, f"Android Open JDK {jdk.version}",
            ))

    for locale in locales_for(version):
        added.append(language_module(locale, version, platform))

    for module in added:
        if module.id in manifest.modules:
            continue
        manifest.modules[module.id] = module
        logger.debug("合成派生模块: %s", module.id)
    return manifest
