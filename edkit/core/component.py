"""组件标识与静态元数据

职责:
- Component: 已知可安装单元的封闭枚举（编辑器、平台支持、工具链子组件、语言包）
- ComponentId: 已知组件或未知字符串的包装，未知 id 原样往返、不报错
- 每个组件的静态属性: INI 段名、默认同步父组件、可见性、分类、各平台安装路径
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum

from edkit.core.version import Version

BASE_PATH = "{UNITY_PATH}"
EDITOR_RECORD_ID = "Unity"
_DOCS_SPLIT = Version.parse("2018.2.0a0")


class Platform(Enum):
    LINUX = "linux"
    MAC = "mac"
    WINDOWS = "windows"

    @classmethod
    def current(cls) -> Platform:
        if sys.platform.startswith("win"):
            return cls.WINDOWS
        if sys.platform == "darwin":
            return cls.MAC
        return cls.LINUX

    @classmethod
    def from_str(cls, text: str) -> Platform:
        key = text.strip().lower()
        aliases = {"osx": "mac", "macos": "mac", "mac_os": "mac", "win": "windows"}
        return cls(aliases.get(key, key))

    @property
    def ini_token(self) -> str:
        return {"linux": "linux", "mac": "osx", "windows": "win"}[self.value]

    @property
    def live_token(self) -> str:
        return {"linux": "LINUX", "mac": "MAC_OS", "windows": "WINDOWS"}[self.value]


class Component(Enum):
    EDITOR = "editor"
    MONO = "mono"
    VISUAL_STUDIO = "visualstudio"
    MONO_DEVELOP = "monodevelop"
    DOCUMENTATION = "documentation"
    STANDARD_ASSETS = "standardassets"
    EXAMPLE_PROJECTS = "exampleprojects"
    EXAMPLE = "example"
    ANDROID = "android"
    ANDROID_SDK_BUILD_TOOLS = "android-sdk-build-tools"
    ANDROID_SDK_PLATFORMS = "android-sdk-platforms"
    ANDROID_SDK_PLATFORM_TOOLS = "android-sdk-platform-tools"
    ANDROID_SDK_NDK_TOOLS = "android-sdk-ndk-tools"
    ANDROID_NDK = "android-ndk"
    ANDROID_OPEN_JDK = "android-open-jdk"
    IOS = "ios"
    TVOS = "tvos"
    APPLE_TV = "appletv"
    WEBGL = "webgl"
    LINUX = "linux"
    LINUX_MONO = "linux-mono"
    LINUX_IL2CPP = "linux-il2cpp"
    LINUX_SERVER = "linux-server"
    MAC = "mac"
    MAC_IL2CPP = "mac-il2cpp"
    MAC_MONO = "mac-mono"
    MAC_SERVER = "mac-server"
    SAMSUNGTV = "samsungtv"
    SAMSUNG_TV = "samsung-tv"
    TIZEN = "tizen"
    VUFORIA = "vuforia"
    VUFORIA_AR = "vuforia-ar"
    WINDOWS = "windows"
    WINDOWS_MONO = "windows-mono"
    WINDOWS_IL2CPP = "windows-il2cpp"
    WINDOWS_SERVER = "windows-server"
    UWP = "universal-windows-platform"
    UWP_IL2CPP = "uwp-il2cpp"
    UWP_NET = "uwp-.net"
    FACEBOOK = "facebook"
    FACEBOOK_GAMES = "facebook-games"
    FACEBOOK_GAMEROOM = "facebookgameroom"
    LUMIN = "lumin"
    VISIONOS = "visionos"
    LANGUAGE_JA = "language-ja"
    LANGUAGE_KO = "language-ko"
    LANGUAGE_FR = "language-fr"
    LANGUAGE_ES = "language-es"
    LANGUAGE_ZH_CN = "language-zh-cn"
    LANGUAGE_ZH_HANT = "language-zh-hant"
    LANGUAGE_ZH_HANS = "language-zh-hans"
    LANGUAGE_RU = "language-ru"

    @property
    def is_language(self) -> bool:
        return self.value.startswith("language-")

    @property
    def locale(self) -> str | None:
        return self.value[len("language-"):] if self.is_language else None

    @property
    def ini_name(self) -> str:
        return _INI_NAMES.get(self, self.value.title())


C = Component

# INI 段名（匹配时忽略大小写），未列出者为 id 首字母大写
_INI_NAMES: dict[Component, str] = {
    C.EDITOR: "Unity",
    C.MONO: "Mono",
    C.VISUAL_STUDIO: "VisualStudio",
    C.MONO_DEVELOP: "MonoDevelop",
    C.STANDARD_ASSETS: "StandardAssets",
    C.EXAMPLE_PROJECTS: "ExampleProjects",
    C.ANDROID_SDK_BUILD_TOOLS: "Android-Sdk-Build-Tools",
    C.ANDROID_SDK_PLATFORMS: "Android-Sdk-Platforms",
    C.ANDROID_SDK_PLATFORM_TOOLS: "Android-Sdk-Platform-Tools",
    C.ANDROID_SDK_NDK_TOOLS: "Android-Sdk-Ndk-Tools",
    C.ANDROID_NDK: "Android-Ndk",
    C.ANDROID_OPEN_JDK: "Android-Open-Jdk",
    C.IOS: "iOS",
    C.TVOS: "tvOS",
    C.APPLE_TV: "AppleTV",
    C.WEBGL: "WebGL",
    C.LINUX_MONO: "Linux-Mono",
    C.LINUX_IL2CPP: "Linux-IL2CPP",
    C.LINUX_SERVER: "Linux-Server",
    C.MAC_IL2CPP: "Mac-IL2CPP",
    C.MAC_MONO: "Mac-Mono",
    C.MAC_SERVER: "Mac-Server",
    C.SAMSUNGTV: "SamsungTV",
    C.SAMSUNG_TV: "Samsung-TV",
    C.VUFORIA_AR: "Vuforia-AR",
    C.WINDOWS_MONO: "Windows-Mono",
    C.WINDOWS_IL2CPP: "Windows-IL2CPP",
    C.WINDOWS_SERVER: "Windows-Server",
    C.UWP: "Universal-Windows-Platform",
    C.UWP_IL2CPP: "UWP-IL2CPP",
    C.UWP_NET: "UWP-.NET",
    C.FACEBOOK_GAMES: "Facebook-Games",
    C.FACEBOOK_GAMEROOM: "FacebookGameroom",
    C.VISIONOS: "VisionOS",
}

_SYNC_PARENTS: dict[Component, Component] = {
    C.MONO: C.VISUAL_STUDIO,
    C.ANDROID_SDK_NDK_TOOLS: C.ANDROID,
    C.ANDROID_OPEN_JDK: C.ANDROID,
    C.ANDROID_SDK_BUILD_TOOLS: C.ANDROID_SDK_NDK_TOOLS,
    C.ANDROID_SDK_PLATFORM_TOOLS: C.ANDROID_SDK_NDK_TOOLS,
    C.ANDROID_SDK_PLATFORMS: C.ANDROID_SDK_NDK_TOOLS,
    C.ANDROID_NDK: C.ANDROID_SDK_NDK_TOOLS,
}

_HIDDEN = frozenset({
    C.MONO,
    C.FACEBOOK_GAMEROOM,
    C.ANDROID_SDK_PLATFORM_TOOLS,
    C.ANDROID_SDK_BUILD_TOOLS,
    C.ANDROID_SDK_PLATFORMS,
    C.ANDROID_NDK,
})

_DOC_LIKE = frozenset({
    C.DOCUMENTATION, C.STANDARD_ASSETS, C.EXAMPLE_PROJECTS, C.EXAMPLE,
})

LOCALE_NAMES: dict[str, str] = {
    "ja": "日本語",
    "ko": "한국어",
    "fr": "Français",
    "es": "Español",
    "zh-cn": "简体中文",
    "zh-hant": "繁體中文",
    "zh-hans": "简体中文",
    "ru": "Русский",
}

# ---- 分类 ----

CATEGORY_DEV_TOOLS = "Dev tools"
CATEGORY_PLUGINS = "Plugins"
CATEGORY_DOCUMENTATION = "Documentation"
CATEGORY_COMPONENTS = "Components"
CATEGORY_LANGUAGE_PACKS = "Language packs (Preview)"
CATEGORY_PLATFORMS = "Platforms"

# 发布树形态的分类枚举 → 展示名
LIVE_CATEGORIES: dict[str, str] = {
    "DEV_TOOL": CATEGORY_DEV_TOOLS,
    "PLUGIN": CATEGORY_PLUGINS,
    "DOCUMENTATION": CATEGORY_DOCUMENTATION,
    "COMPONENT": CATEGORY_COMPONENTS,
    "LANGUAGE_PACK": CATEGORY_LANGUAGE_PACKS,
    "PLATFORM": CATEGORY_PLATFORMS,
}


# =========================================================================
# 各平台安装路径（相对编辑器根目录）
# =========================================================================

_PE = "Editor/Data/PlaybackEngines"
_ANDROID = f"{_PE}/AndroidPlayer"

_LINUX_PATHS: dict[Component, str] = {
    C.EDITOR: "",
    C.DOCUMENTATION: "Editor/Data/Documentation",
    C.ANDROID: _ANDROID,
    C.ANDROID_SDK_BUILD_TOOLS: f"{_ANDROID}/SDK/build-tools",
    C.ANDROID_SDK_PLATFORMS: f"{_ANDROID}/SDK/platforms",
    C.ANDROID_SDK_PLATFORM_TOOLS: f"{_ANDROID}/SDK",
    C.ANDROID_SDK_NDK_TOOLS: f"{_ANDROID}/SDK",
    C.ANDROID_NDK: f"{_ANDROID}/NDK",
    C.ANDROID_OPEN_JDK: f"{_ANDROID}/OpenJDK",
    C.IOS: f"{_PE}/iOSSupport",
    C.TVOS: f"{_PE}/AppleTVSupport",
    C.APPLE_TV: f"{_PE}/AppleTVSupport",
    C.LINUX: f"{_PE}/LinuxStandaloneSupport",
    C.LINUX_MONO: f"{_PE}/LinuxStandaloneSupport",
    C.LINUX_IL2CPP: f"{_PE}/LinuxStandaloneSupport",
    C.LINUX_SERVER: f"{_PE}/LinuxStandaloneSupport",
    C.MAC: f"{_PE}/MacStandaloneSupport",
    C.MAC_IL2CPP: f"{_PE}/MacStandaloneSupport",
    C.MAC_MONO: f"{_PE}/MacStandaloneSupport",
    C.MAC_SERVER: f"{_PE}/MacStandaloneSupport",
    C.SAMSUNGTV: f"{_PE}/STVPlayer",
    C.SAMSUNG_TV: f"{_PE}/STVPlayer",
    C.TIZEN: f"{_PE}/TizenPlayer",
    C.VUFORIA: f"{_PE}/VuforiaSupport",
    C.VUFORIA_AR: f"{_PE}/VuforiaSupport",
    C.WEBGL: f"{_PE}/WebGLSupport",
    C.WINDOWS: f"{_PE}/WindowsStandaloneSupport",
    C.WINDOWS_MONO: f"{_PE}/WindowsStandaloneSupport",
    C.WINDOWS_IL2CPP: f"{_PE}/WindowsStandaloneSupport",
    C.WINDOWS_SERVER: f"{_PE}/WindowsStandaloneSupport",
    C.FACEBOOK: f"{_PE}/Facebook",
    C.FACEBOOK_GAMES: f"{_PE}/Facebook",
}

_MAC_PE = "PlaybackEngines"
_MAC_ANDROID = f"{_MAC_PE}/AndroidPlayer"

_MAC_PATHS: dict[Component, str] = {
    C.EDITOR: "",
    C.MONO_DEVELOP: "",
    C.DOCUMENTATION: "",
    C.STANDARD_ASSETS: "Standard Assets",
    C.ANDROID: _MAC_ANDROID,
    C.ANDROID_SDK_BUILD_TOOLS: f"{_MAC_ANDROID}/SDK/build-tools",
    C.ANDROID_SDK_PLATFORMS: f"{_MAC_ANDROID}/SDK/platforms",
    C.ANDROID_SDK_PLATFORM_TOOLS: f"{_MAC_ANDROID}/SDK",
    C.ANDROID_SDK_NDK_TOOLS: f"{_MAC_ANDROID}/SDK",
    C.ANDROID_NDK: f"{_MAC_ANDROID}/NDK",
    C.ANDROID_OPEN_JDK: f"{_MAC_ANDROID}/OpenJDK",
    C.IOS: f"{_MAC_PE}/iOSSupport",
    C.TVOS: f"{_MAC_PE}/AppleTVSupport",
    C.APPLE_TV: f"{_MAC_PE}/AppleTVSupport",
    C.LINUX: f"{_MAC_PE}/LinuxStandaloneSupport",
    C.LINUX_MONO: f"{_MAC_PE}/LinuxStandaloneSupport",
    C.LINUX_IL2CPP: f"{_MAC_PE}/LinuxStandaloneSupport",
    C.LINUX_SERVER: f"{_MAC_PE}/LinuxStandaloneSupport",
    C.MAC: "Unity.app/Contents/PlaybackEngines/MacStandaloneSupport",
    C.MAC_IL2CPP: "Unity.app/Contents/PlaybackEngines/MacStandaloneSupport",
    C.MAC_SERVER: "Unity.app/Contents/PlaybackEngines/MacStandaloneSupport",
    C.SAMSUNGTV: f"{_MAC_PE}/STVPlayer",
    C.SAMSUNG_TV: f"{_MAC_PE}/STVPlayer",
    C.TIZEN: f"{_MAC_PE}/TizenPlayer",
    C.VUFORIA: f"{_MAC_PE}/VuforiaSupport",
    C.VUFORIA_AR: f"{_MAC_PE}/VuforiaSupport",
    C.WEBGL: f"{_MAC_PE}/WebGLSupport",
    C.WINDOWS: f"{_MAC_PE}/WindowsStandaloneSupport",
    C.WINDOWS_MONO: f"{_MAC_PE}/WindowsStandaloneSupport",
    C.WINDOWS_SERVER: f"{_MAC_PE}/WindowsStandaloneSupport",
    C.FACEBOOK: f"{_MAC_PE}/Facebook",
    C.FACEBOOK_GAMES: f"{_MAC_PE}/Facebook",
    C.LUMIN: f"{_MAC_PE}/LuminSupport",
}

_WINDOWS_PATHS: dict[Component, str] = {
    **_LINUX_PATHS,
    C.MONO: "",
    C.MONO_DEVELOP: "",
    C.DOCUMENTATION: "Editor/Data",
    C.STANDARD_ASSETS: "Editor",
    C.UWP: f"{_PE}/MetroSupport",
    C.UWP_IL2CPP: f"{_PE}/MetroSupport",
    C.UWP_NET: f"{_PE}/MetroSupport",
}

_LANGUAGE_PATHS: dict[Platform, str] = {
    Platform.LINUX: "Editor/Data/Localization",
    Platform.MAC: "Unity.app/Contents/Localization",
    Platform.WINDOWS: "Editor/Data/Localization",
}

_PATHS: dict[Platform, dict[Component, str]] = {
    Platform.LINUX: _LINUX_PATHS,
    Platform.MAC: _MAC_PATHS,
    Platform.WINDOWS: _WINDOWS_PATHS,
}


def sync_parent_of(component: Component) -> Component | None:
    return _SYNC_PARENTS.get(component)


def is_visible(component: Component) -> bool:
    return component not in _HIDDEN


def category_of(component: Component, version: Version) -> str:
    """组件分类；文档类组件从 2018.2 起单独归入 Documentation"""
    if component in (C.MONO_DEVELOP, C.VISUAL_STUDIO):
        return CATEGORY_DEV_TOOLS
    if component in (C.MONO, C.FACEBOOK_GAMEROOM):
        return CATEGORY_PLUGINS
    if component in _DOC_LIKE:
        if version >= _DOCS_SPLIT:
            return CATEGORY_DOCUMENTATION
        return CATEGORY_COMPONENTS
    if component.is_language:
        return CATEGORY_LANGUAGE_PACKS
    return CATEGORY_PLATFORMS


def install_path(component: Component, platform: Platform) -> str | None:
    """组件相对编辑器根目录的安装路径；None 表示没有固定位置"""
    if component.is_language:
        return _LANGUAGE_PATHS[platform]
    return _PATHS[platform].get(component)


def destination_template(component: Component, platform: Platform) -> str | None:
    """带 `{UNITY_PATH}` 前缀的安装目标模板

    iOS 的模板指向上一级目录，真正的 iOSSupport 在解析目标时再拼回。
    """
    path = install_path(component, platform)
    if path is None:
        return None
    if component is C.IOS:
        path = path.rsplit("/", 1)[0] if "/" in path else ""
    if path == "":
        return BASE_PATH
    if path.startswith("/"):
        return path
    return f"{BASE_PATH}/{path}"


# =========================================================================
# ComponentId
# =========================================================================

_LOOKUP: dict[str, Component] = {}
for _c in Component:
    _LOOKUP[_c.value] = _c
    _LOOKUP[_c.ini_name.lower()] = _c
_LOOKUP[EDITOR_RECORD_ID.lower()] = C.EDITOR


@dataclass(frozen=True)
class ComponentId:
    """组件标识: 已知组件或未知字符串

    未知 id 原样保存，按叶子节点处理，不参与默认同步关系。
    """

    name: str
    known: Component | None = None

    @classmethod
    def parse(cls, text: str) -> ComponentId:
        raw = text.strip()
        component = _LOOKUP.get(raw.lower())
        if component is None:
            return cls(name=raw)
        return cls.of(component)

    @classmethod
    def of(cls, component: Component) -> ComponentId:
        return cls(name=component.value, known=component)

    @property
    def is_editor(self) -> bool:
        return self.known is C.EDITOR

    @property
    def is_unknown(self) -> bool:
        return self.known is None

    @property
    def record_id(self) -> str:
        """installed-module 记录中使用的 id，编辑器为 `Unity`"""
        return EDITOR_RECORD_ID if self.is_editor else self.name

    def __str__(self) -> str:
        return self.name


EDITOR = ComponentId.of(C.EDITOR)
