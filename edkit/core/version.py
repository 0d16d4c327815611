"""编辑器版本模型

职责:
- 解析 `2021.3.55f1` 形式的版本号，可带 `(f87d5274e360)` 修订哈希
- 按 (major, minor, patch) → 发布类型 → revision 的全序比较
- 从任意文本中提取第一个合法版本号

修订哈希只是元数据，不参与相等与排序。
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from enum import Enum

from edkit.core.exceptions import ParseError

_VERSION_RE = re.compile(
    r"^(\d{1,4})\.(\d{1,4})\.(\d{1,4})([abpf])(\d{1,4})"
    r"(?:\s*\(([0-9a-fA-F]{12})\))?$"
)
_CONTAINED_RE = re.compile(r"\b\d+\.\d+\.\d+[fabp]\d+\b")


class ReleaseType(Enum):
    """发布类型，声明顺序即排序顺序: alpha < beta < patch < final"""

    ALPHA = "a"
    BETA = "b"
    PATCH = "p"
    FINAL = "f"

    @property
    def rank(self) -> int:
        return _RELEASE_RANK[self]

    @property
    def long_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_str(cls, text: str) -> ReleaseType:
        """接受单字母 (a/b/p/f) 或全称 (alpha/beta/patch/final)"""
        key = text.strip().lower()
        for member in cls:
            if key in (member.value, member.long_name):
                return member
        raise ParseError(f"未知的发布类型: {text!r}")


_RELEASE_RANK = {rt: i for i, rt in enumerate(ReleaseType)}


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """不可变版本值；相等与排序只看 major/minor/patch/release_type/revision"""

    major: int
    minor: int
    patch: int
    release_type: ReleaseType = ReleaseType.FINAL
    revision: int = 0
    revision_hash: str | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """解析版本字符串，格式不符抛 ParseError"""
        if not isinstance(text, str):
            raise ParseError(f"版本号必须是字符串: {text!r}")
        m = _VERSION_RE.match(text.strip())
        if m is None:
            raise ParseError(f"版本号格式错误: {text!r}")
        major, minor, patch, letter, revision, rev_hash = m.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            release_type=ReleaseType(letter),
            revision=int(revision),
            revision_hash=rev_hash.lower() if rev_hash else None,
        )

    @classmethod
    def from_string_containing(cls, text: str) -> Version:
        """返回文本中第一个可解析的版本号"""
        for m in _CONTAINED_RE.finditer(text):
            try:
                return cls.parse(m.group(0))
            except ParseError:
                continue
        raise ParseError(f"文本中未找到合法版本号: {text!r}")

    def with_hash(self, revision_hash: str) -> Version:
        return Version(
            self.major, self.minor, self.patch,
            self.release_type, self.revision, revision_hash,
        )

    def format(self, *, with_hash: bool = False) -> str:
        base = (
            f"{self.major}.{self.minor}.{self.patch}"
            f"{self.release_type.value}{self.revision}"
        )
        if with_hash and self.revision_hash:
            return f"{base} ({self.revision_hash})"
        return base

    @property
    def base(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def short_revision(self) -> str:
        return self.revision_hash or "nohash"

    def _key(self) -> tuple[int, int, int, int, int]:
        return (
            self.major, self.minor, self.patch,
            self.release_type.rank, self.revision,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.format()


def compare(a: Version, b: Version) -> int:
    """三路比较: a<b 返回 -1，相等返回 0，a>b 返回 1"""
    if a < b:
        return -1
    if a == b:
        return 0
    return 1
