"""内容校验和

两种来源:
- 扁平目录: 32 位十六进制 md5
- 发布树目录: SRI 完整性字符串 `sha256-<base64>` / `sha384-` / `sha512-`
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from edkit.core.exceptions import ValidationError

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_HEX_LENGTHS = {32: "md5", 40: "sha1", 64: "sha256", 128: "sha512"}
_SRI_ALGORITHMS = ("sha256", "sha384", "sha512")
CHUNK_SIZE = 8192


class CheckSumResult(Enum):
    NO_CHECKSUM = "no_checksum"
    NO_FILE = "no_file"
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Checksum:
    algorithm: str
    digest: bytes

    @classmethod
    def parse(cls, text: str) -> Checksum:
        value = text.strip()
        if "-" in value and value.split("-", 1)[0].lower() in _SRI_ALGORITHMS:
            algorithm, encoded = value.split("-", 1)
            try:
                digest = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValidationError(f"无效的完整性字符串: {text}") from e
            return cls(algorithm.lower(), digest)
        if _HEX_RE.match(value) and len(value) in _HEX_LENGTHS:
            return cls(_HEX_LENGTHS[len(value)], bytes.fromhex(value))
        raise ValidationError(f"无法识别的校验和格式: {text}")

    @classmethod
    def md5(cls, hex_digest: str) -> Checksum:
        return cls("md5", bytes.fromhex(hex_digest))

    def file_digest(self, path: Path) -> bytes:
        h = hashlib.new(self.algorithm)
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                h.update(chunk)
        return h.digest()

    def matches(self, path: Path) -> bool:
        return self.file_digest(path) == self.digest

    def __str__(self) -> str:
        if self.algorithm in _SRI_ALGORITHMS:
            return f"{self.algorithm}-{base64.b64encode(self.digest).decode()}"
        return self.digest.hex()


def verify_file(
    path: Path, checksum: Checksum | None, *, enabled: bool = True,
) -> CheckSumResult:
    """校验本地文件；关闭校验时返回 SKIPPED"""
    if not path.is_file():
        return CheckSumResult.NO_FILE
    if not enabled:
        return CheckSumResult.SKIPPED
    if checksum is None:
        return CheckSumResult.NO_CHECKSUM
    if checksum.matches(path):
        return CheckSumResult.EQUAL
    return CheckSumResult.NOT_EQUAL
