"""
宽松解析工具

远端命令输出不可信：字段缺失或格式错误时一律返回 0，而不是抛出异常。
"""

import logging
from typing import List

from ..errors import ParseError

logger = logging.getLogger(__name__)

# 注意：二进制单位（GiB/MiB/KiB）和十进制单位（GB/MB/KB）都按 1024 的幂计算
_MEMORY_UNITS = (
    ("GIB", 1024 ** 3),
    ("GB", 1024 ** 3),
    ("MIB", 1024 ** 2),
    ("MB", 1024 ** 2),
    ("KIB", 1024),
    ("KB", 1024),
    ("B", 1),
)


def to_float(token: str) -> float:
    """严格解析浮点数"""
    try:
        return float(token.strip())
    except (ValueError, AttributeError) as e:
        raise ParseError(f"not a number: {token!r}") from e


def to_int(token: str) -> int:
    """严格解析整数（允许 "12.0" 这类写法，截断小数部分）"""
    token = token.strip() if isinstance(token, str) else token
    try:
        return int(token)
    except (ValueError, TypeError):
        pass
    value = to_float(token)
    if value != value or value in (float("inf"), float("-inf")):
        raise ParseError(f"not a finite number: {token!r}")
    return int(value)


def float_or_zero(token: str) -> float:
    try:
        return to_float(token)
    except ParseError:
        return 0.0


def uint_or_zero(token: str) -> int:
    """解析非负整数，失败或负数时返回 0"""
    try:
        return max(0, to_int(token))
    except ParseError:
        return 0


def split_fields(output: str) -> List[str]:
    return output.strip().split()


def field(parts: List[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def parse_percent(text: str) -> float:
    """解析 "42%" / "42.5" 形式的百分比"""
    return float_or_zero(text.strip().rstrip("%"))


def parse_memory(mem_str: str) -> int:
    """
    解析带单位的内存字符串为字节数

    支持 "1.5GiB"、"1.5GB"、"100MiB"、"100 MB"、"512KiB"、"2048" 等格式，
    无单位时按字节处理，无法解析时返回 0。
    """
    text = mem_str.strip().upper()
    if not text:
        return 0

    for suffix, multiplier in _MEMORY_UNITS:
        if text.endswith(suffix):
            number = text[: -len(suffix)]
            break
    else:
        number, multiplier = text, 1

    value = float_or_zero(number)
    if value <= 0 or value != value:
        return 0
    return int(value * multiplier)
