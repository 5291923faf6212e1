"""
磁盘采集器

df 输出每个挂载点一行："挂载点 已用 总量 使用率%"
"""

from typing import List

from ..models import DiskUsage
from .base import CommandAdapter
from .parsing import parse_percent, uint_or_zero

DISK_COMMAND = "df -B1 | tail -n +2 | awk '{print $6,$3,$2,$5}' | grep -E '^/'"


def parse_disk_usage(output: str) -> List[DiskUsage]:
    """
    解析磁盘使用情况

    只接受以 / 开头的挂载点行，其余行（报错信息等）直接跳过
    """
    result = []

    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 4 or not parts[0].startswith("/"):
            continue

        result.append(DiskUsage(
            mount_point=parts[0],
            used=uint_or_zero(parts[1]),
            total=uint_or_zero(parts[2]),
            percent=parse_percent(parts[3]),
        ))

    return result


disk_adapter = CommandAdapter(
    name="disk",
    command=DISK_COMMAND,
    parse=parse_disk_usage,
    default=list,
)
