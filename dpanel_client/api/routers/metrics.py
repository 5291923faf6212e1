"""
系统指标 API
"""

from fastapi import APIRouter, Depends

from ...errors import PanelError
from ...models import SystemMetrics
from ...service import ControlPlane
from ..dependencies import get_control_plane, to_http_error

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("", response_model=SystemMetrics)
async def get_metrics(plane: ControlPlane = Depends(get_control_plane)):
    """
    获取系统指标快照

    返回 CPU、内存、磁盘、负载、网络等信息及最近的趋势数据
    """
    try:
        return await plane.get_metrics_snapshot()
    except PanelError as e:
        raise to_http_error(e)
