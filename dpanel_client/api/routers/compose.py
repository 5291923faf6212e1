"""
Compose 项目发现 API
"""

from typing import List

from fastapi import APIRouter, Depends

from ...errors import PanelError
from ...models import ComposeProject
from ...service import ControlPlane
from ..dependencies import get_control_plane, to_http_error

router = APIRouter(prefix="/api/compose", tags=["compose"])


@router.get("", response_model=List[ComposeProject])
async def find_compose_files(plane: ControlPlane = Depends(get_control_plane)):
    """发现 compose 项目（24 小时内使用缓存的文件位置）"""
    try:
        return await plane.scan_discovery()
    except PanelError as e:
        raise to_http_error(e)


@router.post("/refresh", response_model=List[ComposeProject])
async def refresh_compose_files(plane: ControlPlane = Depends(get_control_plane)):
    """丢弃缓存并重新扫描"""
    try:
        return await plane.refresh_discovery()
    except PanelError as e:
        raise to_http_error(e)
