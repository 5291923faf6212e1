"""
连接管理 API

测试连接、连接、断开、执行任意命令。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...errors import PanelError
from ...models import ConnectionResult, ServerProfile
from ...service import ControlPlane
from ..dependencies import get_control_plane, to_http_error

router = APIRouter(prefix="/api/connection", tags=["connection"])


class ConnectionStatus(BaseModel):
    connected: bool
    host: str = ""


class CommandRequest(BaseModel):
    command: str


class CommandResponse(BaseModel):
    output: str


@router.get("", response_model=ConnectionStatus)
async def get_status(plane: ControlPlane = Depends(get_control_plane)):
    """当前连接状态"""
    connected = plane.is_connected()
    return ConnectionStatus(connected=connected, host=(plane.target or "") if connected else "")


@router.post("/test", response_model=ConnectionResult)
async def test_connection(profile: ServerProfile, plane: ControlPlane = Depends(get_control_plane)):
    """测试连接（不替换当前会话）"""
    return await plane.test_connection(profile)


@router.post("", response_model=ConnectionResult)
async def connect(profile: ServerProfile, plane: ControlPlane = Depends(get_control_plane)):
    """连接到服务器，替换当前会话"""
    return await plane.connect(profile)


@router.delete("")
async def disconnect(plane: ControlPlane = Depends(get_control_plane)):
    """断开当前会话"""
    await plane.disconnect()
    return {"message": "Disconnected"}


@router.post("/exec", response_model=CommandResponse)
async def execute_command(req: CommandRequest, plane: ControlPlane = Depends(get_control_plane)):
    """在当前会话上执行命令"""
    try:
        output = await plane.execute_command(req.command)
    except PanelError as e:
        raise to_http_error(e)
    return CommandResponse(output=output)
