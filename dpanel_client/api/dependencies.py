"""
依赖注入模块

提供 FastAPI 依赖项。
"""

from fastapi import HTTPException, Request, status

from ..errors import AuthenticationError, NotConnectedError, PanelError, SessionStateError
from ..service import ControlPlane


async def get_control_plane(request: Request) -> ControlPlane:
    """获取应用上的 ControlPlane 实例"""
    return request.app.state.control_plane


def to_http_error(error: PanelError) -> HTTPException:
    """把控制面错误转换为带可读 detail 的 HTTP 错误"""
    if isinstance(error, NotConnectedError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, AuthenticationError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, SessionStateError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=str(error))
