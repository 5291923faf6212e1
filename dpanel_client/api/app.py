"""
FastAPI 应用配置

配置 CORS、路由注册，并把 ControlPlane 挂到 app.state 上。
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import AppConfig
from ..service import ControlPlane
from .dependencies import get_control_plane
from .routers import compose, connection, metrics

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, control_plane: Optional[ControlPlane] = None) -> FastAPI:
    """
    创建 FastAPI 应用实例

    Args:
        config: 应用配置，不指定则使用默认配置
        control_plane: 预先构造的 ControlPlane（测试时注入）
    """
    config = config or AppConfig()

    app = FastAPI(
        title="dpanel client",
        description="SSH 服务器控制面",
        version=__version__,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.state.control_plane = control_plane or ControlPlane(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(connection.router)
    app.include_router(metrics.router)
    app.include_router(compose.router)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Closing SSH session...")
        await app.state.control_plane.disconnect()

    @app.get("/api/health")
    async def health(plane: ControlPlane = Depends(get_control_plane)):
        """健康检查"""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "connected": plane.is_connected(),
        }

    return app
