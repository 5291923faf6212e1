"""
数据模型定义

包括：
- 连接配置（ServerProfile / AuthMethod）
- 系统指标快照（SystemMetrics 及其子结构）
- Compose 发现结果与缓存条目
"""

from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


# =============================================================================
# 连接配置
# =============================================================================

class PasswordAuth(BaseModel):
    """密码认证"""
    type: Literal["password"] = "password"
    password: str


class PrivateKeyAuth(BaseModel):
    """私钥认证"""
    type: Literal["private_key"] = "private_key"
    key_path: str = Field(..., description="私钥路径，支持 ~ 展开")
    passphrase: Optional[str] = None


AuthMethod = Annotated[Union[PasswordAuth, PrivateKeyAuth], Field(discriminator="type")]


class ServerProfile(BaseModel):
    """服务器连接配置"""
    id: str
    name: str
    host: str
    port: int = 22
    username: str
    auth_method: AuthMethod


class ConnectionResult(BaseModel):
    """连接结果"""
    success: bool
    message: str


# =============================================================================
# 系统指标
# =============================================================================

class DiskUsage(BaseModel):
    """单个挂载点的磁盘使用情况"""
    mount_point: str
    used: int = 0
    total: int = 0
    percent: float = 0.0


class NetworkStats(BaseModel):
    """网卡原始计数器（单调递增，重启后归零）"""
    bytes_sent: int = 0
    bytes_recv: int = 0
    packets_sent: int = 0
    packets_recv: int = 0
    interface: str = ""


class NetworkHistoryPoint(BaseModel):
    """两次采样之间的网络增量"""
    timestamp: int = Field(..., description="毫秒时间戳")
    bytes_sent: int = 0
    bytes_recv: int = 0
    packets_sent: int = 0
    packets_recv: int = 0


class SystemMetrics(BaseModel):
    """一次完整的系统指标快照（不持久化）"""
    cpu_percent: float = 0.0
    memory_used: int = 0
    memory_total: int = 0
    memory_percent: float = 0.0
    disk_usage: List[DiskUsage] = Field(default_factory=list)
    load_avg: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    uptime: int = 0
    process_count: int = 0
    network: NetworkStats = Field(default_factory=NetworkStats)
    cpu_history: List[float] = Field(default_factory=list)
    memory_history: List[float] = Field(default_factory=list)
    network_history: List[NetworkHistoryPoint] = Field(default_factory=list)


# =============================================================================
# Compose 发现
# =============================================================================

class CachedComposeProject(BaseModel):
    """缓存中的项目位置（只存位置，不存解析结果）"""
    name: str
    path: str
    compose_file: str


class ComposeCacheEntry(BaseModel):
    """单个服务器的缓存条目，对应磁盘上的一个 JSON 文件"""
    projects: List[CachedComposeProject] = Field(default_factory=list)
    last_scan: int = Field(..., ge=0, description="上次扫描时间（epoch 秒）")
    scan_paths: List[str] = Field(default_factory=list)


class ComposeProject(BaseModel):
    """返回给调用方的项目摘要，每次都从远端实时内容重新计算"""
    name: str
    path: str
    services: List[str] = Field(default_factory=list)
    content: str = ""
