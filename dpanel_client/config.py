"""
配置加载模块

从 config.yaml 加载配置，支持 Pydantic 验证和环境变量覆盖。

环境变量使用 DPANEL_ 前缀，嵌套字段用双下划线分隔，例如：
    DPANEL_DISCOVERY__TTL_SECONDS=3600
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SSHConfig(BaseModel):
    """SSH 会话配置"""
    connect_timeout: float = 10.0
    keepalive_interval: int = 30
    # 通过 API 执行任意命令的期限（秒）
    command_timeout: float = 60.0


class MetricsConfig(BaseModel):
    """指标采集配置"""
    history_size: int = 10
    command_timeout: float = 15.0
    # 整个快照的总预算（秒）
    snapshot_timeout: float = 60.0


class DiscoveryConfig(BaseModel):
    """Compose 发现缓存配置"""
    cache_dir: str = "~/.config/dpanel"
    ttl_seconds: int = 86400
    scan_paths: List[str] = ["/home/*/", "/opt/", "/srv/"]
    max_depth: int = 3
    # 每条 find / cat 命令的期限（秒）
    command_timeout: float = 30.0
    filenames: List[str] = [
        "docker-compose.yml",
        "docker-compose.yaml",
        "compose.yml",
        "compose.yaml",
    ]

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()


class APIConfig(BaseModel):
    """API 服务配置"""
    host: str = "127.0.0.1"
    port: int = 8765
    cors_origins: List[str] = ["http://localhost:1420", "http://127.0.0.1:1420"]


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseSettings):
    """应用配置（完整配置）"""

    model_config = SettingsConfigDict(
        env_prefix="DPANEL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    ssh: SSHConfig = Field(default_factory=SSHConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # 环境变量优先于 YAML 文件
        return env_settings, init_settings, file_secret_settings


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    加载配置文件

    优先级：
    1. 参数指定的路径
    2. 环境变量 DPANEL_CONFIG
    3. 当前目录下的 config.yaml

    文件不存在时返回默认配置。
    """
    if config_path is None:
        config_path = os.environ.get("DPANEL_CONFIG", "config.yaml")

    config_file = Path(config_path).expanduser()

    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
        if raw_config:
            log_file = (raw_config.get("logging") or {}).get("file")
            if log_file and not Path(log_file).expanduser().is_absolute():
                # 日志路径相对于配置文件所在目录
                raw_config["logging"]["file"] = str(config_file.parent / log_file)
            return AppConfig(**raw_config)

    return AppConfig()
