"""
主程序入口

配置日志并启动 REST API 服务。
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from .config import AppConfig, load_config


def setup_logging(config: AppConfig):
    """配置日志"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if config.logging.file:
        log_path = Path(config.logging.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("paramiko").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main(config_path: Optional[str] = None):
    """加载配置、配置日志并运行 API 服务"""
    from .api.app import create_app

    config = load_config(config_path)
    setup_logging(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Config loaded: API={config.api.host}:{config.api.port}")
    logger.info(f"Compose cache: {config.discovery.cache_path}")

    app = create_app(config)
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_level=config.logging.level.lower())


def cli():
    """命令行入口"""
    parser = argparse.ArgumentParser(prog="dpanel-client")
    parser.add_argument("-c", "--config", help="配置文件路径（默认 $DPANEL_CONFIG 或 ./config.yaml）")
    args = parser.parse_args()

    try:
        main(args.config)
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
