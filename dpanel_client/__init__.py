"""
dpanel client - SSH 服务器控制面

负责：
- 维护到一台服务器的唯一已认证 SSH 会话
- 并发下发只读诊断命令，汇总系统指标快照并维护趋势历史
- 发现并缓存 docker compose 项目位置（内存 + JSON 文件，24 小时有效）
- 提供 REST API 给前端
"""

__version__ = "0.3.0"
