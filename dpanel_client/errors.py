"""
异常定义

网络 / 认证 / 通道错误向调用方冒泡；解析错误和缓存 IO 错误在发生处被吸收。
"""


class PanelError(Exception):
    """所有控制面错误的基类，消息即为可直接展示的错误文本"""


class RemoteConnectionError(PanelError):
    """TCP 连接或 SSH 握手失败"""


class NotConnectedError(RemoteConnectionError):
    """当前没有已认证的会话"""

    def __init__(self, message: str = "Not connected"):
        super().__init__(message)


class AuthenticationError(PanelError):
    """凭据被拒绝，或握手后认证检查失败"""


class SessionStateError(PanelError):
    """会话状态不允许该操作（例如已连接时再次 connect）"""


class ChannelError(PanelError):
    """命令执行 / 读取 / 关闭失败且没有任何可用输出"""

    def __init__(self, message: str, exit_status: int = -1):
        super().__init__(message)
        self.exit_status = exit_status


class ParseError(PanelError):
    """数值或文本字段格式错误（仅在解析器内部使用）"""


class CacheIOError(PanelError):
    """缓存文件读写失败"""
