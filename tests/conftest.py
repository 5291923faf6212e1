"""
测试公共夹具

提供两类假对象（不访问网络）：
- ScriptedTransport: 模拟 paramiko.Transport，供 RemoteSession 使用
- FakeSession: 模拟 RemoteSession，供聚合器和扫描器使用
"""

import io
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import paramiko
import pytest

# 添加项目路径到 sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dpanel_client.errors import ChannelError, NotConnectedError

Reply = Union[str, tuple, Exception]


def _normalize(reply: Reply):
    """把回复统一成 (stdout, stderr, exit_status)"""
    if isinstance(reply, str):
        return reply, "", 0
    return reply


class FakeChannel:
    """
    假 channel：命令在 exec_command 后经过 delay 秒才"完成"，
    之前 recv_ready / exit_status_ready 都返回 False（与 paramiko 的非阻塞轮询一致）
    """

    def __init__(self, transport: "ScriptedTransport"):
        self.transport = transport
        self.timeout = None
        self.command = None
        self.closed = False
        self._ready_at = 0.0
        self._stdout = io.BytesIO()
        self._stderr = io.BytesIO()
        self._exit_status = -1

    def settimeout(self, timeout):
        self.timeout = timeout

    def exec_command(self, command: str):
        self.command = command
        self.transport.commands.append(command)
        reply = self.transport.handler(command)
        if isinstance(reply, BaseException):
            raise reply
        stdout, stderr, self._exit_status = _normalize(reply)
        self._stdout = io.BytesIO(stdout.encode("utf-8"))
        self._stderr = io.BytesIO(stderr.encode("utf-8"))
        self._ready_at = time.monotonic() + self.transport.delay_for(command)

    def _finished(self) -> bool:
        return time.monotonic() >= self._ready_at

    def _blocked(self) -> bool:
        """远端写标准错误时窗口已满：在读走 stderr 之前，stdout 和退出码都不会到达"""
        window = self.transport.stderr_window
        unread = len(self._stderr.getbuffer()) - self._stderr.tell()
        return window is not None and unread > window

    def _pending(self, stream: io.BytesIO) -> bool:
        return stream.tell() < len(stream.getbuffer())

    def recv_ready(self) -> bool:
        return (
            not self.closed
            and self._finished()
            and not self._blocked()
            and self._pending(self._stdout)
        )

    def recv(self, nbytes: int) -> bytes:
        return self._stdout.read(nbytes)

    def recv_stderr_ready(self) -> bool:
        return not self.closed and self._finished() and self._pending(self._stderr)

    def recv_stderr(self, nbytes: int) -> bytes:
        return self._stderr.read(nbytes)

    def exit_status_ready(self) -> bool:
        return self.closed or (self._finished() and not self._blocked())

    def recv_exit_status(self) -> int:
        return -1 if not self._finished() else self._exit_status

    def close(self):
        with self.transport.state_lock:
            if self.closed:
                return
            self.closed = True
            self.transport.open_channels -= 1


class ScriptedTransport:
    """按 handler 回复命令的假 Transport"""

    def __init__(
        self,
        addr,
        handler: Callable[[str], Reply],
        fail_handshake: bool = False,
        reject_auth: bool = False,
        authenticated_after_auth: bool = True,
        exec_delay: float = 0.0,
        delays: Optional[Dict[str, float]] = None,
        stderr_window: Optional[int] = None,
    ):
        self.addr = addr
        self.handler = handler
        self.fail_handshake = fail_handshake
        self.reject_auth = reject_auth
        self.authenticated_after_auth = authenticated_after_auth
        self.exec_delay = exec_delay
        self.delays = dict(delays or {})
        self.stderr_window = stderr_window
        self.channels: List[FakeChannel] = []

        self.authenticated = False
        self.closed = False
        self.keepalive = None
        self.auth_calls: List[tuple] = []
        self.commands: List[str] = []
        self.state_lock = threading.Lock()
        self.open_channels = 0
        self.max_open_channels = 0

    def start_client(self, timeout=None):
        if self.fail_handshake:
            raise paramiko.SSHException("Error reading SSH protocol banner")

    def _auth(self, call):
        self.auth_calls.append(call)
        if self.reject_auth:
            raise paramiko.AuthenticationException("Authentication failed.")
        self.authenticated = self.authenticated_after_auth

    def auth_password(self, username, password):
        self._auth(("password", username, password))

    def auth_publickey(self, username, key):
        self._auth(("publickey", username, key))

    def is_authenticated(self) -> bool:
        return self.authenticated and not self.closed

    def set_keepalive(self, interval):
        self.keepalive = interval

    def delay_for(self, command: str) -> float:
        return self.delays.get(command, self.exec_delay)

    def open_session(self) -> FakeChannel:
        channel = FakeChannel(self)
        with self.state_lock:
            self.open_channels += 1
            self.max_open_channels = max(self.max_open_channels, self.open_channels)
            self.channels.append(channel)
        return channel

    def close(self):
        # 与 paramiko 一致：关闭 Transport 会关闭其上所有 channel
        self.closed = True
        for channel in list(self.channels):
            channel.close()


class TransportFactory:
    """可配置的 Transport 工厂，记录创建过的实例"""

    def __init__(self):
        self.handler: Callable[[str], Reply] = lambda command: ""
        self.options: Dict = {}
        self.refuse: Optional[Exception] = None
        self.created: List[ScriptedTransport] = []

    def __call__(self, addr):
        if self.refuse is not None:
            raise self.refuse
        transport = ScriptedTransport(addr, self.handler, **self.options)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> ScriptedTransport:
        return self.created[-1]


class FakeSession:
    """
    假 RemoteSession

    replies: 命令 -> 回复（字符串或异常）；未配置的命令交给 default 处理
    """

    def __init__(self, host: str = "10.0.0.5", replies: Optional[Dict[str, Reply]] = None, default=None):
        self.host = host
        self.replies = dict(replies or {})
        self.default = default
        self.connected = True
        self.commands: List[str] = []
        self.delays: Dict[str, float] = {}
        self._lock = threading.Lock()

    def is_connected(self) -> bool:
        return self.connected

    def execute(self, command: str, timeout=None, cancel_event=None) -> str:
        with self._lock:
            self.commands.append(command)
        if not self.connected:
            raise NotConnectedError()
        if command in self.delays:
            waiter = cancel_event or threading.Event()
            if waiter.wait(self.delays[command]):
                raise ChannelError(f"Command cancelled: {command}")
        if command in self.replies:
            reply = self.replies[command]
        elif self.default is not None:
            reply = self.default(command)
        else:
            raise ChannelError(f"unexpected command: {command}")
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def count(self, prefix: str) -> int:
        return sum(1 for c in self.commands if c.startswith(prefix))


@pytest.fixture
def transport_factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def fake_session_cls():
    return FakeSession
