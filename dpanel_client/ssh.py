"""
SSH 会话

一个 RemoteSession 持有到一台服务器的一条已认证 paramiko Transport，
对外只提供"执行命令并捕获输出"这一个阻塞操作。

并发约束：每次 execute 都必须先拿到会话锁，从打开 channel 到关闭 channel
期间一直持有。多个线程并发调用 execute 时会在锁上排队，因此上层的"并行"
只重叠调度与等待开销，不重叠与远端的实际请求/响应交换。

connect / disconnect 只使用一把短暂的状态锁，不等待正在执行的命令；
disconnect 关闭 Transport 后，运行中的命令会立即以 ChannelError 结束。
"""

import logging
import socket
import threading
import time
from pathlib import Path
from typing import Callable, Optional

import paramiko

from .errors import (
    AuthenticationError,
    ChannelError,
    NotConnectedError,
    RemoteConnectionError,
    SessionStateError,
)
from .models import PasswordAuth, PrivateKeyAuth, ServerProfile

logger = logging.getLogger(__name__)

BUFFER_SIZE = 32768
POLL_INTERVAL = 0.01


class RemoteSession:
    """单个目标服务器的 SSH 会话"""

    def __init__(
        self,
        profile: ServerProfile,
        connect_timeout: float = 10.0,
        keepalive_interval: int = 30,
        transport_factory: Callable[..., paramiko.Transport] = paramiko.Transport,
    ):
        self.profile = profile
        self.connect_timeout = connect_timeout
        self.keepalive_interval = keepalive_interval
        self._transport_factory = transport_factory
        self._transport: Optional[paramiko.Transport] = None
        # _lock 串行化命令执行；_state_lock 只保护 _transport 的替换
        self._lock = threading.Lock()
        self._state_lock = threading.Lock()

    @property
    def host(self) -> str:
        """目标标识（主机地址）"""
        return self.profile.host

    def connect(self):
        """
        建立连接：TCP -> 握手 -> 认证

        Raises:
            SessionStateError: 会话已连接（必须先 disconnect）
            RemoteConnectionError: TCP 连接或握手失败
            AuthenticationError: 凭据被拒绝或认证检查失败
        """
        profile = self.profile

        with self._state_lock:
            if self._transport is not None:
                raise SessionStateError(
                    f"Session to {profile.host} is already connected; disconnect first"
                )

            try:
                transport = self._transport_factory((profile.host, profile.port))
            except (OSError, paramiko.SSHException) as e:
                raise RemoteConnectionError(
                    f"Failed to connect to {profile.host}:{profile.port}: {e}"
                ) from e

            try:
                transport.start_client(timeout=self.connect_timeout)
            except (OSError, paramiko.SSHException, EOFError) as e:
                transport.close()
                raise RemoteConnectionError(f"SSH handshake failed: {e}") from e

            try:
                self._authenticate(transport)
            except AuthenticationError:
                transport.close()
                raise

            if not transport.is_authenticated():
                transport.close()
                raise AuthenticationError("SSH authentication failed")

            if self.keepalive_interval:
                transport.set_keepalive(self.keepalive_interval)

            self._transport = transport

        logger.info(f"Connected to {profile.username}@{profile.host}:{profile.port}")

    def _authenticate(self, transport: paramiko.Transport):
        """按照 profile 中的认证方式认证（只使用其中一种）"""
        profile = self.profile
        auth = profile.auth_method

        try:
            if isinstance(auth, PasswordAuth):
                transport.auth_password(profile.username, auth.password)
            elif isinstance(auth, PrivateKeyAuth):
                key = self._load_private_key(auth.key_path, auth.passphrase)
                transport.auth_publickey(profile.username, key)
            else:
                raise AuthenticationError(f"Unsupported auth method: {auth!r}")
        except paramiko.AuthenticationException as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e
        except (OSError, paramiko.SSHException, ValueError) as e:
            if isinstance(auth, PrivateKeyAuth):
                raise AuthenticationError(f"Key authentication failed: {e}") from e
            raise AuthenticationError(f"Password authentication failed: {e}") from e

    @staticmethod
    def _load_private_key(key_path: str, passphrase: Optional[str]) -> paramiko.PKey:
        path = Path(key_path).expanduser()
        return paramiko.PKey.from_path(path, passphrase=passphrase)

    def disconnect(self):
        """断开连接（幂等，不等待正在执行的命令）"""
        with self._state_lock:
            transport = self._transport
            self._transport = None

        if transport is not None:
            transport.close()
            logger.info(f"Disconnected from {self.host}")

    def is_connected(self) -> bool:
        transport = self._transport
        return bool(transport is not None and transport.is_authenticated())

    def execute(
        self,
        command: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        执行命令并返回标准输出

        远端退出码不影响结果：只要有标准输出就视为成功。仅当标准输出为空且
        标准错误有内容时抛出 ChannelError。

        Args:
            command: 远端 shell 命令
            timeout: 命令本身的期限（秒），从拿到会话锁开始计算；None 表示不限
            cancel_event: 置位后，排队中或运行中的命令都会放弃

        Returns:
            标准输出文本
        """
        while not self._lock.acquire(timeout=POLL_INTERVAL * 10):
            if cancel_event is not None and cancel_event.is_set():
                raise ChannelError(f"Command cancelled: {command}")

        try:
            if cancel_event is not None and cancel_event.is_set():
                raise ChannelError(f"Command cancelled: {command}")

            transport = self._transport
            if transport is None or not transport.is_authenticated():
                raise NotConnectedError()

            return self._run(transport, command, timeout, cancel_event)
        finally:
            self._lock.release()

    def _run(
        self,
        transport: paramiko.Transport,
        command: str,
        timeout: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> str:
        deadline = None if timeout is None else time.monotonic() + timeout

        try:
            channel = transport.open_session()
        except (OSError, paramiko.SSHException, EOFError) as e:
            raise ChannelError(f"Failed to open channel: {e}") from e

        try:
            channel.settimeout(timeout)
            channel.exec_command(command)
            stdout, stderr = self._drain(channel, command, timeout, deadline, cancel_event)
            exit_status = channel.recv_exit_status()
        except socket.timeout as e:
            raise ChannelError(f"Command timed out after {timeout}s: {command}") from e
        except (OSError, paramiko.SSHException, EOFError) as e:
            raise ChannelError(f"Failed to execute command: {e}") from e
        finally:
            channel.close()

        if self._transport is not transport:
            raise ChannelError(f"Session closed while running: {command}")

        output = stdout.decode("utf-8", errors="replace")
        error = stderr.decode("utf-8", errors="replace")

        if not output and error:
            raise ChannelError(error, exit_status=exit_status)

        if exit_status != 0:
            logger.debug(f"Command exited with {exit_status}: {command}")
        return output

    @staticmethod
    def _drain(channel, command, timeout, deadline, cancel_event):
        """同时读取标准输出和标准错误，直到命令退出且缓冲区读空"""
        stdout = bytearray()
        stderr = bytearray()

        while True:
            progressed = False
            if channel.recv_ready():
                stdout += channel.recv(BUFFER_SIZE)
                progressed = True
            if channel.recv_stderr_ready():
                stderr += channel.recv_stderr(BUFFER_SIZE)
                progressed = True

            if (
                channel.exit_status_ready()
                and not channel.recv_ready()
                and not channel.recv_stderr_ready()
            ):
                return bytes(stdout), bytes(stderr)

            if progressed:
                continue
            if cancel_event is not None and cancel_event.is_set():
                raise ChannelError(f"Command cancelled: {command}")
            if deadline is not None and time.monotonic() >= deadline:
                raise ChannelError(f"Command timed out after {timeout}s: {command}")
            time.sleep(POLL_INTERVAL)
