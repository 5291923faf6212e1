"""
测试 ControlPlane
"""

import asyncio
import functools
import time

import pytest

from dpanel_client.config import AppConfig, DiscoveryConfig, SSHConfig
from dpanel_client.errors import ChannelError, NotConnectedError
from dpanel_client.models import ServerProfile
from dpanel_client.service import ControlPlane
from dpanel_client.ssh import RemoteSession


def make_profile(host="10.0.0.5", password="secret") -> ServerProfile:
    return ServerProfile(
        id=host,
        name=host,
        host=host,
        username="deploy",
        auth_method={"type": "password", "password": password},
    )


@pytest.fixture
def config(tmp_path):
    return AppConfig(discovery=DiscoveryConfig(cache_dir=str(tmp_path / "cache")))


@pytest.fixture
def plane(config, transport_factory):
    factory = functools.partial(RemoteSession, transport_factory=transport_factory)
    return ControlPlane(config, session_factory=factory)


def run(coro):
    return asyncio.run(coro)


def test_connect_success(plane, transport_factory):
    result = run(plane.connect(make_profile()))

    assert result.success is True
    assert result.message == "Connected successfully"
    assert plane.is_connected() is True
    assert plane.target == "10.0.0.5"
    assert transport_factory.last.keepalive == plane.config.ssh.keepalive_interval


def test_connect_failure(plane, transport_factory):
    transport_factory.options = {"reject_auth": True}

    result = run(plane.connect(make_profile()))

    assert result.success is False
    assert "Authentication failed" in result.message
    assert plane.is_connected() is False


def test_reconnect_replaces_session(plane, transport_factory):
    run(plane.connect(make_profile("10.0.0.5")))
    first = transport_factory.last

    run(plane.connect(make_profile("10.0.0.6")))

    assert first.closed is True
    assert plane.target == "10.0.0.6"


def test_failed_reconnect_leaves_disconnected(plane, transport_factory):
    run(plane.connect(make_profile()))
    first = transport_factory.last
    transport_factory.refuse = OSError("No route to host")

    result = run(plane.connect(make_profile("10.0.0.7")))

    assert result.success is False
    assert first.closed is True
    assert plane.is_connected() is False


def test_test_connection_does_not_keep_session(plane, transport_factory):
    result = run(plane.test_connection(make_profile()))

    assert result.success is True
    assert transport_factory.last.closed is True
    assert plane.is_connected() is False


def test_test_connection_failure(plane, transport_factory):
    transport_factory.options = {"fail_handshake": True}

    result = run(plane.test_connection(make_profile()))

    assert result.success is False
    assert "handshake" in result.message


def test_disconnect(plane, transport_factory):
    run(plane.connect(make_profile()))
    run(plane.disconnect())
    run(plane.disconnect())

    assert transport_factory.last.closed is True
    assert plane.is_connected() is False
    assert plane.target is None


@pytest.mark.parametrize("operation", [
    "get_metrics_snapshot",
    "scan_discovery",
    "refresh_discovery",
])
def test_operations_require_connection(plane, operation):
    with pytest.raises(NotConnectedError):
        run(getattr(plane, operation)())


def test_execute_command(plane, transport_factory):
    transport_factory.handler = lambda command: "Linux\n" if command == "uname" else ""
    run(plane.connect(make_profile()))

    assert run(plane.execute_command("uname")) == "Linux\n"


def test_metrics_snapshot(plane, transport_factory):
    transport_factory.handler = lambda command: ""
    run(plane.connect(make_profile()))

    metrics = run(plane.get_metrics_snapshot())

    assert metrics.cpu_percent == 0.0
    assert metrics.network.interface == "eth0"
    assert metrics.cpu_history == [0.0]


def test_discovery_through_plane(plane, transport_factory):
    def _handler(command):
        if command.startswith("find /opt/"):
            return "/opt/app/compose.yml\n"
        if command == "cat /opt/app/compose.yml":
            return "services:\n  web:\n    image: nginx\n"
        return ""

    transport_factory.handler = _handler
    run(plane.connect(make_profile()))

    projects = run(plane.scan_discovery())
    assert [(p.name, p.services) for p in projects] == [("app", ["web"])]

    commands_before = len(transport_factory.last.commands)
    run(plane.scan_discovery())
    walked = [c for c in transport_factory.last.commands[commands_before:] if c.startswith("find ")]
    assert walked == []

    run(plane.refresh_discovery())
    walked = [c for c in transport_factory.last.commands if c.startswith("find ")]
    assert len(walked) == 2 * len(plane.config.discovery.scan_paths)


def test_disconnect_interrupts_running_command(plane, transport_factory):
    """断开不等待会话锁，也不阻塞事件循环；正在执行的命令以 ChannelError 结束"""
    transport_factory.options = {"delays": {"tail -f /var/log/syslog": 10.0}}

    async def scenario():
        await plane.connect(make_profile())
        running = asyncio.ensure_future(plane.execute_command("tail -f /var/log/syslog"))
        await asyncio.sleep(0.1)

        gaps = []
        stop = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not stop.is_set():
                await asyncio.sleep(0.02)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        ticking = asyncio.ensure_future(ticker())
        start = time.monotonic()
        await plane.disconnect()
        elapsed = time.monotonic() - start

        with pytest.raises(ChannelError):
            await asyncio.wait_for(running, timeout=2.0)
        stop.set()
        await ticking
        return elapsed, max(gaps, default=0.0)

    elapsed, max_gap = run(scenario())

    assert elapsed < 1.0
    assert max_gap < 0.25
    assert plane.is_connected() is False


def test_execute_command_times_out(tmp_path, transport_factory):
    config = AppConfig(
        ssh=SSHConfig(command_timeout=0.2),
        discovery=DiscoveryConfig(cache_dir=str(tmp_path / "cache")),
    )
    factory = functools.partial(RemoteSession, transport_factory=transport_factory)
    plane = ControlPlane(config, session_factory=factory)
    transport_factory.handler = lambda command: "ok\n"
    transport_factory.options = {"delays": {"sleep 60": 10.0}}
    run(plane.connect(make_profile()))

    start = time.monotonic()
    with pytest.raises(ChannelError, match="timed out"):
        run(plane.execute_command("sleep 60"))
    assert time.monotonic() - start < 2.0

    assert run(plane.execute_command("uptime")) == "ok\n"


def test_aggregator_uses_configured_budgets(plane):
    assert plane.aggregator.command_timeout == plane.config.metrics.command_timeout
    assert plane.aggregator.snapshot_timeout == plane.config.metrics.snapshot_timeout
