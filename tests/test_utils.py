import itertools
import os
import resource
import socket
from unittest.mock import MagicMock

import pytest

from tcprelay.relay_core import RelayCore
from tcprelay.tables import ClientInfo
from tcprelay.transport import Listener

_fds = itertools.count(100)


def make_fake_sock():
    """MagicMock standing in for a connected client socket"""
    sock = MagicMock(spec=socket.socket)
    sock.fileno.return_value = next(_fds)
    return sock


def make_fake_client():
    return ClientInfo(make_fake_sock())


@pytest.fixture
def fake_listener():
    """Listener around a mock socket, accept() hands out fake clients"""
    sock = make_fake_sock()
    sock.accept.side_effect = lambda: (make_fake_sock(), ("127.0.0.1", 50000))
    return Listener(sock)


@pytest.fixture
def mock_multiplexer():
    return MagicMock()


@pytest.fixture
def fake_core(fake_listener, mock_multiplexer):
    """RelayCore with capacity 3 and no real I/O"""
    return RelayCore(fake_listener, 3, multiplexer=mock_multiplexer)


@pytest.fixture
def loopback_listener():
    listener = Listener.initialize(0, 5, host="127.0.0.1")
    yield listener
    listener.close()


def connect(listener: Listener) -> socket.socket:
    sock = socket.create_connection(listener.address, timeout=5)
    sock.settimeout(5)
    return sock


@pytest.fixture
def relay_env(monkeypatch):
    """Strip RELAY_* variables so CLI tests only see what they set"""
    for name in ("RELAY_PORT", "RELAY_MAX_CLIENTS", "RELAY_HOST", "RELAY_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


HIGH_FD = 1500


@pytest.fixture
def high_fd_pair():
    """Socket pair whose left end sits on a descriptor above FD_SETSIZE"""
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if soft <= HIGH_FD:
        if hard != resource.RLIM_INFINITY and hard <= HIGH_FD:
            pytest.skip("open file limit too low for a descriptor above 1024")
        resource.setrlimit(resource.RLIMIT_NOFILE, (HIGH_FD + 1, hard))

    left, right = socket.socketpair()
    os.dup2(left.fileno(), HIGH_FD)
    left.close()
    high = socket.socket(fileno=HIGH_FD)
    right.settimeout(5)
    yield high, right
    high.close()
    right.close()
    resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))
