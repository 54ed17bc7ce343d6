import logging
import socket
from datetime import datetime

import pytest

import netinfo
from logs import log_file_name, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_log_file_name():
    assert log_file_name(datetime(2024, 5, 1, 9, 8, 7)) == "server_2024-05-01_09:08:07.log"


def test_setup_logging_writes_file(tmp_path, restore_root_logger):
    path = setup_logging("INFO", tmp_path / "logs")

    logging.getLogger("handlers").info("Device dev-1 -> true")
    for h in logging.getLogger().handlers:
        h.flush()

    assert path.parent == tmp_path / "logs"
    assert path.name.startswith("server_")
    assert "Device dev-1 -> true" in path.read_text()


def test_setup_logging_console_only(restore_root_logger):
    assert setup_logging("WARNING", None) is None
    assert logging.getLogger().level == logging.WARNING


def test_outbound_ip_falls_back(monkeypatch):
    class Unroutable:
        def __init__(self, *args):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def connect(self, addr):
            raise OSError("Network is unreachable")

    monkeypatch.setattr(netinfo.socket, "socket", Unroutable)

    assert netinfo.outbound_ip() == netinfo.FALLBACK_IP


def test_outbound_ip_uses_socket_name(monkeypatch):
    class Routed:
        def __init__(self, family, kind):
            assert (family, kind) == (socket.AF_INET, socket.SOCK_DGRAM)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def connect(self, addr):
            self.addr = addr

        def getsockname(self):
            return ("10.1.2.3", 54321)

    monkeypatch.setattr(netinfo.socket, "socket", Routed)

    assert netinfo.outbound_ip() == "10.1.2.3"
