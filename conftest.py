"""
Shared pytest fixtures for the one-time pad tests.
"""

import logging
import socket
import threading

import pytest

from src.otp.config import ServiceConfig
from src.otp.protocol import Operations
from src.otp.server import ConnectionDispatcher


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that run real services on loopback"
    )


@pytest.fixture
def socket_pair():
    """A connected pair of stream sockets, closed after the test."""
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def _start_dispatcher(operation):
    dispatcher = ConnectionDispatcher(ServiceConfig(port=0, host="127.0.0.1"), operation)
    dispatcher.bind()
    thread = threading.Thread(target=dispatcher.serve_forever, daemon=True)
    thread.start()
    return dispatcher, thread


@pytest.fixture
def encrypt_service():
    """An encryption dispatcher serving on an ephemeral loopback port."""
    dispatcher, thread = _start_dispatcher(Operations.ENCRYPT)
    yield dispatcher
    dispatcher.close()
    thread.join(timeout=5)


@pytest.fixture
def decrypt_service():
    """A decryption dispatcher serving on an ephemeral loopback port."""
    dispatcher, thread = _start_dispatcher(Operations.DECRYPT)
    yield dispatcher
    dispatcher.close()
    thread.join(timeout=5)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the command-line entry points attach between tests."""
    yield
    logger = logging.getLogger("src.otp")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
