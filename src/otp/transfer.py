"""
Exact-length transfers over stream sockets.

A single send() or recv() may move fewer bytes than asked for. The helpers
here keep issuing calls until the requested count has moved, the peer
closes the connection, or the socket reports an error.
"""

import logging
import socket
from typing import Tuple, Union

from .exceptions import PartialTransferError, PeerDisconnectedError

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]


class TransferDirection:
    SEND = "send"
    RECEIVE = "receive"


def _transfer(
    connection: socket.socket,
    buffer: Buffer,
    length: int,
    direction: str
) -> Tuple[int, bool]:
    """Run the transfer loop, reporting bytes moved and whether the peer closed."""
    if direction not in (TransferDirection.SEND, TransferDirection.RECEIVE):
        raise ValueError(f"Unknown transfer direction: {direction!r}")

    view = memoryview(buffer)
    if len(view) < length:
        raise ValueError(f"Buffer of {len(view)} bytes cannot hold {length} bytes")

    if direction == TransferDirection.RECEIVE:
        view[:length] = bytes(length)

    moved = 0
    while moved < length:
        try:
            if direction == TransferDirection.SEND:
                count = connection.send(view[moved:length])
            else:
                count = connection.recv_into(view[moved:length], length - moved)
        except OSError as e:
            logger.debug(f"{direction} failed after {moved}/{length} bytes: {e}")
            return moved, False

        if count == 0:
            logger.debug(f"Connection closed after {moved}/{length} bytes")
            return moved, True

        moved += count
        logger.debug(f"{direction}: {count} bytes, {moved} total, {length - moved} remaining")

    return moved, False


def transfer_exactly(
    connection: socket.socket,
    buffer: Buffer,
    length: int,
    direction: str
) -> int:
    """
    Move exactly length bytes between buffer and connection.

    On RECEIVE the first length bytes of buffer are cleared before reading,
    so a short transfer never leaves stale data behind the received bytes.

    Args:
        connection: Connected stream socket
        buffer: Data to send, or writable buffer of at least length bytes
        length: Number of bytes to move
        direction: TransferDirection.SEND or TransferDirection.RECEIVE

    Returns:
        int: Bytes actually moved; less than length if the peer closed the
        connection or a socket error occurred

    Raises:
        ValueError: If the buffer is too small or the direction is unknown
    """
    moved, _ = _transfer(connection, buffer, length, direction)
    return moved


def _check_complete(operation: str, expected: int, moved: int, closed: bool) -> None:
    if moved == expected:
        return
    if closed:
        raise PeerDisconnectedError(operation, expected, moved)
    raise PartialTransferError(operation, expected, moved)


def send_exactly(connection: socket.socket, data: bytes) -> None:
    """
    Send all of data.

    Raises:
        PeerDisconnectedError: If the peer closed the connection first
        PartialTransferError: If a socket error stopped the transfer
    """
    sent, closed = _transfer(connection, data, len(data), TransferDirection.SEND)
    _check_complete("sent", len(data), sent, closed)


def receive_exactly(connection: socket.socket, length: int) -> bytes:
    """
    Receive exactly length bytes.

    Raises:
        PeerDisconnectedError: If the peer closed the connection first
        PartialTransferError: If a socket error stopped the transfer
    """
    buffer = bytearray(length)
    received, closed = _transfer(connection, buffer, length, TransferDirection.RECEIVE)
    _check_complete("received", length, received, closed)
    return bytes(buffer)
