"""
Framed message protocol for the one-time pad services.

Every exchange on a connection follows the same order:

    client -> service   IDENTITY   (7 bytes, "otp_enc" or "otp_dec")
    service -> client   ADMISSION  (4 bytes, "PASS" or "FAIL")
    client -> service   TEXT LEN   (9 ASCII digits) + TEXT
    client -> service   KEY LEN    (9 ASCII digits) + KEY
    service -> client   RESULT     (TEXT LEN bytes, no prefix)

A FAIL admission ends the exchange; no further frames are sent.
"""

import logging
import socket

from .cipher import Direction
from .exceptions import FrameDecodingError, FrameTooLargeError, ProtocolError
from .transfer import receive_exactly, send_exactly

IDENTITY_LENGTH = 7
ADMISSION_LENGTH = 4
LENGTH_FIELD_WIDTH = 9
MAX_WIRE_LENGTH = 10 ** LENGTH_FIELD_WIDTH - 1


class Operations:
    ENCRYPT = "otp_enc"
    DECRYPT = "otp_dec"


class Admission:
    PASS = "PASS"
    FAIL = "FAIL"


def direction_for(operation: str) -> str:
    """Map an operation tag to the cipher direction its service applies."""
    directions = {
        Operations.ENCRYPT: Direction.ENCRYPT,
        Operations.DECRYPT: Direction.DECRYPT,
    }
    try:
        return directions[operation]
    except KeyError:
        raise ValueError(f"Unknown operation: {operation!r}")


def service_name(operation: str) -> str:
    """Human-readable name of the service answering an operation tag."""
    return f"{operation}_d"


def encode_length(length: int) -> bytes:
    """
    Encode a payload length as a fixed-width decimal field.

    Raises:
        ProtocolError: If the length cannot be represented in the field
    """
    if not 0 <= length <= MAX_WIRE_LENGTH:
        raise ProtocolError(f"Length {length} does not fit in a {LENGTH_FIELD_WIDTH}-digit field")
    return f"{length:0{LENGTH_FIELD_WIDTH}d}".encode("ascii")


def decode_length(raw: bytes, max_length: int = MAX_WIRE_LENGTH) -> int:
    """
    Decode a fixed-width decimal length field.

    Peers may send zero-padded digits or unpadded digits followed by NUL
    bytes; both decode to the same value.

    Args:
        raw: The 9 bytes read from the wire
        max_length: Largest length the caller is willing to allocate for

    Returns:
        int: The declared payload length

    Raises:
        FrameDecodingError: If the field is not a decimal number
        FrameTooLargeError: If the declared length exceeds max_length
    """
    if len(raw) != LENGTH_FIELD_WIDTH:
        raise FrameDecodingError(f"Length field must be {LENGTH_FIELD_WIDTH} bytes, got {len(raw)}")

    digits = raw.rstrip(b"\x00").strip()
    if not digits or not digits.isdigit():
        raise FrameDecodingError(f"Invalid length field: {raw!r}")

    length = int(digits)
    if length > max_length:
        raise FrameTooLargeError(length, max_length)
    return length


class FrameChannel:
    """
    Reads and writes protocol frames on one connection.

    Lengths received from the peer are clamped to max_frame_length before
    any payload buffer is allocated.
    """

    def __init__(self, connection: socket.socket, max_frame_length: int = MAX_WIRE_LENGTH):
        self.connection = connection
        self.max_frame_length = min(max_frame_length, MAX_WIRE_LENGTH)
        self.logger = logging.getLogger(__name__)

    def send_identity(self, operation: str) -> None:
        """Send the 7-byte identity token."""
        token = operation.encode("ascii")
        if len(token) != IDENTITY_LENGTH:
            raise ProtocolError(f"Identity token must be {IDENTITY_LENGTH} bytes: {operation!r}")
        send_exactly(self.connection, token)
        self.logger.debug(f"Sent identity {operation}")

    def receive_identity(self) -> str:
        """Receive the identity token; undecodable bytes never match a known tag."""
        raw = receive_exactly(self.connection, IDENTITY_LENGTH)
        identity = raw.decode("ascii", errors="replace")
        self.logger.debug(f"Received identity {identity!r}")
        return identity

    def send_admission(self, result: str) -> None:
        send_exactly(self.connection, result.encode("ascii"))
        self.logger.debug(f"Sent admission {result}")

    def receive_admission(self) -> str:
        raw = receive_exactly(self.connection, ADMISSION_LENGTH)
        result = raw.decode("ascii", errors="replace")
        self.logger.debug(f"Received admission {result!r}")
        return result

    def send_payload(self, payload: str) -> None:
        """Send payload symbols without a length prefix."""
        send_exactly(self.connection, payload.encode("ascii"))

    def receive_payload(self, length: int) -> str:
        """
        Receive exactly length payload bytes.

        Raises:
            FrameDecodingError: If the payload is not ASCII
            PartialTransferError: If the connection ended early
        """
        raw = receive_exactly(self.connection, length)
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise FrameDecodingError(f"Payload is not ASCII: {e}")

    def send_field(self, payload: str) -> None:
        """Send a length-prefixed payload field."""
        send_exactly(self.connection, encode_length(len(payload)))
        self.send_payload(payload)
        self.logger.debug(f"Sent field of {len(payload)} symbols")

    def receive_length(self) -> int:
        raw = receive_exactly(self.connection, LENGTH_FIELD_WIDTH)
        return decode_length(raw, self.max_frame_length)

    def receive_field(self) -> str:
        """Receive a length-prefixed payload field."""
        length = self.receive_length()
        payload = self.receive_payload(length)
        self.logger.debug(f"Received field of {length} symbols")
        return payload
