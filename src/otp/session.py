"""
Session handling for one one-time pad exchange.

A SessionHandler owns a single connection and drives it through the
identity/admission handshake, the text and key fields and the result,
either as the service (receiving) or as the client (sending). The
connection is closed when the exchange ends, whatever the outcome.
"""

import logging
import socket
from typing import List, Optional

from .cipher import is_valid_text, transform
from .exceptions import AdmissionError, OtpError, ProtocolError
from .protocol import MAX_WIRE_LENGTH, Admission, FrameChannel, direction_for


class SessionState:
    START = "START"
    SENT_ID = "SENT_ID"
    AWAIT_AUTH = "AWAIT_AUTH"
    REJECTED = "REJECTED"
    AUTHENTICATED = "AUTHENTICATED"
    AWAIT_TEXT_LEN = "AWAIT_TEXT_LEN"
    AWAIT_TEXT = "AWAIT_TEXT"
    AWAIT_KEY_LEN = "AWAIT_KEY_LEN"
    AWAIT_KEY = "AWAIT_KEY"
    TRANSFORMED = "TRANSFORMED"
    DONE = "DONE"
    FAILED = "FAILED"

    TERMINAL = frozenset({REJECTED, DONE, FAILED})


class SessionHandler:
    """
    Runs one exchange on a connection in either the service or client role.

    The same state sequence is used by both roles: the client reaches each
    state by sending the corresponding frame and the service by receiving it.
    """

    def __init__(
        self,
        connection: socket.socket,
        operation: str,
        max_frame_length: int = MAX_WIRE_LENGTH
    ):
        self.connection = connection
        self.operation = operation
        self.direction = direction_for(operation)
        self.channel = FrameChannel(connection, max_frame_length)
        self.state = SessionState.START
        self.history: List[str] = [SessionState.START]
        self.logger = logging.getLogger(__name__)

    def _advance(self, state: str) -> None:
        self.logger.debug(f"{self.operation}: {self.state} -> {state}")
        self.state = state
        self.history.append(state)

    @property
    def finished(self) -> bool:
        """True once the exchange reached REJECTED, DONE or FAILED."""
        return self.state in SessionState.TERMINAL

    def close(self) -> None:
        """Close the owned connection."""
        try:
            self.connection.close()
        except OSError as e:
            self.logger.warning(f"Error closing connection: {e}")

    def run_service(self) -> str:
        """
        Serve one exchange: admit the peer, receive text and key, reply with
        the transformed text.

        Returns:
            str: The terminal state, DONE or REJECTED

        Raises:
            OtpError: If a frame is malformed, short or out of bounds
        """
        try:
            identity = self.channel.receive_identity()
            self._advance(SessionState.SENT_ID)
            self._advance(SessionState.AWAIT_AUTH)

            if identity != self.operation:
                self.logger.info(f"Rejected peer presenting {identity!r}, expected {self.operation}")
                self.channel.send_admission(Admission.FAIL)
                self._advance(SessionState.REJECTED)
                return self.state

            self.channel.send_admission(Admission.PASS)
            self._advance(SessionState.AUTHENTICATED)

            self._advance(SessionState.AWAIT_TEXT_LEN)
            text_length = self.channel.receive_length()
            self._advance(SessionState.AWAIT_TEXT)
            text = self.channel.receive_payload(text_length)

            self._advance(SessionState.AWAIT_KEY_LEN)
            key_length = self.channel.receive_length()
            self._advance(SessionState.AWAIT_KEY)
            key = self.channel.receive_payload(key_length)

            if key_length < text_length:
                raise ProtocolError(f"Key of {key_length} symbols is shorter than text of {text_length}")
            if not is_valid_text(text) or not is_valid_text(key):
                raise ProtocolError("Payload contains symbols outside the alphabet")

            result = transform(text, key[:text_length], self.direction)
            self._advance(SessionState.TRANSFORMED)

            self.channel.send_payload(result)
            self._advance(SessionState.DONE)
            self.logger.info(f"Completed {self.direction} of {text_length} symbols")
            return self.state

        except OtpError:
            if not self.finished:
                self._advance(SessionState.FAILED)
            raise
        finally:
            self.close()

    def run_client(self, text: str, key: str) -> str:
        """
        Request one transform from a service.

        Args:
            text: Symbols to transform
            key: Key symbols, at least as long as text

        Returns:
            str: The service's result, exactly len(text) symbols

        Raises:
            AdmissionError: If the service answered FAIL
            OtpError: If any frame could not be exchanged
        """
        try:
            self.channel.send_identity(self.operation)
            self._advance(SessionState.SENT_ID)

            self._advance(SessionState.AWAIT_AUTH)
            admission = self.channel.receive_admission()
            if admission != Admission.PASS:
                self._advance(SessionState.REJECTED)
                raise AdmissionError(f"Service refused identity {self.operation} with {admission!r}")
            self._advance(SessionState.AUTHENTICATED)

            self._advance(SessionState.AWAIT_TEXT_LEN)
            self.channel.send_field(text)
            self._advance(SessionState.AWAIT_TEXT)

            self._advance(SessionState.AWAIT_KEY_LEN)
            self.channel.send_field(key)
            self._advance(SessionState.AWAIT_KEY)

            self._advance(SessionState.TRANSFORMED)
            result = self.channel.receive_payload(len(text))
            self._advance(SessionState.DONE)
            return result

        except OtpError:
            if not self.finished:
                self._advance(SessionState.FAILED)
            raise
        finally:
            self.close()


def serve_connection(
    connection: socket.socket,
    operation: str,
    max_frame_length: int = MAX_WIRE_LENGTH,
    peer: Optional[str] = None
) -> str:
    """
    Run the service role on a connection, logging instead of raising.

    Returns:
        str: The terminal state of the exchange
    """
    handler = SessionHandler(connection, operation, max_frame_length)
    logger = logging.getLogger(__name__)
    try:
        return handler.run_service()
    except OtpError as e:
        logger.error(f"Exchange with {peer or 'peer'} failed in state {handler.history[-2]}: {e}")
        return handler.state
