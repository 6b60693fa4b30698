"""
One-time pad clients.

This module implements the client that reads a text file and a key file,
sends both to an encryption or decryption service and prints the result.
"""

import argparse
import logging
import socket
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .cipher import is_valid_text
from .config import (
    DEFAULT_CLIENT_HOST, DEFAULT_MAX_FRAME_LENGTH, log_level_from_env, max_frame_length_from_env,
    parse_port, port_warning
)
from .exceptions import (
    AdmissionError, ConfigurationError, ConnectionError, InvalidPortError, OtpError, ValidationError
)
from .files import read_file, scan_file
from .protocol import MAX_WIRE_LENGTH, Operations, service_name
from .session import SessionHandler
from ..utils.logging import configure_debug_logging, setup_logger, silence_external_loggers


def validate_exchange(text: str, key: str, max_length: int = MAX_WIRE_LENGTH) -> None:
    """
    Check that text and key can be sent for a transform.

    Args:
        text: Plaintext or ciphertext symbols
        key: Key symbols
        max_length: Largest text or key the service accepts

    Raises:
        ValidationError: If text is empty, either contains symbols outside
            the alphabet, the key is shorter than the text, or either is
            longer than max_length
    """
    if not text:
        raise ValidationError("text cannot be empty")
    if not is_valid_text(text):
        raise ValidationError("text contains bad characters")
    if not is_valid_text(key):
        raise ValidationError("key contains bad characters")
    if len(key) < len(text):
        raise ValidationError(f"key of {len(key)} symbols is too short for text of {len(text)}")
    limit = min(max_length, MAX_WIRE_LENGTH)
    if len(text) > limit:
        raise ValidationError(f"text of {len(text)} symbols exceeds the service limit of {limit}")
    if len(key) > limit:
        raise ValidationError(f"key of {len(key)} symbols exceeds the service limit of {limit}")


class OtpClient:
    """
    Client for the one-time pad encryption and decryption services.
    """

    def __init__(
        self,
        host: str,
        port: int,
        operation: str,
        timeout: Optional[float] = None,
        max_frame_length: int = DEFAULT_MAX_FRAME_LENGTH
    ):
        self.host = host
        self.port = port
        self.operation = operation
        self.timeout = timeout
        self.max_frame_length = max_frame_length
        self.socket: Optional[socket.socket] = None
        self.session: Optional[SessionHandler] = None
        self.logger = logging.getLogger(__name__)

    def connect(self) -> None:
        """
        Establish a connection to the service.

        Raises:
            ConnectionError: If the host cannot be resolved or the connection fails
        """
        try:
            self.logger.info(f"Connecting to {self.host}:{self.port}")
            self.socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self.logger.info("Connection established")
        except OSError as e:
            self.socket = None
            error_msg = f"Failed to connect to {self.host}:{self.port}: {e}"
            self.logger.error(error_msg)
            raise ConnectionError(error_msg)

    def disconnect(self) -> None:
        """Close the connection to the service."""
        if self.socket:
            try:
                self.socket.close()
                self.logger.info("Disconnected from service")
            except OSError as e:
                self.logger.warning(f"Error during disconnect: {e}")
            finally:
                self.socket = None

    def execute(self, text: str, key: str) -> str:
        """
        Send text and key to the service and return the transformed text.

        Inputs are validated before any connection is opened.

        Args:
            text: Plaintext or ciphertext symbols
            key: Key symbols, at least as long as text

        Returns:
            str: The service's result

        Raises:
            ValidationError: If the inputs are unusable
            AdmissionError: If the service rejected this client's operation
            OtpError: If the exchange fails
        """
        validate_exchange(text, key, self.max_frame_length)

        try:
            self.connect()
            self.session = SessionHandler(self.socket, self.operation, self.max_frame_length)
            result = self.session.run_client(text, key)
            self.logger.info(f"Received {len(result)} symbols")
            return result
        finally:
            self.disconnect()


def build_parser(operation: str) -> argparse.ArgumentParser:
    kind = "plaintext" if operation == Operations.ENCRYPT else "ciphertext"
    parser = argparse.ArgumentParser(
        prog=operation,
        description=f"One-time pad {'encryption' if operation == Operations.ENCRYPT else 'decryption'} client"
    )
    parser.add_argument(kind, help=f"File holding the {kind}")
    parser.add_argument("key", help="File holding the key")
    parser.add_argument("port", help="Port of the service")
    parser.add_argument("--host", default=DEFAULT_CLIENT_HOST, help="Service hostname or IP address")
    parser.add_argument("--timeout", type=float, default=None, help="Socket timeout in seconds")
    parser.add_argument(
        "--max-frame-length", type=int, help="Largest text or key the service accepts, in symbols"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def run_client(operation: str, argv: Optional[List[str]] = None) -> int:
    """Entry point shared by the encryption and decryption clients."""
    parser = build_parser(operation)
    args = parser.parse_args(argv)
    text_path = args.plaintext if operation == Operations.ENCRYPT else args.ciphertext
    console = Console(stderr=True, soft_wrap=True)

    level = logging.DEBUG if args.verbose else log_level_from_env()
    setup_logger("src.otp", level=level)
    silence_external_loggers()
    if args.verbose:
        configure_debug_logging()

    try:
        port = parse_port(args.port)
    except InvalidPortError as e:
        console.print(f"[red]{operation}: ERROR, {escape(str(e))}[/red]")
        return 2

    warning = port_warning(port)
    if warning:
        console.print(f"[yellow]{operation}: WARNING, {escape(warning)}[/yellow]")

    try:
        text_length = scan_file(text_path)
        key_length = scan_file(args.key)
        if key_length < text_length:
            raise ValidationError(f"key '{args.key}' is too short")
        text = read_file(text_path, text_length)
        key = read_file(args.key, key_length)
    except ValidationError as e:
        console.print(f"[red]{operation}: ERROR, {escape(str(e))}[/red]")
        return 1

    try:
        max_frame_length = args.max_frame_length or max_frame_length_from_env()
    except ConfigurationError as e:
        console.print(f"[red]{operation}: ERROR, {escape(str(e))}[/red]")
        return 2

    client = OtpClient(
        args.host, port, operation, timeout=args.timeout, max_frame_length=max_frame_length
    )
    try:
        result = client.execute(text, key)
    except ValidationError as e:
        console.print(f"[red]{operation}: ERROR, {escape(str(e))}[/red]")
        return 1
    except AdmissionError:
        console.print(
            f"[red]{operation}: ERROR, could not contact {service_name(operation)} on port {port}[/red]"
        )
        return 2
    except OtpError as e:
        console.print(f"[red]{operation}: ERROR, {escape(str(e))}[/red]")
        return 2

    sys.stdout.write(result + "\n")
    sys.stdout.flush()
    return 0


def encrypt_main() -> int:
    return run_client(Operations.ENCRYPT)


def decrypt_main() -> int:
    return run_client(Operations.DECRYPT)


if __name__ == "__main__":
    sys.exit(encrypt_main())
