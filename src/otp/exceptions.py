"""
Custom exceptions for the one-time pad exchange services.
"""


class OtpError(Exception):
    """Base exception for all one-time pad exchange errors."""
    pass


class ProtocolError(OtpError):
    """Raised when a peer violates the framed exchange."""
    pass


class FrameDecodingError(ProtocolError):
    """Raised when a fixed-width or length-prefixed frame is malformed."""
    pass


class FrameTooLargeError(ProtocolError):
    """Raised when a peer declares a payload above the configured maximum."""

    def __init__(self, declared: int, maximum: int):
        super().__init__(f"Declared frame length {declared} exceeds maximum {maximum}")
        self.declared = declared
        self.maximum = maximum


class ConnectionError(OtpError):
    """Raised when connection issues occur."""
    pass


class PartialTransferError(ConnectionError):
    """Raised when fewer bytes than requested were moved over a connection."""

    def __init__(self, operation: str, expected: int, moved: int, message: str = ""):
        super().__init__(message or f"Only {moved} of {expected} bytes could be {operation}")
        self.operation = operation
        self.expected = expected
        self.moved = moved


class PeerDisconnectedError(PartialTransferError):
    """Raised when the peer closes the connection mid-exchange."""

    def __init__(self, operation: str, expected: int, moved: int):
        super().__init__(
            operation, expected, moved,
            f"Peer closed the connection after {moved} of {expected} bytes were {operation}"
        )


class ConfigurationError(OtpError):
    """Raised when a configuration value from the environment is unusable."""
    pass


class AdmissionError(OtpError):
    """Raised when a service answers the identity token with FAIL."""
    pass


class ValidationError(OtpError):
    """Raised when local text or key material is unusable."""
    pass


class FileValidationError(ValidationError):
    """Raised when an input file is unreadable, empty or holds bad symbols."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"'{path}' {reason}")
        self.path = path
        self.reason = reason


class InvalidPortError(OtpError):
    """Raised when a port argument is not in 0..65535."""
    pass
