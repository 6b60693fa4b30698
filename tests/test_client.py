"""
Tests for the one-time pad client.
"""

import socket
from unittest.mock import patch

import pytest

from src.otp.client import OtpClient, run_client, validate_exchange
from src.otp.exceptions import ConnectionError, ValidationError
from src.otp.protocol import Operations


class MockSocket:
    """Mock socket replaying canned service responses."""

    def __init__(self, responses: bytes = b""):
        self.sent_data = bytearray()
        self.responses = responses
        self.closed = False

    def send(self, data):
        self.sent_data.extend(data)
        return len(data)

    def recv_into(self, view, nbytes):
        chunk = self.responses[:nbytes]
        self.responses = self.responses[len(chunk):]
        view[:len(chunk)] = chunk
        return len(chunk)

    def close(self):
        self.closed = True


class TestValidateExchange:
    """Test local validation of text and key."""

    def test_valid_inputs(self):
        validate_exchange("HELLO WORLD", "ABCDEFGHIJKLMNOP")

    def test_empty_text(self):
        with pytest.raises(ValidationError, match="empty"):
            validate_exchange("", "KEY")

    def test_lowercase_text(self):
        with pytest.raises(ValidationError, match="text contains bad characters"):
            validate_exchange("hello", "WORLD")

    def test_bad_key_symbols(self):
        with pytest.raises(ValidationError, match="key contains bad characters"):
            validate_exchange("HELLO", "WOR$D")

    def test_short_key(self):
        with pytest.raises(ValidationError, match="too short"):
            validate_exchange("HELLO", "WORL")

    def test_key_over_service_limit(self):
        with pytest.raises(ValidationError, match="key of 12 symbols exceeds the service limit of 10"):
            validate_exchange("HELLO", "ABCDEFGHIJKL", max_length=10)

    def test_text_over_service_limit(self):
        with pytest.raises(ValidationError, match="text of 6 symbols exceeds the service limit of 5"):
            validate_exchange("HELLOS", "ABCDEFGHIJKL", max_length=5)

    def test_at_service_limit(self):
        validate_exchange("HELLO", "ABCDEFGHIJ", max_length=10)


class TestOtpClient:
    """Test cases for OtpClient."""

    def test_client_initialization(self):
        client = OtpClient("localhost", 50001, Operations.ENCRYPT)

        assert client.host == "localhost"
        assert client.port == 50001
        assert client.timeout is None
        assert client.socket is None

    @patch("src.otp.client.socket.create_connection")
    def test_execute_success(self, mock_create_connection):
        mock_socket = MockSocket(b"PASSCSBWR")
        mock_create_connection.return_value = mock_socket

        client = OtpClient("localhost", 50001, Operations.ENCRYPT)
        assert client.execute("HELLO", "WORLDXY") == "CSBWR"

        assert bytes(mock_socket.sent_data) == b"otp_enc000000005HELLO000000007WORLDXY"
        assert mock_socket.closed
        assert client.socket is None

    @patch("src.otp.client.socket.create_connection")
    def test_validation_happens_before_connecting(self, mock_create_connection):
        client = OtpClient("localhost", 50001, Operations.ENCRYPT)

        with pytest.raises(ValidationError):
            client.execute("HELLO", "KEY")

        mock_create_connection.assert_not_called()

    @patch("src.otp.client.socket.create_connection")
    def test_oversized_key_rejected_before_connecting(self, mock_create_connection):
        client = OtpClient("localhost", 50001, Operations.ENCRYPT, max_frame_length=8)

        with pytest.raises(ValidationError, match="exceeds the service limit of 8"):
            client.execute("HELLO", "ABCDEFGHIJ")

        mock_create_connection.assert_not_called()

    @patch("src.otp.client.socket.create_connection")
    def test_connect_failure(self, mock_create_connection):
        mock_create_connection.side_effect = socket.error("Connection refused")
        client = OtpClient("localhost", 50001, Operations.ENCRYPT)

        with pytest.raises(ConnectionError, match="Connection refused"):
            client.connect()
        assert client.socket is None

    @patch("src.otp.client.socket.create_connection")
    def test_resolution_failure(self, mock_create_connection):
        mock_create_connection.side_effect = socket.gaierror("Name or service not known")
        client = OtpClient("no-such-host.invalid", 50001, Operations.DECRYPT)

        with pytest.raises(ConnectionError):
            client.execute("HELLO", "WORLD")

    def test_disconnect(self):
        client = OtpClient("localhost", 50001, Operations.ENCRYPT)
        mock_socket = MockSocket()
        client.socket = mock_socket

        client.disconnect()

        assert mock_socket.closed
        assert client.socket is None


class TestClientEntryPoint:
    """Test the client command line."""

    def write(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content)
        return str(path)

    def test_lowercase_text_fails_before_connecting(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "hello\n")
        key = self.write(tmp_path, "key", "ABCDEFG\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            assert run_client(Operations.ENCRYPT, [text, key, "50001"]) == 1
            mock_create_connection.assert_not_called()

        assert "bad characters" in capsys.readouterr().err

    def test_short_key_fails_before_connecting(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "HELLO WORLD\n")
        key = self.write(tmp_path, "key", "ABC\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            assert run_client(Operations.ENCRYPT, [text, key, "50001"]) == 1
            mock_create_connection.assert_not_called()

        assert "too short" in capsys.readouterr().err

    def test_empty_file(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "\n")
        key = self.write(tmp_path, "key", "ABC\n")

        assert run_client(Operations.DECRYPT, [text, key, "50001"]) == 1
        assert "cannot be empty" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        key = self.write(tmp_path, "key", "ABC\n")

        assert run_client(Operations.DECRYPT, [str(tmp_path / "missing"), key, "50001"]) == 1
        assert "could not be opened" in capsys.readouterr().err

    def test_invalid_port(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "HELLO\n")
        key = self.write(tmp_path, "key", "WORLD\n")

        assert run_client(Operations.ENCRYPT, [text, key, "notaport"]) == 2
        assert "invalid port" in capsys.readouterr().err

    def test_low_port_warns(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "HELLO\n")
        key = self.write(tmp_path, "key", "WORLD\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            mock_create_connection.return_value = MockSocket(b"PASSCSBWR")
            assert run_client(Operations.ENCRYPT, [text, key, "8080"]) == 0

        captured = capsys.readouterr()
        assert "WARNING" in captured.err
        assert captured.out == "CSBWR\n"

    def test_unreachable_service(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "HELLO\n")
        key = self.write(tmp_path, "key", "WORLD\n")

        with patch("src.otp.client.socket.create_connection", side_effect=ConnectionRefusedError("refused")):
            assert run_client(Operations.ENCRYPT, [text, key, "50001"]) == 2

        assert "Failed to connect" in capsys.readouterr().err

    def test_rejected_admission(self, tmp_path, capsys):
        text = self.write(tmp_path, "cipher", "CSBWR\n")
        key = self.write(tmp_path, "key", "WORLD\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            mock_create_connection.return_value = MockSocket(b"FAIL")
            assert run_client(Operations.DECRYPT, [text, key, "50001"]) == 2

        assert "could not contact otp_dec_d on port 50001" in capsys.readouterr().err

    def test_key_over_service_limit_from_environment(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("OTP_MAX_FRAME_LENGTH", "6")
        text = self.write(tmp_path, "plain", "HELLO\n")
        key = self.write(tmp_path, "key", "ABCDEFGHIJ\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            assert run_client(Operations.ENCRYPT, [text, key, "50001"]) == 1
            mock_create_connection.assert_not_called()

        assert "key of 10 symbols exceeds the service limit of 6" in capsys.readouterr().err

    def test_max_frame_length_option(self, tmp_path, capsys):
        text = self.write(tmp_path, "plain", "HELLO\n")
        key = self.write(tmp_path, "key", "ABCDEFGHIJ\n")

        with patch("src.otp.client.socket.create_connection") as mock_create_connection:
            assert run_client(Operations.ENCRYPT, [text, key, "50001", "--max-frame-length", "7"]) == 1
            mock_create_connection.assert_not_called()

        assert "service limit of 7" in capsys.readouterr().err
