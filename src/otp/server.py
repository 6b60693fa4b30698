"""
One-time pad service daemons.

This module implements the connection dispatcher shared by the encryption
and decryption services. Each accepted connection is handed to its own
worker thread, which runs exactly one exchange and then closes the
connection.
"""

import argparse
import logging
import socket
import sys
import threading
from typing import List, Optional, Set, Tuple

from rich.console import Console
from rich.markup import escape

from .config import ServiceConfig, log_level_from_env, parse_port, port_warning
from .exceptions import ConfigurationError, ConnectionError, InvalidPortError
from .protocol import Operations, service_name
from .session import serve_connection
from ..utils.logging import configure_debug_logging, setup_logger, silence_external_loggers


class ConnectionDispatcher:
    """
    Accepts connections and runs each exchange in an isolated worker thread.

    The set of live workers is the only state shared between threads. Each
    worker removes itself when its exchange ends, and the accept loop also
    reaps any finished worker still in the set before every accept.
    """

    def __init__(self, config: ServiceConfig, operation: str):
        self.config = config
        self.operation = operation
        self.name = service_name(operation)
        self.socket: Optional[socket.socket] = None
        self._workers: Set[threading.Thread] = set()
        self._workers_lock = threading.Lock()
        self._closed = threading.Event()
        self._worker_count = 0
        self.logger = logging.getLogger(__name__)

    def bind(self) -> Tuple[str, int]:
        """
        Bind and listen on the configured endpoint.

        Returns:
            Tuple[str, int]: The bound address

        Raises:
            ConnectionError: If the socket cannot be bound or put in listening mode
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            error_msg = f"Failed to bind {self.config.host or '*'}:{self.config.port}: {e}"
            self.logger.error(error_msg)
            raise ConnectionError(error_msg)

        self.socket = sock
        self._closed.clear()
        self.logger.info(f"{self.name} listening on {self.address[0]}:{self.address[1]}")
        return self.address

    @property
    def address(self) -> Tuple[str, int]:
        if not self.socket:
            raise ConnectionError("Dispatcher is not bound")
        return self.socket.getsockname()[:2]

    @property
    def active_workers(self) -> List[threading.Thread]:
        with self._workers_lock:
            return [worker for worker in self._workers if worker.is_alive()]

    def reap_workers(self) -> int:
        """
        Drop finished workers from the live set without waiting on running ones.

        Returns:
            int: Number of workers reclaimed
        """
        with self._workers_lock:
            finished = [worker for worker in self._workers if not worker.is_alive()]
            for worker in finished:
                worker.join(0)
                self._workers.discard(worker)
        if finished:
            self.logger.debug(f"Reaped {len(finished)} finished workers")
        return len(finished)

    def _run_worker(self, connection: socket.socket, peer: str) -> None:
        try:
            state = serve_connection(
                connection,
                self.operation,
                self.config.max_frame_length,
                peer=peer
            )
            self.logger.debug(f"Worker for {peer} finished in state {state}")
        except Exception:
            self.logger.exception(f"Unexpected error in worker for {peer}")
            connection.close()
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def dispatch(self, connection: socket.socket, address: Tuple[str, int]) -> threading.Thread:
        """Start a worker thread owning connection."""
        peer = f"{address[0]}:{address[1]}"
        self._worker_count += 1
        worker = threading.Thread(
            target=self._run_worker,
            args=(connection, peer),
            name=f"{self.name}-worker-{self._worker_count}",
            daemon=True
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()
        self.logger.info(f"Accepted {peer}, dispatched to {worker.name}")
        return worker

    def serve_forever(self) -> None:
        """
        Accept and dispatch connections until the listening socket is closed.
        """
        if not self.socket:
            self.bind()

        while not self._closed.is_set():
            self.reap_workers()
            try:
                connection, address = self.socket.accept()
            except OSError as e:
                if self._closed.is_set():
                    break
                self.logger.error(f"Error on accept: {e}")
                continue

            try:
                self.dispatch(connection, address)
            except RuntimeError as e:
                self.logger.error(f"Could not start worker for {address}: {e}")
                with self._workers_lock:
                    self._workers = {worker for worker in self._workers if worker.is_alive()}
                connection.close()

        self.logger.info(f"{self.name} stopped accepting connections")

    def close(self) -> None:
        """Close the listening socket; running workers finish on their own."""
        self._closed.set()
        if self.socket:
            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.socket.close()


def build_parser(operation: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=service_name(operation),
        description=f"One-time pad {'encryption' if operation == Operations.ENCRYPT else 'decryption'} service"
    )
    parser.add_argument("port", help="Port number to listen on")
    parser.add_argument("--host", help="Address to bind (default: all interfaces)")
    parser.add_argument("--backlog", type=int, help="Pending connection backlog")
    parser.add_argument("--max-frame-length", type=int, help="Largest text or key accepted, in symbols")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def run_service(operation: str, argv: Optional[List[str]] = None) -> int:
    """Entry point shared by the encryption and decryption services."""
    parser = build_parser(operation)
    args = parser.parse_args(argv)
    name = service_name(operation)
    console = Console(stderr=True, soft_wrap=True)

    level = logging.DEBUG if args.verbose else log_level_from_env(logging.INFO)
    setup_logger("src.otp", level=level, use_rich=sys.stderr.isatty())
    silence_external_loggers()
    if args.verbose:
        configure_debug_logging()

    try:
        port = parse_port(args.port)
    except InvalidPortError as e:
        console.print(f"[red]{name}: ERROR, {escape(str(e))}[/red]")
        return 2

    warning = port_warning(port)
    if warning:
        console.print(f"[yellow]{name}: WARNING, {escape(warning)}[/yellow]")

    try:
        config = ServiceConfig.from_env(
            port,
            host=args.host,
            backlog=args.backlog,
            max_frame_length=args.max_frame_length
        )
    except ConfigurationError as e:
        console.print(f"[red]{name}: ERROR, {escape(str(e))}[/red]")
        return 2

    dispatcher = ConnectionDispatcher(config, operation)

    try:
        dispatcher.bind()
        dispatcher.serve_forever()
    except ConnectionError as e:
        console.print(f"[red]{name}: ERROR, {escape(str(e))}[/red]")
        return 2
    except KeyboardInterrupt:
        console.print(f"\n{name}: interrupted, shutting down")
    finally:
        dispatcher.close()

    return 0


def encrypt_service_main() -> int:
    return run_service(Operations.ENCRYPT)


def decrypt_service_main() -> int:
    return run_service(Operations.DECRYPT)


if __name__ == "__main__":
    sys.exit(encrypt_service_main())
