"""
TCP network client for Diamond Maze.
Owns the socket, runs a background receive thread that drops raw text
chunks into a thread-safe inbox, and gives the game loop a best-effort
send path that never stalls it.
"""

import logging
import select
import socket
import threading
from enum import Enum
from queue import Queue, Empty
from typing import List, Optional

from maze_shared.constants import (
    RECV_BUFFER_SIZE, RECEIVE_POLL_INTERVAL, RECEIVE_JOIN_TIMEOUT, WIRE_ENCODING
)
from maze_shared.protocol import create_exit_message

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ConnectError(ConnectionError):
    """Connecting to the server failed. Reported once, never retried."""


class NetworkClient:
    """
    Handles the TCP connection to the game server.
    The receive loop runs in its own thread so the game loop never blocks
    on reads; all it shares with the main thread is the inbox queue and a
    couple of flags.
    """

    def __init__(self):
        self.sock: Optional[socket.socket] = None
        self.state = ConnectionState.DISCONNECTED
        self.disconnected = False  # Set when the receive side sees the link die

        # Receive thread -> game loop (single producer, single consumer)
        self.incoming_chunks: Queue = Queue()

        self.receive_thread: Optional[threading.Thread] = None
        self.running = False

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def connect(self, host: str, port: int):
        """Open the connection and start the receive thread.
        Blocks until the server answers or the attempt fails."""
        if self.state != ConnectionState.DISCONNECTED:
            raise ConnectError(f"can't connect from state {self.state.value}")

        self.state = ConnectionState.CONNECTING
        logger.info("Connecting to %s:%s...", host, port)
        try:
            self.sock = socket.create_connection((host, int(port)))
        except OSError as e:
            self.state = ConnectionState.DISCONNECTED
            self.sock = None
            logger.error("Connection failed: %s", e)
            raise ConnectError(f"could not connect to {host}:{port}: {e}") from e

        self.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        self.state = ConnectionState.CONNECTED
        self.running = True
        logger.info("Connected!")

        self.receive_thread = threading.Thread(
            target=self._receive_loop,
            name="maze-receive",
            daemon=True
        )
        self.receive_thread.start()

    def _receive_loop(self):
        """Pull raw chunks off the socket until told to stop or the link dies."""
        sock = self.sock
        try:
            while self.running:
                readable, _, _ = select.select([sock], [], [], RECEIVE_POLL_INTERVAL)
                if not readable:
                    continue

                data = sock.recv(RECV_BUFFER_SIZE)
                if not data:
                    logger.info("Connection closed by server")
                    break
                self.incoming_chunks.put(data.decode(WIRE_ENCODING))
        except (OSError, ValueError) as e:
            # ValueError: select() on a socket that was closed under us
            if self.running:
                logger.info("Receive error: %s", e)
        finally:
            if self.running:
                self.disconnected = True
                self.state = ConnectionState.CLOSED
            self.running = False

    def send(self, record: str) -> bool:
        """Best-effort write. Drops the record if the link isn't writable."""
        if not self.connected or self.sock is None:
            return False
        try:
            self.sock.sendall(record.encode(WIRE_ENCODING))
        except OSError as e:
            logger.debug("Dropped outbound record %r: %s", record.strip(), e)
            return False
        return True

    def send_exit(self) -> bool:
        return self.send(create_exit_message())

    def get_messages(self) -> List[str]:
        """Get all pending raw chunks in arrival order (non-blocking)."""
        chunks = []
        while True:
            try:
                chunks.append(self.incoming_chunks.get_nowait())
            except Empty:
                break
        return chunks

    def stop_receiving(self):
        """Stop the receive thread but keep the socket open for sends."""
        self.running = False

    def close(self):
        """Tear the connection down. Safe to call more than once."""
        self.running = False

        if self.sock is not None:
            try:
                # Unblocks anything still sitting in recv/select
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.sock.close()
            self.sock = None

        thread = self.receive_thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=RECEIVE_JOIN_TIMEOUT)
        self.receive_thread = None

        if self.state != ConnectionState.DISCONNECTED:
            self.state = ConnectionState.CLOSED
