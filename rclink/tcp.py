"""A TCP client link that feeds received bytes through a frame decoder."""

from __future__ import annotations

import logging
import socket

from .network import NetworkError, connect_server, send_data, tcp_socket_init
from .periodic import PeriodicFunction
from .transport import Decoder, QueuedTransport

log = logging.getLogger(__name__)


class TcpTransport(QueuedTransport):
    """Connects to a TCP server and receives on a background thread.

    Raises NetworkError when the connection cannot be made.
    """

    def __init__(
        self,
        ip: str,
        port: int,
        rxque_max: int = 16,
        decoder: Decoder | None = None,
        rxlen_max: int = 128,
        priority: int = 45,
    ) -> None:
        sock = tcp_socket_init(" ", 0, False)
        try:
            connect_server(sock, ip, port)
        except NetworkError:
            sock.close()
            log.error("tcp connect failed, ip:%s port:%d", ip, port)
            raise
        self.ip = ip
        self.port = port
        self._sock = sock
        super().__init__(rxque_max, decoder, rxlen_max)
        self._task = PeriodicFunction(0, "recv_task", 1024 * 1024, priority, self._recv_proc)
        self._task.start()

    def close_port(self) -> None:
        """Mark the link failed and close the socket."""
        self._error = True
        self._task.stop()
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()

    def write_frame(self, data: bytes) -> None:
        """Send one frame; raises ConnectionError once the link is closed."""
        if self._error:
            raise ConnectionError("transport is closed or failed")
        send_data(self._sock, data)

    def _recv_proc(self) -> None:
        while not self._error:
            try:
                chunk = self._sock.recv(self.rxlen_max)
            except OSError:
                chunk = b""
            if not chunk:
                self._sock.close()
                log.info("tcp receive loop exit")
                return
            self.dispatch(chunk)