"""A UDP link that feeds received datagrams through a frame decoder."""

from __future__ import annotations

import logging

from .network import udp_send_data, udp_socket_init
from .periodic import PeriodicFunction
from .transport import Decoder, QueuedTransport

log = logging.getLogger(__name__)

# How often the receive loop wakes up to notice a closed link.
_POLL_S = 0.1


class UdpTransport(QueuedTransport):
    """Sends datagrams to a peer and receives on a background thread.

    Replies go to whichever address sent the most recent datagram.
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
        # Bound to an ephemeral port so replies can be received before sending.
        self._sock = udp_socket_init(" ", 0, True)
        self._sock.settimeout(_POLL_S)
        self.address: tuple[str, int] = (ip, port)
        super().__init__(rxque_max, decoder, rxlen_max)
        self._task = PeriodicFunction(0, "recv_task", 1024 * 1024, priority, self._recv_proc)
        self._task.start()

    def close_port(self) -> None:
        """Mark the link failed and close the socket."""
        self._error = True
        self._task.stop()
        self._sock.close()

    def write_frame(self, data: bytes) -> None:
        """Send one datagram; raises ConnectionError once the link is closed."""
        if self._error:
            raise ConnectionError("transport is closed or failed")
        udp_send_data(self._sock, self.address, data)

    def _recv_proc(self) -> None:
        while not self._error:
            try:
                chunk, sender = self._sock.recvfrom(self.rxlen_max)
            except TimeoutError:
                continue
            except OSError:
                chunk, sender = b"", None
            if not chunk:
                self._sock.close()
                log.info("udp receive loop exit")
                return
            self.address = sender
            self.dispatch(chunk)