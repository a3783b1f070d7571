"""A serial-line link that feeds received bytes through a frame decoder."""

from __future__ import annotations

import logging

import serial

from .periodic import PeriodicFunction
from .transport import Decoder, QueuedTransport

log = logging.getLogger(__name__)

# Inter-character read timeout, matching a tenth of a second.
_READ_TIMEOUT_S = 0.1


class SerialTransport(QueuedTransport):
    """Opens a serial port (8N1, no flow control) and receives on a thread.

    ``port`` may be a device path or any URL that pyserial understands.
    Raises ConnectionError when the port cannot be opened.
    """

    def __init__(
        self,
        port: str,
        baud: int,
        rxque_max: int = 16,
        decoder: Decoder | None = None,
        rxlen_max: int = 128,
        priority: int = 45,
    ) -> None:
        try:
            self._port = serial.serial_for_url(
                port,
                baudrate=baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=_READ_TIMEOUT_S,
                xonxoff=False,
                rtscts=False,
            )
        except (serial.SerialException, ValueError) as exc:
            log.error("serial init failed on %s: %s", port, exc)
            raise ConnectionError(f"serial init on {port!r} failed: {exc}") from exc
        self.port = port
        self.baud = baud
        super().__init__(rxque_max, decoder, rxlen_max)
        self._task = PeriodicFunction(0, "recv_task", 1024 * 1024, priority, self._recv_proc)
        self._task.start()

    def close_port(self) -> None:
        """Mark the link failed and close the port."""
        self._error = True
        self._task.stop()
        self._port.close()

    def write_frame(self, data: bytes) -> None:
        """Write one frame; a short write is an error."""
        if self._error:
            raise ConnectionError("transport is closed or failed")
        payload = bytes(data)
        try:
            written = self._port.write(payload)
        except serial.SerialException as exc:
            raise ConnectionError(f"serial write failed: {exc}") from exc
        if written != len(payload):
            raise ConnectionError(f"wrote {written} of {len(payload)} bytes")

    def _read_chunk(self) -> bytes:
        chunk = self._port.read(1)
        if chunk:
            waiting = min(self._port.in_waiting, self.rxlen_max - 1)
            if waiting > 0:
                chunk += self._port.read(waiting)
        return chunk

    def _recv_proc(self) -> None:
        while not self._error:
            try:
                chunk = self._read_chunk()
            except (serial.SerialException, OSError, ValueError, TypeError) as exc:
                log.info("serial receive loop exit: %s", exc)
                return
            if self._error:
                return
            if chunk:
                self.dispatch(chunk)