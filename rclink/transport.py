"""Abstract frame decoders and byte transports with a receive queue."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .queues import BlockingQueue

SERIAL_DATA_MAX = 2560


class Decoder(ABC):
    """Reassembles frames from a stream of received bytes."""

    @abstractmethod
    def flush(self) -> None:
        """Forget any partially received frame."""

    @abstractmethod
    def reset(self, master_id: int, slave_id: int, data_maxlen: int) -> None:
        """Start over with new addressing and length limit."""

    @abstractmethod
    def parse_put(self, data: bytes, rx_queue: BlockingQueue | None = None) -> bytes | None:
        """Feed bytes in; complete frames go to ``rx_queue``.

        Without a queue the first complete frame is returned instead.
        """


class Transport(ABC):
    """A link that writes frames and reads received frames."""

    @abstractmethod
    def is_error(self) -> bool:
        """True once the link has failed or been closed."""

    @abstractmethod
    def close_port(self) -> None:
        """Close the link."""

    @abstractmethod
    def flush(self, is_decode: bool = True) -> None:
        """Drop received frames and choose whether to decode from now on."""

    @abstractmethod
    def configure(self, master_id: int, slave_id: int, rxlen_max: int) -> None:
        """Drop received frames and reset the decoder's addressing."""

    @abstractmethod
    def write_frame(self, data: bytes) -> None:
        """Send one frame."""

    @abstractmethod
    def read_frame(self, timeout: float = 0) -> bytes:
        """Receive one frame; zero timeout waits forever."""


class QueuedTransport(Transport):
    """A transport whose received bytes pass through a decoder into a queue."""

    def __init__(self, rxque_max: int, decoder: Decoder | None, rxlen_max: int) -> None:
        self._error = False
        self.rx_queue = BlockingQueue(rxque_max)
        self.decoder = decoder
        self.rxlen_max = rxlen_max
        self.is_decode = decoder is not None
        self.flush(self.is_decode)

    def is_error(self) -> bool:
        return self._error

    def flush(self, is_decode: bool = True) -> None:
        self.is_decode = is_decode
        self.rx_queue.clear()
        if self.decoder is not None and self.is_decode:
            self.decoder.flush()

    def configure(self, master_id: int, slave_id: int, rxlen_max: int) -> None:
        self.is_decode = True
        self.rx_queue.clear()
        if self.decoder is not None:
            self.decoder.reset(master_id, slave_id, rxlen_max)

    def read_frame(self, timeout: float = 0) -> bytes:
        """Receive one frame.

        Raises ConnectionError when the link has failed and QueueEmpty when a
        positive timeout expires.
        """
        if self._error:
            raise ConnectionError("transport is closed or failed")
        return self.rx_queue.pop(timeout)

    def dispatch(self, data: bytes) -> None:
        """Hand received bytes to the decoder, or queue them as one frame."""
        if self.decoder is not None and self.is_decode:
            self.decoder.parse_put(bytes(data), self.rx_queue)
        else:
            self.rx_queue.push(bytes(data))