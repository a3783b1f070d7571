import pytest

from rclink.queues import BlockingQueue, QueueEmpty
from rclink.transport import Decoder, QueuedTransport, Transport


class RecordingDecoder(Decoder):
    def __init__(self):
        self.flushes = 0
        self.resets = []
        self.fed = []

    def flush(self):
        self.flushes += 1

    def reset(self, master_id, slave_id, data_maxlen):
        self.resets.append((master_id, slave_id, data_maxlen))

    def parse_put(self, data, rx_queue=None):
        self.fed.append(data)
        frame = b"<" + data + b">"
        if rx_queue is None:
            return frame
        rx_queue.push(frame)
        return None


class LoopbackTransport(QueuedTransport):
    def close_port(self):
        self._error = True

    def write_frame(self, data):
        if self.is_error():
            raise ConnectionError("closed")
        self.dispatch(data)


def test_raw_frames_without_decoder():
    link = LoopbackTransport(4, None, 64)
    assert link.is_decode is False
    QueuedTransport.dispatch(link, b"\x01\x02")
    assert QueuedTransport.read_frame(link, 1.0) == b"\x01\x02"


def test_decoder_receives_bytes():
    decoder = RecordingDecoder()
    link = LoopbackTransport(4, decoder, 64)
    assert decoder.flushes == 1
    QueuedTransport.dispatch(link, b"ab")
    assert decoder.fed == [b"ab"]
    assert QueuedTransport.read_frame(link, 1.0) == b"<ab>"


def test_flush_without_decoding_queues_raw():
    decoder = RecordingDecoder()
    link = LoopbackTransport(4, decoder, 64)
    QueuedTransport.flush(link, False)
    QueuedTransport.dispatch(link, b"xy")
    assert decoder.fed == []
    assert QueuedTransport.read_frame(link, 1.0) == b"xy"


def test_flush_drops_pending_frames():
    link = LoopbackTransport(4, None, 64)
    QueuedTransport.dispatch(link, b"one")
    QueuedTransport.flush(link)
    with pytest.raises(QueueEmpty):
        QueuedTransport.read_frame(link, 0.01)


def test_configure_resets_decoder():
    decoder = RecordingDecoder()
    link = LoopbackTransport(4, decoder, 64)
    QueuedTransport.flush(link, False)
    QueuedTransport.configure(link, 0x55, 0xAA, 64)
    assert decoder.resets == [(0x55, 0xAA, 64)]
    assert link.is_decode is True


def test_read_after_close_raises():
    link = LoopbackTransport(4, None, 64)
    link.close_port()
    assert QueuedTransport.is_error(link) is True
    with pytest.raises(ConnectionError):
        QueuedTransport.read_frame(link, 0.01)


def test_read_timeout_raises_empty():
    link = LoopbackTransport(2, None, 64)
    with pytest.raises(QueueEmpty):
        QueuedTransport.read_frame(link, 0.01)


def test_frames_are_fifo():
    link = LoopbackTransport(4, None, 64)
    for frame in (b"a", b"b", b"c"):
        QueuedTransport.dispatch(link, frame)
    assert [QueuedTransport.read_frame(link, 1.0) for _ in range(3)] == [b"a", b"b", b"c"]


def test_decoder_without_queue_returns_frame():
    decoder = RecordingDecoder()
    assert decoder.parse_put(b"z") == b"<z>"
    queue = BlockingQueue(2)
    assert decoder.parse_put(b"q", queue) is None
    assert queue.pop(1.0) == b"<q>"


def test_abstract_classes_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Transport()
    with pytest.raises(TypeError):
        QueuedTransport(4, None, 64)
    with pytest.raises(TypeError):
        Decoder()