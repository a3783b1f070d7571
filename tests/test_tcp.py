import socket
import time

import pytest

from rclink.network import NetworkError
from rclink.queues import QueueEmpty
from rclink.tcp import TcpTransport
from rclink.transport import Decoder


class LineDecoder(Decoder):
    def __init__(self):
        self.buffer = b""
        self.resets = []

    def flush(self):
        self.buffer = b""

    def reset(self, master_id, slave_id, data_maxlen):
        self.resets.append((master_id, slave_id, data_maxlen))
        self.buffer = b""

    def parse_put(self, data, rx_queue=None):
        self.buffer += data
        while b"\n" in self.buffer:
            frame, _, self.buffer = self.buffer.partition(b"\n")
            if rx_queue is None:
                return frame
            rx_queue.push(frame)
        return None


@pytest.fixture
def server():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    srv.settimeout(5)
    yield srv
    srv.close()


def _open(server, decoder=None):
    port = server.getsockname()[1]
    transport = TcpTransport("127.0.0.1", port, 16, decoder, 128, 45)
    conn, _ = server.accept()
    conn.settimeout(5)
    return transport, conn


def test_receives_raw_chunks_without_decoder(server):
    transport, conn = _open(server)
    try:
        conn.sendall(b"\x01\x02\x03")
        assert transport.read_frame(2.0) == b"\x01\x02\x03"
    finally:
        transport.close_port()
        conn.close()


def test_write_frame_reaches_server(server):
    transport, conn = _open(server)
    try:
        transport.write_frame(b"ping")
        assert conn.recv(64) == b"ping"
    finally:
        transport.close_port()
        conn.close()


def test_decoder_splits_frames(server):
    decoder = LineDecoder()
    transport, conn = _open(server, decoder)
    try:
        conn.sendall(b"one\ntwo\n")
        assert transport.read_frame(2.0) == b"one"
        assert transport.read_frame(2.0) == b"two"
    finally:
        transport.close_port()
        conn.close()


def test_configure_resets_decoder(server):
    decoder = LineDecoder()
    transport, conn = _open(server, decoder)
    try:
        transport.configure(1, 2, 64)
        assert decoder.resets == [(1, 2, 64)]
        assert transport.is_decode is True
    finally:
        transport.close_port()
        conn.close()


def test_flush_without_decoding_queues_raw_bytes(server):
    decoder = LineDecoder()
    transport, conn = _open(server, decoder)
    try:
        transport.flush(False)
        conn.sendall(b"raw")
        assert transport.read_frame(2.0) == b"raw"
    finally:
        transport.close_port()
        conn.close()


def test_flush_drops_queued_frames(server):
    transport, conn = _open(server)
    try:
        conn.sendall(b"data")
        deadline = time.monotonic() + 2
        while len(transport.rx_queue) == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert len(transport.rx_queue) == 1
        transport.flush()
        assert len(transport.rx_queue) == 0
        with pytest.raises(QueueEmpty):
            transport.read_frame(0.05)
    finally:
        transport.close_port()
        conn.close()


def test_read_times_out(server):
    transport, conn = _open(server)
    try:
        with pytest.raises(QueueEmpty):
            transport.read_frame(0.05)
    finally:
        transport.close_port()
        conn.close()


def test_closed_transport_refuses_io(server):
    transport, conn = _open(server)
    transport.close_port()
    conn.close()
    assert transport.is_error() is True
    with pytest.raises(ConnectionError):
        transport.write_frame(b"x")
    with pytest.raises(ConnectionError):
        transport.read_frame(0.1)


def test_refused_connection_raises():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(NetworkError):
        TcpTransport("127.0.0.1", port, 16, None, 128, 45)