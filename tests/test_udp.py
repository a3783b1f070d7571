import socket

import pytest

from rclink.queues import QueueEmpty
from rclink.transport import Decoder
from rclink.udp import UdpTransport


class LineDecoder(Decoder):
    def __init__(self):
        self.buffer = b""

    def flush(self):
        self.buffer = b""

    def reset(self, master_id, slave_id, data_maxlen):
        self.buffer = b""

    def parse_put(self, data, rx_queue=None):
        self.buffer += data
        while b"\n" in self.buffer:
            frame, _, self.buffer = self.buffer.partition(b"\n")
            if rx_queue is None:
                return frame
            rx_queue.push(frame)
        return None


def _peer():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5)
    return sock


@pytest.fixture
def peer():
    sock = _peer()
    yield sock
    sock.close()


def test_round_trip(peer):
    port = peer.getsockname()[1]
    transport = UdpTransport("127.0.0.1", port, 16, None, 128, 45)
    try:
        transport.write_frame(b"abc")
        data, addr = peer.recvfrom(64)
        assert data == b"abc"
        peer.sendto(b"xyz", addr)
        assert transport.read_frame(2.0) == b"xyz"
    finally:
        transport.close_port()


def test_initial_address_is_given_peer(peer):
    port = peer.getsockname()[1]
    transport = UdpTransport("127.0.0.1", port, 16, None, 128, 45)
    try:
        assert transport.address == ("127.0.0.1", port)
    finally:
        transport.close_port()


def test_replies_go_to_last_sender(peer):
    port = peer.getsockname()[1]
    other = _peer()
    transport = UdpTransport("127.0.0.1", port, 16, None, 128, 45)
    try:
        transport.write_frame(b"hi")
        _, addr = peer.recvfrom(64)
        other.sendto(b"from other", addr)
        assert transport.read_frame(2.0) == b"from other"
        transport.write_frame(b"answer")
        assert other.recvfrom(64)[0] == b"answer"
    finally:
        transport.close_port()
        other.close()


def test_decoder_splits_datagram(peer):
    port = peer.getsockname()[1]
    transport = UdpTransport("127.0.0.1", port, 16, LineDecoder(), 128, 45)
    try:
        transport.write_frame(b"x")
        _, addr = peer.recvfrom(64)
        peer.sendto(b"a\nb\n", addr)
        assert transport.read_frame(2.0) == b"a"
        assert transport.read_frame(2.0) == b"b"
    finally:
        transport.close_port()


def test_read_times_out(peer):
    transport = UdpTransport("127.0.0.1", peer.getsockname()[1], 16, None, 128, 45)
    try:
        with pytest.raises(QueueEmpty):
            transport.read_frame(0.05)
    finally:
        transport.close_port()


def test_closed_transport_refuses_io(peer):
    transport = UdpTransport("127.0.0.1", peer.getsockname()[1], 16, None, 128, 45)
    transport.close_port()
    assert transport.is_error() is True
    with pytest.raises(ConnectionError):
        transport.write_frame(b"x")
    with pytest.raises(ConnectionError):
        transport.read_frame(0.1)