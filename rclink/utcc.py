"""The UTCC register protocol: packets, a request/response client and a decoder."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import IntEnum

from .crc16 import modbus
from .hexdata import int32_to_hex_big
from .printing import format_hex
from .queues import BlockingQueue, QueueEmpty
from .transport import SERIAL_DATA_MAX, Decoder, Transport

HEAD = 0xAA


class UtccErrorCode(IntEnum):
    """Reasons a UTCC exchange can fail."""

    HEAD = -1
    ID = -2
    TIMEOUT = -3
    STATE = -4
    LEN = -5
    RW = -6
    CMD = -7
    CRC = -8
    CONNECT = -9
    LEN_MIN = -10


class UtccError(Exception):
    """A failed UTCC exchange; ``packet`` holds the reply when one arrived."""

    def __init__(self, code: UtccErrorCode, message: str = "", packet: UtccPacket | None = None) -> None:
        super().__init__(f"{code.name}: {message}" if message else code.name)
        self.code = code
        self.packet = packet


class UtccRw(IntEnum):
    OR = 0x00
    OW = 0x01
    RW = 0x02
    R = 0x00
    W = 0x01


@dataclass
class UtccPacket:
    """One UTCC frame with a 16-bit device id.

    ``length`` counts the command byte plus the payload; it defaults to
    ``len(data) + 1``.
    """

    head: int = HEAD
    id: int = 0
    state: int = 0
    length: int | None = None
    rw: int = 0
    cmd: int = 0
    data: bytes = b""
    crc: int = 0
    intf_type: int = 0
    intf_fp: int = 0

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if self.length is None:
            self.length = len(self.data) + 1

    def pack(self) -> bytes:
        """Encode the frame with its CRC appended low byte first."""
        if not 1 <= self.length <= 0x7F:
            raise ValueError(f"length must be between 1 and 127: {self.length}")
        payload = self.data[: self.length - 1].ljust(self.length - 1, b"\x00")
        body = (
            bytes([self.head & 0xFF])
            + (self.id & 0xFFFF).to_bytes(2, "big")
            + bytes(
                [
                    ((self.state & 0x01) << 7) + (self.length & 0x7F),
                    ((self.rw & 0x01) << 7) + (self.cmd & 0x7F),
                ]
            )
            + payload
        )
        self.crc = modbus(body)
        return body + self.crc.to_bytes(2, "little")

    @classmethod
    def unpack(cls, frame: bytes) -> UtccPacket:
        """Decode and checksum-verify a frame.

        The state bit is read from bit 7 of the id's low byte, and only the
        low seven bits of the id are kept.
        """
        raw = bytes(frame)
        if len(raw) < 7:
            raise UtccError(UtccErrorCode.LEN, f"frame of {len(raw)} bytes")
        length = raw[3] & 0x7F
        if len(raw) != length + 6:
            raise UtccError(UtccErrorCode.LEN, f"frame of {len(raw)} bytes, length field {length}")
        if raw[0] != HEAD:
            raise UtccError(UtccErrorCode.HEAD, f"{HEAD} {raw[0]}")
        raw_id = int.from_bytes(raw[1:3], "big")
        crc = modbus(raw[: length + 4])
        received = raw[length + 4] + (raw[length + 5] << 8)
        if crc != received:
            raise UtccError(UtccErrorCode.CRC, f"{crc} {received}")
        return cls(
            head=raw[0],
            id=raw_id & 0x7F,
            state=(raw_id & 0x80) >> 7,
            length=length,
            rw=raw[4] >> 7,
            cmd=raw[4] & 0x7F,
            data=raw[5 : 5 + length - 1],
            crc=crc,
        )

    def describe(self, label: str) -> str:
        """A multi-line description of every field."""
        lines = [
            "",
            f"{label} utcc pack",
            f"  m_id : 0x{self.head:x}",
            f"  s_id : 0x{self.id:x}",
            f"  state: {self.state}",
            f"  len  : {self.length}",
            f"  rw   : {self.rw}",
            f"  cmd  : 0x{self.cmd:x}",
            format_hex("  data : ", self.data[: max(self.length - 1, 0)]),
            f"  crc  : 0x{self.crc:x}",
            f"  type : {self.intf_type}",
        ]
        return "\n".join(lines) + "\n"


class UtccClient:
    """Sends UTCC requests over a transport and gathers the replies."""

    def __init__(self, port: Transport | None) -> None:
        self._lock = threading.Lock()
        self.port = port
        if port is not None:
            port.flush()

    def connect_device(self, baud: int = 0xFFFFFFFF) -> UtccPacket:
        """Send the connect request and return the device's reply."""
        tx = UtccPacket(
            head=HEAD,
            id=0x0055,
            state=0,
            length=0x08,
            rw=0,
            cmd=0x7F,
            data=int32_to_hex_big([baud]) + b"\x7f" * 3,
        )
        self.send(tx)
        return self.pend(tx, 1, 1)

    def send(self, packet: UtccPacket) -> None:
        """Drop stale replies and write the request."""
        frame = packet.pack()
        with self._lock:
            self.port.flush()
            self.port.write_frame(frame)

    def _pend_once(self, tx_packet: UtccPacket, timeout: float) -> UtccPacket:
        with self._lock:
            try:
                frame = self.port.read_frame(timeout)
            except (QueueEmpty, ConnectionError) as exc:
                raise UtccError(UtccErrorCode.TIMEOUT, str(exc)) from exc
        if len(frame) < 6:
            raise UtccError(UtccErrorCode.TIMEOUT, f"short frame of {len(frame)} bytes")

        rx = UtccPacket.unpack(frame)
        if rx.id != tx_packet.id:
            raise UtccError(UtccErrorCode.ID, f"{rx.id} {tx_packet.id}", rx)
        if rx.state != 0:
            raise UtccError(UtccErrorCode.STATE, "", rx)
        if rx.rw != tx_packet.rw:
            raise UtccError(UtccErrorCode.RW, f"{rx.rw} {tx_packet.rw}", rx)
        if rx.cmd != tx_packet.cmd:
            raise UtccError(UtccErrorCode.CMD, f"{rx.cmd} {tx_packet.cmd}", rx)
        return rx

    def pend(self, tx_packet: UtccPacket, rx_len: int, timeout: float) -> UtccPacket:
        """Collect replies until ``rx_len`` payload bytes have arrived.

        Replies flagged with the state bit are continued by later ones; if the
        last reply still carries it, a STATE error holding the merged packet
        is raised.
        """
        merged: UtccPacket | None = None
        while True:
            state_error: UtccError | None = None
            try:
                rx = self._pend_once(tx_packet, timeout)
            except UtccError as exc:
                if exc.code is not UtccErrorCode.STATE:
                    raise
                rx = exc.packet
                state_error = exc

            if merged is None:
                merged = replace(rx)
            else:
                merged.data = merged.data[: merged.length - 1] + rx.data[: rx.length - 1]
                merged.length = merged.length + rx.length - 1

            if merged.length == rx_len + 1:
                if state_error is not None:
                    raise UtccError(UtccErrorCode.STATE, "", merged)
                return merged


class _State(IntEnum):
    FROM_ID = 0
    TO_ID1 = 1
    TO_ID2 = 2
    LENGTH = 3
    DATA = 4
    CRC1 = 5
    CRC2 = 6


class UtccDecoder(Decoder):
    """Finds CRC-valid UTCC frames in a byte stream.

    A head of 0x55 accepts frames with any first byte.
    """

    def __init__(self, head: int, slave_id: int, data_maxlen: int) -> None:
        self.reset(head, slave_id, data_maxlen)

    def flush(self) -> None:
        self._state = _State.FROM_ID
        self._buf = bytearray()
        self._length = 0

    def reset(self, head: int, slave_id: int, data_maxlen: int) -> None:
        self.head = head & 0xFF
        self.slave_id = slave_id & 0xFF
        self.data_maxlen = min(data_maxlen, SERIAL_DATA_MAX)
        self.flush()

    def parse_put(self, data: bytes, rx_queue: BlockingQueue | None = None) -> bytes | None:
        for ch in bytes(data):
            state = self._state
            if state is _State.FROM_ID:
                if ch == self.head or self.head == 0x55:
                    self._buf = bytearray([ch])
                    self._state = _State.TO_ID1
            elif state is _State.TO_ID1:
                self._buf.append(ch)
                self._state = _State.TO_ID2
            elif state is _State.TO_ID2:
                self._buf.append(ch)
                self._state = _State.LENGTH
            elif state is _State.LENGTH:
                self._length = ch & 0x7F
                if 0 < self._length < self.data_maxlen - 5:
                    self._buf.append(ch)
                    self._state = _State.DATA
                else:
                    self._state = _State.FROM_ID
            elif state is _State.DATA:
                self._buf.append(ch)
                if len(self._buf) == self._length + 4:
                    self._state = _State.CRC1
            elif state is _State.CRC1:
                self._buf.append(ch)
                self._state = _State.CRC2
            else:
                self._buf.append(ch)
                self._state = _State.FROM_ID
                frame = bytes(self._buf)
                n = self._length
                if modbus(frame[: n + 4]) == frame[n + 4] | (frame[n + 5] << 8):
                    if rx_queue is not None:
                        rx_queue.push(frame)
                    else:
                        return frame
        return None