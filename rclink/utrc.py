"""The UTRC register protocol: packets, a request/response client and a decoder."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum

from .crc16 import modbus
from .hexdata import int32_to_hex_big
from .printing import format_hex
from .queues import BlockingQueue, QueueEmpty
from .transport import SERIAL_DATA_MAX, Decoder, Transport


class UtrcErrorCode(IntEnum):
    """Reasons a UTRC exchange can fail."""

    M_ID = -1
    S_ID = -2
    TIMEOUT = -3
    STATE = -4
    LEN = -5
    RW = -6
    CMD = -7
    CRC = -8
    CONNECT = -9
    LEN_MIN = -10


class UtrcError(Exception):
    """A failed UTRC exchange; ``packet`` holds the reply when one arrived."""

    def __init__(self, code: UtrcErrorCode, message: str = "", packet: UtrcPacket | None = None) -> None:
        super().__init__(f"{code.name}: {message}" if message else code.name)
        self.code = code
        self.packet = packet


class UtrcPriority(IntEnum):
    HIGH = 0x0A
    MID = 0x0B
    LOW = 0x0C
    NONE = 0x0B


class UtrcRw(IntEnum):
    OR = 0x00
    OW = 0x01
    RW = 0x02
    R = 0x00
    W = 0x01


@dataclass
class UtrcPacket:
    """One UTRC frame.

    ``length`` counts the command byte plus the payload; it defaults to
    ``len(data) + 1``.
    """

    master_id: int = 0
    slave_id: int = 0
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
        body = bytes(
            [
                self.master_id & 0xFF,
                self.slave_id & 0xFF,
                ((self.state & 0x01) << 7) + (self.length & 0x7F),
                ((self.rw & 0x01) << 7) + (self.cmd & 0x7F),
            ]
        ) + payload
        self.crc = modbus(body)
        return body + self.crc.to_bytes(2, "little")

    @classmethod
    def unpack(cls, frame: bytes) -> UtrcPacket:
        """Decode a frame; the checksum is not verified here."""
        raw = bytes(frame)
        if len(raw) < 4:
            raise UtrcError(UtrcErrorCode.LEN, f"frame of {len(raw)} bytes")
        length = raw[2] & 0x7F
        if len(raw) != length + 5:
            raise UtrcError(UtrcErrorCode.LEN, f"frame of {len(raw)} bytes, length field {length}")
        return cls(
            master_id=raw[0],
            slave_id=raw[1],
            state=raw[2] >> 7,
            length=length,
            rw=raw[3] >> 7,
            cmd=raw[3] & 0x7F,
            data=raw[4 : 4 + max(length - 1, 0)],
            crc=raw[length + 3] | (raw[length + 4] << 8),
        )

    def describe(self, label: str) -> str:
        """A multi-line description of every field."""
        lines = [
            "",
            f"{label} utrc pack",
            f"  m_id : 0x{self.master_id:x}",
            f"  s_id : 0x{self.slave_id:x}",
            f"  state: {self.state}",
            f"  len  : {self.length}",
            f"  rw   : {self.rw}",
            f"  cmd  : 0x{self.cmd:x}",
            format_hex("  data : ", self.data[: max(self.length - 1, 0)]),
            f"  crc  : 0x{self.crc:x}",
            f"  type : {self.intf_type}",
        ]
        return "\n".join(lines) + "\n"


class UtrcClient:
    """Sends UTRC requests over a transport and checks the replies."""

    def __init__(self, port: Transport | None) -> None:
        self._lock = threading.Lock()
        self.port = port
        if port is not None:
            port.flush()

    def connect_device(self, baud: int = 0xFFFFFFFF) -> UtrcPacket:
        """Send the connect request and return the device's reply."""
        tx = UtrcPacket(
            master_id=0xAA,
            slave_id=0x55,
            state=0,
            length=0x08,
            rw=0,
            cmd=0x7F,
            data=int32_to_hex_big([baud]) + b"\x7f" * 3,
        )
        self.send(tx)
        return self.pend(tx, 1, 1)

    def send(self, packet: UtrcPacket) -> None:
        """Point the receiver at the addressed slave and write the request."""
        frame = packet.pack()
        with self._lock:
            self.port.configure(packet.slave_id, packet.master_id, 64)
            self.port.write_frame(frame)

    def pend(self, tx_packet: UtrcPacket, rx_len: int, timeout: float) -> UtrcPacket:
        """Wait for the reply to ``tx_packet`` and validate it.

        ``rx_len`` is the expected payload size; 0x55 accepts any size.
        """
        with self._lock:
            try:
                frame = self.port.read_frame(timeout)
            except (QueueEmpty, ConnectionError) as exc:
                raise UtrcError(UtrcErrorCode.TIMEOUT, str(exc)) from exc
        if len(frame) < 6:
            raise UtrcError(UtrcErrorCode.TIMEOUT, f"short frame of {len(frame)} bytes")

        rx = UtrcPacket.unpack(frame)
        if rx.master_id != tx_packet.slave_id and tx_packet.slave_id != 0x55:
            raise UtrcError(UtrcErrorCode.M_ID, f"{rx.master_id} {tx_packet.slave_id}", rx)
        if rx.slave_id != tx_packet.master_id:
            raise UtrcError(UtrcErrorCode.S_ID, f"{rx.slave_id} {tx_packet.master_id}", rx)
        if rx.state != 0:
            raise UtrcError(UtrcErrorCode.STATE, "", rx)
        if rx.length != rx_len + 1 and rx_len != 0x55:
            raise UtrcError(UtrcErrorCode.LEN, f"{rx.length} {rx_len}", rx)
        if rx.rw != tx_packet.rw:
            raise UtrcError(UtrcErrorCode.RW, f"{rx.rw} {tx_packet.rw}", rx)
        if rx.cmd != tx_packet.cmd:
            raise UtrcError(UtrcErrorCode.CMD, f"{rx.cmd} {tx_packet.cmd}", rx)
        return rx


class _State(IntEnum):
    FROM_ID = 0
    TO_ID = 1
    LENGTH = 2
    DATA = 3
    CRC1 = 4
    CRC2 = 5


class UtrcDecoder(Decoder):
    """Finds CRC-valid UTRC frames in a byte stream.

    A master id of 0x55 accepts frames from any master.
    """

    def __init__(self, master_id: int, slave_id: int, data_maxlen: int) -> None:
        self.reset(master_id, slave_id, data_maxlen)

    def flush(self) -> None:
        self._state = _State.FROM_ID
        self._buf = bytearray()
        self._length = 0

    def reset(self, master_id: int, slave_id: int, data_maxlen: int) -> None:
        self.master_id = master_id & 0xFF
        self.slave_id = slave_id & 0xFF
        self.data_maxlen = min(data_maxlen, SERIAL_DATA_MAX)
        self.flush()

    def parse_put(self, data: bytes, rx_queue: BlockingQueue | None = None) -> bytes | None:
        for ch in bytes(data):
            state = self._state
            if state is _State.FROM_ID:
                if ch == self.master_id or self.master_id == 0x55:
                    self._buf = bytearray([ch])
                    self._state = _State.TO_ID
            elif state is _State.TO_ID:
                if ch == self.slave_id:
                    self._buf.append(ch)
                    self._state = _State.LENGTH
                else:
                    self._state = _State.FROM_ID
            elif state is _State.LENGTH:
                self._length = ch & 0x7F
                if 0 < self._length < self.data_maxlen - 5:
                    self._buf.append(ch)
                    self._state = _State.DATA
                else:
                    self._state = _State.FROM_ID
            elif state is _State.DATA:
                self._buf.append(ch)
                if len(self._buf) == self._length + 3:
                    self._state = _State.CRC1
            elif state is _State.CRC1:
                self._buf.append(ch)
                self._state = _State.CRC2
            else:
                self._buf.append(ch)
                self._state = _State.FROM_ID
                frame = bytes(self._buf)
                n = self._length
                if modbus(frame[: n + 3]) == frame[n + 3] | (frame[n + 4] << 8):
                    if rx_queue is not None:
                        rx_queue.push(frame)
                    else:
                        return frame
        return None