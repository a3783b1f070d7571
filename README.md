# rclink

Python tools for exchanging UTRC and UTCC register-protocol frames with
servo drivers and robot controllers over TCP, UDP or a serial line.

## Modules

- `rclink.crc16` – `modbus(data)`, the CRC-16/MODBUS checksum that protects
  every frame.
- `rclink.hexdata` – bit helpers (`bit_set1`, `bit_set0`, `bit_get`) and
  big-endian conversion between bytes and integers or 32-bit floats
  (`hex_to_int16_big`, `hex_to_int32_big`, `hex_to_fp32_big`,
  `int32_to_hex_big`, `fp32_to_hex_big`, `hex_to_str` and the rest).
- `rclink.queues` – `RingQueue`, a bounded FIFO that raises `QueueFull` /
  `QueueEmpty` instead of waiting, and `BlockingQueue`, whose `push` can wait
  for room and whose `pop` waits for an item, with an optional timeout.
- `rclink.timing` – a monotonic `Timer`, conversions between nanoseconds,
  microseconds and `(seconds, nanoseconds)` pairs, `ns_to_str`, and
  `sleep_us` / `sleep_ns` / `sleep_until` on the monotonic clock.
- `rclink.periodic` – `PeriodicTask` (a thread calling `run()` once per
  period), `PeriodicFunction` (the same around a plain callable) and
  `TaskManager`, which builds timing reports and stops its tasks together.
- `rclink.printing` – text formatting of vectors, matrices and bytes, and
  ANSI colour constants.
- `rclink.network` – TCP/UDP socket helpers (`tcp_socket_init`,
  `connect_server`, `send_data`, `is_connected`, `udp_socket_init`,
  `udp_send_data`, …) and interface queries (`get_local_ip`,
  `get_local_mac`). Failures raise `NetworkError`.
- `rclink.transport` – the `Decoder` and `Transport` interfaces and
  `QueuedTransport`, which passes received bytes through a decoder into a
  `BlockingQueue`.
- `rclink.tcp`, `rclink.udp`, `rclink.serial_port` – `TcpTransport`,
  `UdpTransport` and `SerialTransport`. Each receives on a background thread;
  `read_frame(timeout)` returns the next frame, raising `QueueEmpty` when a
  positive timeout expires and `ConnectionError` once the link is closed.
- `rclink.utrc`, `rclink.utcc` – `UtrcPacket` / `UtccPacket`, the stream
  decoders `UtrcDecoder` / `UtccDecoder` (which keep only CRC-valid frames),
  and the request/reply clients `UtrcClient` / `UtccClient`.

## Installing

```
pip install .
```

Serial links use `pyserial`, which is installed with the package.

## Example

```python
from rclink.tcp import TcpTransport
from rclink.utrc import UtrcClient, UtrcDecoder, UtrcError

decoder = UtrcDecoder(0xAA, 0x55, 128)
link = TcpTransport("192.168.1.10", 502, 16, decoder, 128, 45)
client = UtrcClient(link)
try:
    reply = client.connect_device(0xFFFFFFFF)
    print(reply.describe("connect"))
except UtrcError as exc:
    print("failed:", exc.code.name)
finally:
    link.close_port()
```

Protocol failures raise `UtrcError` / `UtccError`, whose `code` is a
`UtrcErrorCode` / `UtccErrorCode` (timeout, wrong id, wrong length, CRC
mismatch and so on) and whose `packet` holds the reply when one arrived.

Frames can be built and decoded without any connection:

```python
from rclink.utrc import UtrcDecoder, UtrcPacket

frame = UtrcPacket(master_id=0xAA, slave_id=0x55, rw=0, cmd=0x01, data=b"\x10").pack()
decoder = UtrcDecoder(0xAA, 0x55, 128)
assert decoder.parse_put(frame) == frame
```

`UtrcPacket.unpack` checks only the length; `UtccPacket.unpack` also checks
the head byte and the CRC.

## What it does not do

The package moves frames and checks them; it has no register maps or
device-level calls (reading a servo's position, setting limits and the like),
and it provides no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```