"""TCP and UDP socket helpers and network interface queries."""

from __future__ import annotations

import logging
import socket
import struct

log = logging.getLogger(__name__)

_SIOCGIFADDR = 0x8915
_SIOCGIFHWADDR = 0x8927
_IFNAMSIZ = 16
_TCP_ESTABLISHED = 1


class NetworkError(OSError):
    """Raised when a socket or interface operation fails."""


def _interface_query(kind: int, request: int, interface: str) -> bytes:
    try:
        import fcntl
    except ImportError as exc:
        raise NetworkError("interface queries are not supported on this platform") from exc
    ifreq = struct.pack("256s", interface.encode()[: _IFNAMSIZ - 1])
    try:
        with socket.socket(socket.AF_INET, kind) as sd:
            return fcntl.ioctl(sd.fileno(), request, ifreq)
    except OSError as exc:
        raise NetworkError(f"cannot query interface {interface!r}: {exc}") from exc


def get_local_mac(interface: str) -> str:
    """Hardware address of ``interface`` as colon-separated hex."""
    result = _interface_query(socket.SOCK_STREAM, _SIOCGIFHWADDR, interface)
    return ":".join(f"{b:02x}" for b in result[18:24])


def get_local_ip(interface: str) -> str:
    """IPv4 address assigned to ``interface``."""
    result = _interface_query(socket.SOCK_DGRAM, _SIOCGIFADDR, interface)
    return socket.inet_ntoa(result[20:24])


def _bind_host(local_ip: str) -> str:
    return local_ip.strip()


def tcp_socket_init(local_ip: str, port: int, is_server: bool = False) -> socket.socket:
    """A TCP socket with keep-alive, bound to ``local_ip:port``.

    A blank address binds to every interface. A server socket listens.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        for name, value in (("TCP_KEEPIDLE", 1), ("TCP_KEEPINTVL", 1), ("TCP_KEEPCNT", 3)):
            option = getattr(socket, name, None)
            if option is not None:
                sock.setsockopt(socket.IPPROTO_TCP, option, value)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDTIMEO, struct.pack("ll", 2, 0))
        sock.bind((_bind_host(local_ip), port))
        if is_server:
            sock.listen(10)
    except OSError as exc:
        sock.close()
        raise NetworkError(f"tcp socket init on {local_ip!r}:{port} failed: {exc}") from exc
    return sock


def tcp_socket_init_on(port: int, interface: str, is_server: bool = False) -> socket.socket:
    """A TCP socket bound to the address of ``interface``.

    When the interface has no address the socket binds to every interface.
    """
    try:
        local_ip = get_local_ip(interface)
    except NetworkError as exc:
        log.error("get_local_ip failed for %s: %s", interface, exc)
        local_ip = ""
    return tcp_socket_init(local_ip, port, is_server)


def wait_for_client(sock: socket.socket) -> socket.socket:
    """Accept one client on a listening socket."""
    try:
        client, _ = sock.accept()
    except OSError as exc:
        raise NetworkError(f"accept failed: {exc}") from exc
    return client


def connect_server(sock: socket.socket, server_ip: str, server_port: int) -> None:
    """Connect ``sock`` to a server."""
    try:
        sock.connect((server_ip, server_port))
    except OSError as exc:
        raise NetworkError(f"connect to {server_ip}:{server_port} failed: {exc}") from exc


def send_data(sock: socket.socket, data: bytes) -> None:
    """Send ``data`` in one call; a partial send is an error."""
    payload = bytes(data)
    try:
        sent = sock.send(payload)
    except OSError as exc:
        raise NetworkError(f"send failed: {exc}") from exc
    if sent != len(payload):
        raise NetworkError(f"sent {sent} of {len(payload)} bytes")


def is_connected(sock: socket.socket | None) -> bool:
    """True while the TCP connection is established."""
    if sock is None or sock.fileno() <= 0:
        return False
    tcp_info = getattr(socket, "TCP_INFO", None)
    try:
        if tcp_info is not None:
            info = sock.getsockopt(socket.IPPROTO_TCP, tcp_info, 8)
            return info[0] == _TCP_ESTABLISHED
        sock.getpeername()
        return True
    except OSError:
        return False


def udp_socket_init(local_ip: str, port: int, is_server: bool = False) -> socket.socket:
    """A UDP socket; a server socket is bound to ``local_ip:port``."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    if is_server:
        try:
            sock.bind((_bind_host(local_ip), port))
        except OSError as exc:
            sock.close()
            raise NetworkError(f"udp bind on {local_ip!r}:{port} failed: {exc}") from exc
    return sock


def udp_send_data(sock: socket.socket, address: tuple[str, int], data: bytes) -> None:
    """Send one datagram to ``address``; a partial send is an error."""
    payload = bytes(data)
    try:
        sent = sock.sendto(payload, address)
    except OSError as exc:
        raise NetworkError(f"udp send failed: {exc}") from exc
    if sent != len(payload):
        raise NetworkError(f"sent {sent} of {len(payload)} bytes")