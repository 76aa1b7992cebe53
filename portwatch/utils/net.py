from __future__ import annotations
import ipaddress, struct

from ..models import AddressScope, IPAddress

IPV4_LOOPBACK = ipaddress.IPv4Address("127.0.0.1")
IPV6_LOOPBACK = ipaddress.IPv6Address("::1")
IPV4_WILDCARD = ipaddress.IPv4Address("0.0.0.0")
IPV6_WILDCARD = ipaddress.IPv6Address("::")

# /proc/net/tcp* print addresses as the raw in-memory 32-bit words of the
# socket struct, formatted with %08X. On little-endian hosts each word's
# bytes come out reversed with respect to network order, so every 4-byte
# word has to be flipped back. Ports are printed after ntohs and are
# already in network (big-endian) order.


def _words_le_to_be(raw: bytes) -> bytes:
    """Reverse the byte order inside each 4-byte word, keeping word order."""
    if len(raw) % 4:
        raise ValueError(f"address of {len(raw)} bytes is not made of 32-bit words")
    count = len(raw) // 4
    return struct.pack(f">{count}I", *struct.unpack(f"<{count}I", raw))


def ipv4_from_hex(text: str) -> ipaddress.IPv4Address:
    raw = bytes.fromhex(text)
    if len(raw) != 4:
        raise ValueError(f"IPv4 address needs 8 hex digits, got {text!r}")
    return ipaddress.IPv4Address(_words_le_to_be(raw))


def ipv6_from_hex(text: str) -> ipaddress.IPv6Address:
    raw = bytes.fromhex(text)
    if len(raw) != 16:
        raise ValueError(f"IPv6 address needs 32 hex digits, got {text!r}")
    return ipaddress.IPv6Address(_words_le_to_be(raw))


def port_from_hex(text: str) -> int:
    raw = bytes.fromhex(text)
    if len(raw) != 2:
        raise ValueError(f"port needs 4 hex digits, got {text!r}")
    return struct.unpack(">H", raw)[0]


def ipv4_to_hex(address: ipaddress.IPv4Address) -> str:
    return _words_le_to_be(address.packed).hex().upper()


def ipv6_to_hex(address: ipaddress.IPv6Address) -> str:
    return _words_le_to_be(address.packed).hex().upper()


def port_to_hex(port: int) -> str:
    return struct.pack(">H", port).hex().upper()


def classify_scope(address: IPAddress) -> AddressScope:
    # only the exact loopback address counts; 127.0.0.2 is routable here
    if address == IPV4_LOOPBACK or address == IPV6_LOOPBACK:
        return AddressScope.LOOPBACK
    if address == IPV4_WILDCARD or address == IPV6_WILDCARD:
        return AddressScope.WILDCARD
    return AddressScope.ROUTABLE


def is_bound_to_localhost(address: IPAddress) -> bool:
    return classify_scope(address) is AddressScope.LOOPBACK
