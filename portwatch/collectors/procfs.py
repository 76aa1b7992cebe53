from __future__ import annotations
import logging
import re
from collections import Counter
from typing import BinaryIO, Callable, Iterable, List, Optional, Union

from ..errors import TableParseError
from ..models import ServedPort, sort_ports
from ..utils.net import ipv4_from_hex, ipv6_from_hex, port_from_hex

log = logging.getLogger(__name__)

PROC_NET_TCP = "/proc/net/tcp"
PROC_NET_TCP6 = "/proc/net/tcp6"

TCP_LISTEN = "0A"
TCP_STATES = {
    "01": "ESTABLISHED", "02": "SYN_SENT", "03": "SYN_RECV", "04": "FIN_WAIT1",
    "05": "FIN_WAIT2", "06": "TIME_WAIT", "07": "CLOSE", "08": "CLOSE_WAIT",
    "09": "LAST_ACK", "0A": "LISTEN", "0B": "CLOSING", "0C": "NEW_SYN_RECV",
}

SEQ_RE = re.compile(r"^\d+:$")
STATE_RE = re.compile(r"^[0-9A-Fa-f]{2}$")
LOCAL_RE = re.compile(r"^(?P<addr>[0-9A-Fa-f]+):(?P<port>[0-9A-Fa-f]{4})$")

ADDR_DIGITS = {4: 8, 6: 32}

FileOpener = Callable[[str], BinaryIO]


def open_proc_file(name: str) -> BinaryIO:
    # FileNotFoundError tells "table not there" apart from other OSErrors
    return open(name, "rb")


def tcp_state_name(code: str) -> str:
    return TCP_STATES.get(code.upper(), code)


def _decode_local(lineno: int, line: str, field: str, family: Optional[int]) -> ServedPort:
    m = LOCAL_RE.match(field)
    if not m:
        raise TableParseError(lineno, line, f"malformed local address {field!r}")
    addr = m.group("addr")
    if family is None:
        family = next((f for f, n in ADDR_DIGITS.items() if n == len(addr)), None)
        if family is None:
            raise TableParseError(lineno, line, f"address {addr!r} has {len(addr)} hex digits")
    elif len(addr) != ADDR_DIGITS[family]:
        raise TableParseError(lineno, line, f"IPv{family} address {addr!r} has {len(addr)} hex digits")

    address = ipv4_from_hex(addr) if family == 4 else ipv6_from_hex(addr)
    return ServedPort.of(address, port_from_hex(m.group("port")))


def read_net_tcp_file(stream: Iterable[Union[bytes, str]], family: Optional[int] = None,
                      listening_only: bool = True) -> List[ServedPort]:
    """Parse a /proc/net/tcp or /proc/net/tcp6 table.

    Columns: sl, local_address, rem_address, st, then queue/timer/uid/inode
    fields which are not used. Blank lines and the "sl ..." header are
    skipped. Any other line that does not look like a record fails the
    whole table with TableParseError.

    Returns the listening sockets (or all sockets when ``listening_only`` is
    false) ordered by (port, address) without duplicates.
    """
    if family not in (None, 4, 6):
        raise ValueError(f"unknown address family {family!r}")

    ports: list[ServedPort] = []
    skipped: Counter[str] = Counter()
    for lineno, raw in enumerate(stream, 1):
        if isinstance(raw, bytes):
            try:
                line = raw.decode("ascii")
            except UnicodeDecodeError:
                raise TableParseError(lineno, raw.decode("ascii", "replace"), "non-ascii data") from None
        else:
            line = raw

        fields = line.split()
        if not fields or fields[0] == "sl":
            continue
        if len(fields) < 4:
            raise TableParseError(lineno, line, f"expected at least 4 fields, got {len(fields)}")

        seq, local, remote, state = fields[:4]
        if not SEQ_RE.match(seq):
            raise TableParseError(lineno, line, f"bad slot number {seq!r}")
        if ":" not in remote:
            raise TableParseError(lineno, line, f"malformed remote address {remote!r}")
        if not STATE_RE.match(state):
            raise TableParseError(lineno, line, f"bad state code {state!r}")

        port = _decode_local(lineno, line, local, family)
        if listening_only and state.upper() != TCP_LISTEN:
            skipped[tcp_state_name(state)] += 1
            continue
        ports.append(port)

    if skipped:
        log.debug("skipped non-listening sockets: %s",
                  ", ".join(f"{name}={n}" for name, n in sorted(skipped.items())))
    return sort_ports(ports)
