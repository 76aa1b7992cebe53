from __future__ import annotations
import ipaddress
import logging
import socket

import psutil

from ..errors import PortwatchError
from ..models import ServedPort, Snapshot, sort_ports

log = logging.getLogger(__name__)


class ListenerSourceError(PortwatchError):
    pass


def _laddr(c) -> tuple[str, int]:
    lip = c.laddr.ip if hasattr(c.laddr, 'ip') else c.laddr[0]
    lpt = c.laddr.port if hasattr(c.laddr, 'port') else c.laddr[1]
    return lip, lpt


def collect_listeners() -> Snapshot:
    """Listening TCP sockets as seen by psutil, IPv4 first then IPv6."""
    try:
        conns = psutil.net_connections(kind='tcp')
    except (psutil.Error, OSError) as e:
        raise ListenerSourceError(f"psutil.net_connections failed: {e}") from e

    v4: list[ServedPort] = []
    v6: list[ServedPort] = []
    for c in conns:
        if getattr(c, 'status', '') != psutil.CONN_LISTEN or not c.laddr:
            continue
        lip, lpt = _laddr(c)
        # drop the zone suffix psutil keeps on link-local addresses
        address = ipaddress.ip_address(lip.split('%', 1)[0])
        port = ServedPort.of(address, lpt)
        if c.family == socket.AF_INET6 or address.version == 6:
            v6.append(port)
        else:
            v4.append(port)
    return sort_ports(v4) + sort_ports(v6)
