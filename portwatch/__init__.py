"""Served-port observer: watches the kernel TCP tables for listening sockets."""
from __future__ import annotations

from .models import AddressScope, ServedPort, Snapshot
from .errors import PortwatchError, TableParseError, TableReadError, ConfigError
from .collectors import PollingServedPortsObserver, PsutilServedPortsObserver, read_net_tcp_file

__version__ = "0.1.0"
