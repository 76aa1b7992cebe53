from __future__ import annotations
import logging
import threading
import time
from collections import deque
from typing import Iterable, Optional

from .models import ServedPort, Snapshot

log = logging.getLogger(__name__)


class PortsState:
    """Last snapshot and recent errors, shared between the pump threads and the web app."""

    def __init__(self, max_errors: int = 20):
        self.lock = threading.Lock()
        self.ports: Snapshot = []
        self.updated_at: Optional[float] = None
        self.errors: deque[tuple[float, str]] = deque(maxlen=max_errors)
        self.polls_failed = 0

    def set_ports(self, ports: Snapshot) -> None:
        with self.lock:
            self.ports = list(ports)
            self.updated_at = time.time()

    def add_error(self, err: Exception) -> None:
        with self.lock:
            self.errors.append((time.time(), str(err)))
            self.polls_failed += 1

    def to_dict(self) -> dict:
        with self.lock:
            return {
                "ports": [p.to_dict() for p in self.ports],
                "updated_at": self.updated_at,
                "errors": [{"at": at, "message": msg} for at, msg in self.errors],
            }


def _describe(ports: Iterable[ServedPort]) -> set[tuple[str, int]]:
    return {(str(p.address), p.port) for p in ports}


def pump_updates(updates: Iterable[Snapshot], state: PortsState) -> None:
    """Drain the update channel into state, logging what opened and closed."""
    for snap in updates:
        with state.lock:
            before = _describe(state.ports)
        after = _describe(snap)
        for addr, port in sorted(after - before, key=lambda x: (x[1], x[0])):
            log.info("port opened: %s:%d", addr, port)
        for addr, port in sorted(before - after, key=lambda x: (x[1], x[0])):
            log.info("port closed: %s:%d", addr, port)
        state.set_ports(snap)
    log.debug("update channel closed")


def pump_errors(errors: Iterable[Exception], state: PortsState) -> None:
    for err in errors:
        log.warning("served ports poll failed: %s", err)
        state.add_error(err)
    log.debug("error channel closed")
