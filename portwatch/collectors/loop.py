from __future__ import annotations
import logging
import threading
import time
from typing import List, Optional, Tuple

from ..errors import TableReadError
from ..models import ServedPort, Snapshot
from .channel import Channel
from .generic import ListenerSourceError, collect_listeners
from .procfs import PROC_NET_TCP, PROC_NET_TCP6, FileOpener, open_proc_file, read_net_tcp_file

log = logging.getLogger(__name__)


class _PollingObserver:
    """Runs a source on a fixed interval and emits the snapshot whenever it changes.

    Subclasses implement ``read_snapshot``, returning the candidate snapshot
    (None when the tick must be skipped) and the errors worth reporting.
    """

    def __init__(self, refresh_interval: float = 1.0, buffer: int = 1):
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        self.refresh_interval = refresh_interval
        self.buffer = buffer
        self.last: Snapshot = []
        self._thread: Optional[threading.Thread] = None

    def read_snapshot(self) -> Tuple[Optional[Snapshot], List[Exception]]:
        raise NotImplementedError

    def observe(self, stop: threading.Event) -> Tuple[Channel[Snapshot], Channel[Exception]]:
        """Start polling in a background thread until ``stop`` is set.

        Returns the (updates, errors) channels; both are closed once the
        thread exits.
        """
        if self._thread is not None:
            raise RuntimeError("observer is already running")
        updates: Channel[Snapshot] = Channel(self.buffer)
        errors: Channel[Exception] = Channel(self.buffer)
        self._thread = threading.Thread(target=self._run, args=(stop, updates, errors),
                                        name=type(self).__name__, daemon=True)
        self._thread.start()
        return updates, errors

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, stop: threading.Event, updates: Channel, errors: Channel) -> None:
        try:
            while not stop.is_set():
                started = time.monotonic()
                self._tick(stop, updates, errors)
                stop.wait(max(0.0, started + self.refresh_interval - time.monotonic()))
        finally:
            updates.close()
            errors.close()

    def _tick(self, stop: threading.Event, updates: Channel, errors: Channel) -> None:
        try:
            candidate, errs = self.read_snapshot()
        except Exception as e:
            log.exception("served ports source failed")
            candidate, errs = None, [e]
        for err in errs:
            log.debug("served ports poll: %s", err)
            if not errors.put(err, stop):
                return
        if candidate is None or candidate == self.last:
            return
        if updates.put(candidate, stop):
            self.last = candidate


class PollingServedPortsObserver(_PollingObserver):
    """Polls /proc/net/tcp and /proc/net/tcp6 for listening sockets."""

    def __init__(self, refresh_interval: float = 1.0, file_opener: FileOpener = open_proc_file,
                 tcp_path: str = PROC_NET_TCP, tcp6_path: str = PROC_NET_TCP6, buffer: int = 1):
        super().__init__(refresh_interval, buffer)
        self.file_opener = file_opener
        self.tcp_path = tcp_path
        self.tcp6_path = tcp6_path

    def _read_table(self, family: int, path: str) -> List[ServedPort]:
        try:
            with self.file_opener(path) as fh:
                return read_net_tcp_file(fh, family=family)
        except Exception as e:
            # anything the opener or the stream raises counts as a failed read
            raise TableReadError(family, path, e) from e

    def read_snapshot(self) -> Tuple[Optional[Snapshot], List[Exception]]:
        errs: List[Exception] = []

        v4: Optional[List[ServedPort]] = None
        try:
            v4 = self._read_table(4, self.tcp_path)
        except TableReadError as e:
            errs.append(e)

        try:
            v6 = self._read_table(6, self.tcp6_path)
        except TableReadError as e:
            # a kernel without IPv6 has no tcp6 table at all
            if not e.missing:
                errs.append(e)
            v6 = []

        if v4 is None:
            return None, errs
        return v4 + v6, errs


class PsutilServedPortsObserver(_PollingObserver):
    """Same change stream, sourced from psutil where procfs is not available."""

    def read_snapshot(self) -> Tuple[Optional[Snapshot], List[Exception]]:
        try:
            return collect_listeners(), []
        except ListenerSourceError as e:
            return None, [e]
