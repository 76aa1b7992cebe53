"""
Shared fixtures for the portwatch tests.

The socket tables below were captured from /proc/net/tcp and /proc/net/tcp6
inside a running workspace.
"""

import errno
import io
import ipaddress
import threading
from typing import Dict, List, Union

import pytest

from portwatch.models import ServedPort

VALID_TCP = """  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
   0: 00000000:59D8 00000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57008615 1 0000000000000000 100 0 0 10 0
   1: 00000000:17C0 00000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57020850 1 0000000000000000 100 0 0 10 0
   2: 0100007F:170C 00000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57019442 1 0000000000000000 100 0 0 10 0
   3: 0100007F:EB64 0100007F:59D7 01 00000000:00000000 02:00000348 00000000 33333        0 57010758 2 0000000000000000 20 4 1 10 -1
   4: 940C380A:59D8 0302380A:BFFC 01 00000000:00000000 00:00000000 00000000 33333        0 57015718 3 0000000000000000 20 4 29 61 17
"""

VALID_TCP6 = """  sl  local_address                         remote_address                        st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
   0: 00000000000000000000000000000000:59D7 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57007063 1 0000000000000000 100 0 0 10 0
   1: 00000000000000000000000000000000:8C3C 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57022992 1 0000000000000000 100 0 0 10 0
   2: 00000000000000000000000001000000:170C 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57019446 1 0000000000000000 100 0 0 10 0
   3: 00000000000000000000000000000000:8CF0 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000 33333        0 57018070 1 0000000000000000 100 0 0 10 0
   4: 0000000000000000FFFF0000940C380A:59D7 0000000000000000FFFF00006100840A:E45C 06 00000000:00000000 03:00001002 00000000     0        0 0 3 0000000000000000
   5: 0000000000000000FFFF0000940C380A:59D7 0000000000000000FFFF00006100840A:E38A 06 00000000:00000000 03:00000D46 00000000     0        0 0 3 0000000000000000
   6: 0000000000000000FFFF0000940C380A:59D7 0000000000000000FFFF0000030C380A:DBFE 01 00000000:00000000 02:000005D2 00000000 33333        0 57015690 2 0000000000000000 20 4 0 10 -1
   7: 0000000000000000FFFF0000940C380A:59D7 0000000000000000FFFF00006100840A:E08A 06 00000000:00000000 03:000003E6 00000000     0        0 0 3 0000000000000000
  20: 0000000000000000FFFF00000100007F:59D7 0000000000000000FFFF00000100007F:EB64 01 00000000:00000000 02:000003D2 00000000 33333        0 57014424 2 0000000000000000 20 4 0 10 -1"""

TCP_PATH = "/proc/net/tcp"
TCP6_PATH = "/proc/net/tcp6"


def sp(address: str, port: int, local: bool = False) -> ServedPort:
    return ServedPort(ipaddress.ip_address(address), port, local)


def not_found(name: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, "No such file or directory", name)


class SequentialOpener:
    """Hands out the given contents in call order, whatever name is asked for.

    Once the contents run out every call fails with FileNotFoundError.
    """

    def __init__(self, contents: List[str]):
        self.contents = list(contents)
        self.calls: List[str] = []

    def __call__(self, name: str):
        self.calls.append(name)
        if len(self.calls) > len(self.contents):
            raise not_found(name)
        return io.BytesIO(self.contents[len(self.calls) - 1].encode())


class ScriptedOpener:
    """Per-path script of contents or exceptions; the last step repeats forever."""

    def __init__(self, script: Dict[str, List[Union[str, BaseException]]]):
        self.script = {k: list(v) for k, v in script.items()}
        self.calls: List[str] = []

    def __call__(self, name: str):
        self.calls.append(name)
        steps = self.script.get(name)
        if not steps:
            raise not_found(name)
        step = steps[0] if len(steps) == 1 else steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return io.BytesIO(step.encode())


def collect(observer, duration: float = 0.3):
    """Run observer for duration seconds; return (updates, errors) as lists."""
    stop = threading.Event()
    updates, errors = observer.observe(stop)
    errs = []
    drain = threading.Thread(target=lambda: errs.extend(errors), daemon=True)
    drain.start()
    timer = threading.Timer(duration, stop.set)
    timer.start()

    got = list(updates)

    drain.join(2)
    observer.join(2)
    return got, errs


@pytest.fixture
def valid_tcp() -> str:
    return VALID_TCP


@pytest.fixture
def valid_tcp6() -> str:
    return VALID_TCP6
