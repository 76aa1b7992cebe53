from __future__ import annotations
import argparse, logging, threading

from .config import CFG, SOURCES, init_cfg_from_args
from .errors import ConfigError
from .collectors import PollingServedPortsObserver, PsutilServedPortsObserver
from .state import PortsState, pump_errors, pump_updates

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description='Watch for TCP ports being listened on and report changes')
    ap.add_argument('--config', type=str, default=None, help='YAML or JSON settings file')
    ap.add_argument('--interval', type=float, default=None, help='seconds between polls (default 1.0)')
    ap.add_argument('--source', choices=SOURCES, default=None, help='procfs tables or psutil')
    ap.add_argument('--tcp', type=str, default=None, help='path of the IPv4 socket table')
    ap.add_argument('--tcp6', type=str, default=None, help='path of the IPv6 socket table')
    ap.add_argument('--host', type=str, default=None)
    ap.add_argument('--port', type=int, default=None)
    ap.add_argument('--no-http', action='store_true', help='only log changes, do not serve /api/ports')
    ap.add_argument('--log-level', type=str, default=None)
    return ap


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def build_observer(cfg: CFG):
    if cfg.source == 'psutil':
        return PsutilServedPortsObserver(cfg.refresh_interval, buffer=cfg.channel_buffer)
    return PollingServedPortsObserver(cfg.refresh_interval, tcp_path=cfg.tcp_path,
                                      tcp6_path=cfg.tcp6_path, buffer=cfg.channel_buffer)


def start(cfg: CFG, state: PortsState, stop: threading.Event):
    """Start the observer plus one consumer thread per channel."""
    observer = build_observer(cfg)
    updates, errors = observer.observe(stop)
    pumps = [
        threading.Thread(target=pump_updates, args=(updates, state), name='pump-updates', daemon=True),
        threading.Thread(target=pump_errors, args=(errors, state), name='pump-errors', daemon=True),
    ]
    for t in pumps:
        t.start()
    return observer, pumps


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        cfg = init_cfg_from_args(args)
    except ConfigError as e:
        ap.error(str(e))
    logging.basicConfig(level=cfg.log_level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    state = PortsState(max_errors=cfg.max_errors)
    stop = threading.Event()
    observer, pumps = start(cfg, state, stop)
    log.info("watching %s every %.2fs", cfg.source, cfg.refresh_interval)

    try:
        if cfg.http_enabled:
            from .web import create_app
            app = create_app(state)
            log.info("serving on http://%s:%d/api/ports", cfg.http_host, cfg.http_port)
            app.run(host=cfg.http_host, port=cfg.http_port, debug=False, use_reloader=False)
        else:
            stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        observer.join(cfg.refresh_interval + 1.0)
        for t in pumps:
            t.join(1.0)


if __name__ == '__main__':
    main()
