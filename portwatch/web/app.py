from __future__ import annotations
import orjson
from flask import Flask, Response, current_app

from ..state import PortsState


def dumps(obj) -> str:
    return orjson.dumps(obj).decode()


def create_app(state: PortsState) -> Flask:
    app = Flask(__name__)

    @app.get("/api/ports")
    def api_ports():
        data = state.to_dict()
        current_app.logger.debug("serving %d ports", len(data["ports"]))
        return Response(dumps(data), mimetype="application/json")

    @app.get("/healthz")
    def healthz():
        with state.lock:
            failed = state.polls_failed
        return Response(dumps({"ok": True, "polls_failed": failed}), mimetype="application/json")

    return app
