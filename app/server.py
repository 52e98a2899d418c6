"""Process entry point: serve the app with uvicorn and drain on SIGTERM.

On the first SIGTERM/SIGINT the coordinator starts draining, uvicorn stops
accepting connections and waits for open ones to finish, and the lifespan
shutdown closes the database pool before the process exits with status 0.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import sys
import threading

import uvicorn
from uvicorn.main import STARTUP_FAILURE
from uvicorn.server import HANDLED_SIGNALS

from app.config import settings
from app.lifecycle import ShutdownCoordinator
from app.main import app

logger = logging.getLogger(__name__)


class DrainingServer(uvicorn.Server):
    """uvicorn server that tells the coordinator when a signal arrives."""

    def __init__(self, config: uvicorn.Config, coordinator: ShutdownCoordinator):
        super().__init__(config)
        self.coordinator = coordinator

    def handle_exit(self, sig, frame) -> None:
        self.coordinator.begin_drain()
        super().handle_exit(sig, frame)

    @contextlib.contextmanager
    def capture_signals(self):
        # As uvicorn's, minus re-raising the captured signal after serving
        # stops: a completed drain exits 0.
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original_handlers = {sig: signal.signal(sig, self.handle_exit) for sig in HANDLED_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)


def build_server(asgi_app, host: str, port: int) -> DrainingServer:
    config = uvicorn.Config(
        asgi_app,
        host=host,
        port=port,
        log_config=None,
        access_log=False,
        server_header=False,
    )
    return DrainingServer(config, asgi_app.state.coordinator)


def run(server: DrainingServer) -> None:
    """Serve until drained, then exit the process."""
    server.run()
    if not server.started:
        sys.exit(STARTUP_FAILURE)
    sys.exit(0)


def main() -> None:
    logger.info("Starting Process API on %s:%s …", settings.APP_HOST, settings.APP_PORT)
    run(build_server(app, settings.APP_HOST, settings.APP_PORT))


if __name__ == "__main__":
    main()
