"""
Process lifecycle

State machine driving the service process:

    Starting -> SchemaValidating -> Serving -> Draining -> Terminated
    Starting / SchemaValidating -> FailedStartup

- The server never accepts requests before the store is reachable and the
  schema exists.
- SIGINT and SIGTERM both start a drain: the server stops accepting
  connections, in-flight requests finish, then the pool is closed. If that
  takes longer than the drain timeout the process exits with status 1.
- A fault escaping the event loop while serving is fatal: exit 1 at once,
  without draining.
"""
import asyncio
import contextlib
import signal
import sys
from enum import Enum
from typing import Any, Dict, Optional, Protocol

import uvicorn
from pydantic import ValidationError

from support_lab.config import get_settings
from support_lab.errors import SupportLabError
from support_lab.main import create_app
from support_lab.services.database import Database
from support_lab.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(str, Enum):
    STARTING = "starting"
    SCHEMA_VALIDATING = "schema_validating"
    SERVING = "serving"
    DRAINING = "draining"
    TERMINATED = "terminated"
    FAILED_STARTUP = "failed_startup"


ALLOWED_TRANSITIONS = {
    LifecycleState.STARTING: {LifecycleState.SCHEMA_VALIDATING, LifecycleState.FAILED_STARTUP},
    LifecycleState.SCHEMA_VALIDATING: {LifecycleState.SERVING, LifecycleState.FAILED_STARTUP},
    LifecycleState.SERVING: {LifecycleState.DRAINING, LifecycleState.TERMINATED},
    LifecycleState.DRAINING: {LifecycleState.TERMINATED},
    LifecycleState.TERMINATED: set(),
    LifecycleState.FAILED_STARTUP: set(),
}


class LifecycleError(Exception):
    """Raised on a transition the state machine does not allow"""


class Server(Protocol):
    """What the controller needs from an HTTP server (uvicorn.Server fits)"""

    should_exit: bool

    async def serve(self, sockets: Any = None) -> None: ...


class ManagedServer(uvicorn.Server):
    """uvicorn server whose shutdown signals are owned by the LifecycleController"""

    def install_signal_handlers(self) -> None:
        # uvicorn < 0.29
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn >= 0.29
        yield


class LifecycleController:
    """Supervises startup validation, serving, and the drain window"""

    def __init__(self, database: Database, drain_timeout: float = 10.0):
        """
        Args:
            database: Store gateway to probe, initialize, and close
            drain_timeout: Seconds allowed between a shutdown signal and exit
        """
        self.database = database
        self.drain_timeout = drain_timeout
        self.state = LifecycleState.STARTING
        self.exit_code: Optional[int] = None

        self._server: Optional[Server] = None
        self._shutdown_requested: Optional[asyncio.Event] = None
        self._fatal: Optional[asyncio.Event] = None

    def _transition(self, new_state: LifecycleState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise LifecycleError(f"Cannot move from {self.state.value} to {new_state.value}")
        logger.info(f"Lifecycle: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _finish(self, state: LifecycleState, exit_code: int) -> int:
        if not ALLOWED_TRANSITIONS[self.state]:
            # Already terminal; the first outcome stands
            return self.exit_code if self.exit_code is not None else exit_code
        self._transition(state)
        self.exit_code = exit_code
        return exit_code

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    async def start(self) -> bool:
        """
        Validate the store before serving

        Returns:
            True when the controller reached Serving, False on FailedStartup
        """
        try:
            await self.database.connect()
            await self.database.ping()
        except SupportLabError as e:
            logger.error(f"Failed to connect to database: {e.detail or e.message}")
            await self.database.close()
            self._finish(LifecycleState.FAILED_STARTUP, 1)
            return False
        self._transition(LifecycleState.SCHEMA_VALIDATING)

        try:
            await self.database.initialize_schema()
        except SupportLabError as e:
            logger.error(f"Schema initialization failed: {e.detail or e.message}")
            await self.database.close()
            self._finish(LifecycleState.FAILED_STARTUP, 1)
            return False
        self._transition(LifecycleState.SERVING)
        return True

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    def request_shutdown(self, signal_name: str = "SIGTERM") -> None:
        """
        Begin draining (signal handler entry point)

        The server stops accepting new connections immediately.
        """
        if self.state != LifecycleState.SERVING:
            logger.info(f"Received {signal_name} while {self.state.value}, ignoring")
            return

        logger.info(f"Received {signal_name}, starting graceful shutdown...")
        self._transition(LifecycleState.DRAINING)
        if self._server is not None:
            self._server.should_exit = True
        if self._shutdown_requested is not None:
            self._shutdown_requested.set()

    async def drain(self, in_flight: "asyncio.Future[Any]") -> int:
        """
        Race in-flight completion plus pool close against the drain timeout

        Args:
            in_flight: Completes once the server has finished its requests

        Returns:
            0 when everything closed in time, 1 when the timeout won
        """
        async def finish_and_close():
            await in_flight
            logger.info("HTTP server closed")
            await self.database.close()
            logger.info("Database connections closed")

        try:
            await asyncio.wait_for(finish_and_close(), timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Forced shutdown after {self.drain_timeout}s timeout")
            return self._finish(LifecycleState.TERMINATED, 1)
        except Exception as e:
            logger.error(f"Shutdown failed: {e}", exc_info=e)
            return self._finish(LifecycleState.TERMINATED, 1)

        logger.info("Graceful shutdown complete")
        return self._finish(LifecycleState.TERMINATED, 0)

    def fail(self, exc: Optional[BaseException], context: str = "") -> None:
        """
        Fatal fault while serving: terminate at once with exit status 1

        The drain window is bypassed.
        """
        logger.critical(f"Fatal error{': ' + context if context else ''}: {exc!r}", exc_info=exc)
        if self.state in (LifecycleState.SERVING, LifecycleState.DRAINING):
            self._finish(LifecycleState.TERMINATED, 1)
        if self._fatal is not None:
            self._fatal.set()

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        self.fail(context.get("exception"), context.get("message", ""))

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------
    async def run(self, server: Server) -> int:
        """
        Drive the full lifecycle around a server

        Returns:
            Process exit status
        """
        loop = asyncio.get_running_loop()
        self._server = server
        self._shutdown_requested = asyncio.Event()
        self._fatal = asyncio.Event()

        if not await self.start():
            return 1

        loop.set_exception_handler(self._handle_loop_exception)
        for sig in SHUTDOWN_SIGNALS:
            with contextlib.suppress(NotImplementedError):
                # Not available on Windows event loops
                loop.add_signal_handler(sig, self.request_shutdown, sig.name)

        serving = asyncio.ensure_future(server.serve())
        shutdown_wait = asyncio.ensure_future(self._shutdown_requested.wait())
        fatal_wait = asyncio.ensure_future(self._fatal.wait())

        try:
            await asyncio.wait(
                {serving, shutdown_wait, fatal_wait},
                return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            shutdown_wait.cancel()
            fatal_wait.cancel()

        if self._fatal.is_set():
            serving.cancel()
            return 1

        if self.state == LifecycleState.DRAINING:
            return await self.drain(serving)

        # The server stopped without being asked to
        exc = serving.exception() if not serving.cancelled() else None
        self.fail(exc, "server stopped unexpectedly")
        return 1


def main() -> None:
    """Process entry point"""
    setup_logging("INFO")

    try:
        settings = get_settings()
    except ValidationError as e:
        missing = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        logger.error(f"Invalid or missing configuration: {', '.join(missing)}")
        logger.error("Application cannot start without DATABASE_URL")
        sys.exit(1)

    setup_logging(settings.log_level)
    for key, value in settings.summary().items():
        logger.info(f"Config {key}: {value}")

    app = create_app(settings)
    controller = LifecycleController(
        app.state.database,
        drain_timeout=settings.drain_timeout_seconds
    )
    server = ManagedServer(uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        lifespan="off"
    ))

    logger.info(f"Starting Support Lab on port {settings.port} ({settings.fastapi_env})")
    sys.exit(asyncio.run(controller.run(server)))


if __name__ == "__main__":
    main()
