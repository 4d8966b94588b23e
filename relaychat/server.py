from typing import Generator
import asyncio
import signal
import sys
import logging
import contextlib
import threading
import click
from ._types import Event, Joined, Left, Message
from .chat_conn import ChatConn
from .config import Config
from .server_state import ServerState


HANDLED_SIGNALS = {
    signal.SIGINT: "SIGINT",
    signal.SIGTERM: "SIGTERM",
}
if sys.platform == "win32":
    HANDLED_SIGNALS[signal.SIGBREAK] = "SIGBREAK"


logger = logging.getLogger(__name__)


class Server:
    def __init__(self, config: Config):
        self.config = config
        self.server_state = ServerState()
        self.events: asyncio.Queue[Event] | None = None
        self.should_exit = False
        self.force_exit = False
        self._captured_signals: list[int] = []
        self.server: asyncio.AbstractServer | None = None
        self.dispatcher: asyncio.Task[None] | None = None
        self.port: int | None = None

    def run(self) -> None:
        return asyncio.run(self.serve())

    async def serve(self) -> None:
        with self.capture_signals():
            await self._serve()

    async def _serve(self):
        logger.info("Starting server...")
        await self.startup()
        if self.should_exit:
            return
        await self.main_loop()
        await self.shutdown()
        logger.info("Server shutdown complete!")

    async def startup(self) -> None:
        loop = asyncio.get_running_loop()
        self.events = asyncio.Queue()
        try:
            server = await loop.create_server(
                lambda: ChatConn(self.config, self.server_state, self.events),
                host=self.config.host,
                port=self.config.port,
                backlog=self.config.backlog
            )
        except OSError as exc:
            logger.error("Could not bind socket: %s", exc)
            sys.exit(1)

        self.server = server
        self.port = server.sockets[0].getsockname()[1]
        self.dispatcher = loop.create_task(self.dispatch())
        self._log_startup_message()

    def _log_startup_message(self):
        addr_format = "%s:%d"
        if ":" in self.config.host:
            # It's an IPv6 address.
            addr_format = "[%s]:%d"

        message = f"Chat server listening on {addr_format} (Press CTRL+C to quit)"
        color_message = "Chat server listening on " + click.style(addr_format, bold=True) + " (Press CTRL+C to quit)"
        logger.info(
            message,
            self.config.host,
            self.port,
            extra={"color_message": color_message},
        )

    async def dispatch(self) -> None:
        """
        Single consumer of the event queue and the only owner of the registry: accepts register a
        connection, messages are rebroadcast, lost connections are forgotten.
        """
        while True:
            event = await self.events.get()
            try:
                self.handle_event(event)
            finally:
                self.events.task_done()

    def handle_event(self, event: Event) -> None:
        state = self.server_state
        if isinstance(event, Joined):
            state.registry.add(event.connection)
        elif isinstance(event, Message):
            logger.info("Received message from %s", event.origin)
            state.total_messages += 1
            state.registry = state.registry.broadcast_except(event.origin, event.content)
        elif isinstance(event, Left):
            state.registry.remove(event.conn_id)

    async def main_loop(self) -> None:
        """
        Nothing to do here; connections and the dispatcher run on the event loop while we wait for a
        signal to set should_exit.
        """
        while not self.should_exit:
            await asyncio.sleep(0.1)

    async def shutdown(self) -> None:
        logger.info("Shutting down server...")
        # Stop accepting new connections:
        self.server.close()

        for connection in list(self.server_state.connections):
            connection.close()

        # let connection_lost run for the transports we just closed
        await asyncio.sleep(0.1)

        if self.dispatcher is not None:
            self.dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.dispatcher

        if not self.force_exit:
            await self.server.wait_closed()
        logger.info("Dispatched %d messages", self.server_state.total_messages)

    # signal handling
    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        """
        Signals can only be listened to from the main thread
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original_handlers = {sig: signal.signal(sig, self.handle_exit) for sig in HANDLED_SIGNALS.keys()}
        try:
            yield
        finally:
            # Restore original signal handlers
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)
            # Raise captured signals in reverse order to ensure proper handling
            for captured_signal in reversed(self._captured_signals):
                signal.raise_signal(captured_signal)

    def handle_exit(self, sig: int, frame) -> None:
        self._captured_signals.append(sig)
        if self.should_exit and sig == signal.SIGINT:
            self.force_exit = True
        else:
            self.should_exit = True
