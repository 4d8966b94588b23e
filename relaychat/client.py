"""
The client keeps one connection to the server and has two jobs that must not block each other:
showing what the server broadcasts, and sending what the user types.

    ClientConn (protocol)   inbound frames -> decode -> console
    input_loop (task)       stdin.readline() on a daemon thread -> outbound queue
    send_loop  (task)       outbound queue -> encode -> socket

stdin has no non-blocking API we can hand to the event loop on every platform, so the blocking
readline() runs in a daemon thread while the loop keeps serving the socket. send_loop is the only
code that writes to the socket.
"""
import asyncio
import contextlib
import logging
import os
import sys
import threading
from typing import Callable
import click
from .config import ClientConfig
from .frame import FRAME_SIZE, FrameBuffer, DecodeError, decode, encode
from .util import get_local_addr

logger = logging.getLogger(__name__)

PROMPT = "> "
EXIT_COMMAND = "exit"
SEVERED_MESSAGE = "Connection with server was severed"


def _echo(text: str) -> None:
    click.echo(text, nl=False)


class StdinReader:
    """
    readline() over the raw stdin descriptor. os.read() holds no io lock while it blocks, so a
    daemon thread parked here does not trip the buffered stdin lock when the interpreter exits.
    Undecodable bytes become lone surrogates, as they do in sys.stdin.
    """

    def __init__(self, fd: int | None = None):
        self.fd = fd
        self._pending = b""

    def __call__(self) -> str:
        if self.fd is None:
            self.fd = sys.stdin.fileno()
        while b"\n" not in self._pending:
            chunk = os.read(self.fd, 4096)
            if not chunk:
                line, self._pending = self._pending, b""
                return line.decode("utf-8", "surrogateescape")
            self._pending += chunk
        line, _, self._pending = self._pending.partition(b"\n")
        return (line + b"\n").decode("utf-8", "surrogateescape")


class ClientConn(asyncio.Protocol):

    def __init__(self,
                 on_message: Callable[[str], None],
                 on_severed: Callable[[], None]):
        self.on_message = on_message
        self.on_severed = on_severed
        self.transport: asyncio.Transport | None = None
        self.frames = FrameBuffer()
        self.severed = False

    def connection_made(self, transport: asyncio.Transport):
        self.transport = transport
        logger.debug("Connected from %s", get_local_addr(transport))

    def data_received(self, data: bytes):
        for frame in self.frames.feed(data):
            try:
                message = decode(frame)
            except DecodeError as exc:
                logger.warning("Failed to parse message as UTF-8: %s", exc)
                self.transport.close()
                self._sever()
                return
            self.on_message(message)

    def connection_lost(self, exc: Exception | None = None) -> None:
        if exc is not None:
            logger.debug("Connection lost: %s", exc)
        self._sever()

    def _sever(self):
        if not self.severed:
            self.severed = True
            self.on_severed()

    def send_frame(self, frame: bytes) -> None:
        if self.severed or self.transport.is_closing():
            raise ConnectionResetError(SEVERED_MESSAGE)
        self.transport.write(frame)

    def close(self) -> None:
        # closing our own end is not a severed connection
        self.severed = True
        if self.transport is not None:
            self.transport.close()


class Client:
    def __init__(self,
                 config: ClientConfig,
                 readline: Callable[[], str] | None = None,
                 echo: Callable[[str], None] | None = None):
        self.config = config
        self.readline = readline or StdinReader()
        self.echo = echo or _echo
        self.conn: ClientConn | None = None
        self.outbound: asyncio.Queue[str] | None = None

    def run(self) -> None:
        return asyncio.run(self.serve())

    async def serve(self) -> None:
        await self.connect()
        self.outbound = asyncio.Queue()
        sender = asyncio.create_task(self.send_loop())
        try:
            await self.input_loop()
            # lines typed before exit still go out
            await self.outbound.join()
        finally:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender
            self.conn.close()

    async def connect(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            _, self.conn = await loop.create_connection(
                lambda: ClientConn(self.show_message, self.show_severed),
                host=self.config.host,
                port=self.config.port
            )
        except OSError as exc:
            logger.error("Failed to connect to %s:%d: %s", self.config.host, self.config.port, exc)
            sys.exit(1)

    async def read_line(self) -> str:
        """
        Runs one blocking readline() on a daemon thread. An executor thread would be joined when
        asyncio.run() shuts down, so Ctrl+C at the prompt would wait for the next Enter.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(line: str) -> None:
            if not future.done():
                future.set_result(line)

        def read() -> None:
            try:
                line = self.readline()
            except (OSError, ValueError) as exc:
                logger.debug("Reading input failed: %s", exc)
                line = ""
            # the loop is already closed if the client was interrupted meanwhile
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(deliver, line)

        threading.Thread(target=read, name="relaychat-input", daemon=True).start()
        return await future

    async def input_loop(self) -> None:
        while True:
            self.echo(PROMPT)
            line = await self.read_line()
            if not line:
                # stdin closed
                break
            message = line.strip()
            if message == EXIT_COMMAND:
                break
            try:
                size = len(message.encode("utf-8"))
            except UnicodeEncodeError:
                # undecodable stdin bytes come through as lone surrogates
                self.echo("Message is not valid UTF-8. Not sent.\n")
                continue
            if size > FRAME_SIZE:
                self.echo(f"Message is {size} bytes, the limit is {FRAME_SIZE}. Not sent.\n")
                continue
            self.outbound.put_nowait(message)

    async def send_loop(self) -> None:
        while True:
            message = await self.outbound.get()
            try:
                self.conn.send_frame(encode(message))
            except ConnectionResetError:
                logger.warning("Not connected, dropping message")
            finally:
                self.outbound.task_done()

    def show_message(self, message: str) -> None:
        self.echo(f"\n{message}\n{PROMPT}")

    def show_severed(self) -> None:
        self.echo(f"\n{SEVERED_MESSAGE}\n")
