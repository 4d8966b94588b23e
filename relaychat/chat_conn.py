"""
One ChatConn is created by the event loop for every accepted socket (the protocol factory passed
to loop.create_server). It only deals with the inbound direction of its own socket:

- connection_made(transport): derive the identity from the peer port and announce the peer to the dispatcher.
- data_received(data): cut the byte stream into frames, decode them and queue a Message per frame.
- connection_lost(exc): tell the dispatcher the peer is gone.

The registry belongs to the dispatcher, so a ChatConn never touches it. Everything it has to say goes
through the shared queue, in order, which means the dispatcher always sees Joined before the peer's
messages and Left after them.

Writes (send_frame) are only ever made by the dispatcher while broadcasting.
"""
import asyncio
import logging
from ._types import Event, Joined, Left, Message
from .config import Config
from .frame import FrameBuffer, DecodeError, decode
from .identity import generate_identity
from .server_state import ServerState
from .util import get_remote_addr

logger = logging.getLogger(__name__)


class ChatConn(asyncio.Protocol):

    def __init__(self,
                 config: Config,
                 server_state: ServerState,
                 events: asyncio.Queue[Event]):
        self.config = config
        self.server_state = server_state
        self.connections = server_state.connections
        self.events = events

        # Per-connection state
        self.conn_id = server_state.next_conn_id()
        self.transport: asyncio.Transport | None = None
        self.client: tuple[str, int] | None = None
        self.identity: str | None = None
        self.frames = FrameBuffer()

    def connection_made(self, transport: asyncio.Transport):
        self.transport = transport
        self.client = get_remote_addr(transport)
        port = self.client[1] if self.client is not None else 0
        self.identity = generate_identity(port, self.config.identity_length)
        self.connections.add(self)
        logger.info("Accepted %s as %s", self.client, self.identity)
        self.events.put_nowait(Joined(self))

    def data_received(self, data: bytes):
        for frame in self.frames.feed(data):
            try:
                content = decode(frame)
            except DecodeError as exc:
                # the connection is abandoned, connection_lost() will report it to the dispatcher
                logger.warning("Failed to parse message from %s as UTF-8: %s", self.identity, exc)
                self.transport.close()
                return
            logger.debug("Received message from %s", self.identity)
            self.events.put_nowait(Message(content=content, origin=self.identity))

    def eof_received(self):
        # returning None lets asyncio close the transport, which ends up in connection_lost
        return None

    def connection_lost(self, exc: Exception | None = None) -> None:
        self.connections.discard(self)
        if exc is None:
            logger.info("Connection with %s closed", self.identity)
        else:
            logger.info("Closing connection with %s: %s", self.identity, exc)
        self.events.put_nowait(Left(self.conn_id))

    def send_frame(self, frame: bytes) -> None:
        if self.transport is None or self.transport.is_closing():
            raise ConnectionResetError(f"Connection with {self.identity} is closed")
        self.transport.write(frame)

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()
