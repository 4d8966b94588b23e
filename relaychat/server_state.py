import itertools
import logging
from typing import Iterator
from ._types import Connection
from .frame import encode, EncodeError

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Live peer connections keyed by connection id, iterated in accept order.

    Identities are not unique (they only depend on the remote port) so the id is the key, and the
    identity is only used to decide who the sender of a message was.
    """

    def __init__(self, connections: dict[int, Connection] | None = None):
        self._connections: dict[int, Connection] = dict(connections or {})

    def add(self, connection: Connection) -> None:
        self._connections[connection.conn_id] = connection

    def remove(self, conn_id: int) -> Connection | None:
        return self._connections.pop(conn_id, None)

    def identities(self) -> list[str]:
        return [conn.identity for conn in self._connections.values()]

    def broadcast_except(self, origin_identity: str, content: str) -> "ConnectionRegistry":
        """
        Sends "<origin>: '<content>'" to everybody except the origin and returns the registry that is
        left once every peer we failed to write to has been dropped. self is not modified.
        """
        remaining = ConnectionRegistry(self._connections)
        try:
            frame = encode(f"{origin_identity}: '{content}'")
        except EncodeError as exc:
            logger.warning("Dropping message from %s: %s", origin_identity, exc)
            return remaining

        for conn_id, conn in self._connections.items():
            if conn.identity == origin_identity:
                continue
            logger.info("Sending message to user %s", conn.identity)
            try:
                conn.send_frame(frame)
            except (OSError, RuntimeError) as exc:
                logger.warning("Failed to send message to %s (%s), removing it", conn.identity, exc)
                del remaining._connections[conn_id]
        return remaining

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._connections


class ServerState:
    """
    State shared between the protocol instances and the dispatcher.
    """
    def __init__(self):
        # Only the dispatcher task rebinds or mutates this.
        self.registry = ConnectionRegistry()
        """
        Every ChatConn that has been made and not yet lost, whether or not the dispatcher has registered
        it yet. Used on shutdown to close sockets the registry may not know about.
        """
        self.connections: set[Connection] = set()
        self.total_messages = 0
        self._conn_ids = itertools.count(1)

    def next_conn_id(self) -> int:
        return next(self._conn_ids)
