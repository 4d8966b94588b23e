from typing import NamedTuple, Protocol, Union


class Connection(Protocol):
    conn_id: int
    identity: str

    def send_frame(self, frame: bytes) -> None: ...

    def close(self) -> None: ...


class Message(NamedTuple):
    content: str
    origin: str


class Joined(NamedTuple):
    connection: Connection


class Left(NamedTuple):
    conn_id: int


Event = Union[Joined, Message, Left]
