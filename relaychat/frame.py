"""
Every message on the wire, in both directions, is one fixed size frame:

    [ UTF-8 payload ][ 0x00 padding up to FRAME_SIZE ]

There is no length prefix. The receiver reads exactly FRAME_SIZE bytes and the payload
ends at the first zero byte (or at the end of the frame if the payload fills it).
TCP is a byte stream, so a single data_received() call can carry half a frame or several
frames back to back. FrameBuffer takes care of cutting the stream back into frames.
"""

FRAME_SIZE = 256
PADDING = b"\x00"


class FrameError(ValueError):
    pass


class EncodeError(FrameError):
    pass


class DecodeError(FrameError):
    pass


def encode(text: str) -> bytes:
    payload = text.encode("utf-8")
    if len(payload) > FRAME_SIZE:
        raise EncodeError(f"Message is {len(payload)} bytes, a frame holds at most {FRAME_SIZE}")
    return payload.ljust(FRAME_SIZE, PADDING)


def decode(frame: bytes) -> str:
    payload = bytes(frame[:FRAME_SIZE]).split(PADDING, 1)[0]
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Frame payload is not valid UTF-8: {exc}") from exc


class FrameBuffer:
    """
    Accumulates raw bytes from the transport and hands back whole frames.
    Whatever is left over stays buffered until the next feed().
    """

    def __init__(self, frame_size: int = FRAME_SIZE):
        self.frame_size = frame_size
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[bytes]:
        self._buffer += data
        frames = []
        while len(self._buffer) >= self.frame_size:
            frames.append(bytes(self._buffer[:self.frame_size]))
            del self._buffer[:self.frame_size]
        return frames

    def __len__(self) -> int:
        return len(self._buffer)
