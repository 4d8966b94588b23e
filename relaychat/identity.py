import hashlib

DEFAULT_IDENTITY_LENGTH = 10
MAX_IDENTITY_LENGTH = hashlib.sha256().digest_size * 2  # hex characters in a digest


def generate_identity(port: int, length: int = DEFAULT_IDENTITY_LENGTH) -> str:
    """
    Derives the display name of a peer from its remote port: the first `length` hex characters
    of sha256(port as 2 big-endian bytes).

    The result only depends on the port, so a peer reconnecting from a port that was used
    before gets the same name again. `length` is validated once by Config, not here.
    """
    digest = hashlib.sha256(port.to_bytes(2, "big")).hexdigest()
    return digest[:length]
