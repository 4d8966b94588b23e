from .identity import DEFAULT_IDENTITY_LENGTH, MAX_IDENTITY_LENGTH

LOCAL_HOST = "127.0.0.1"
DEFAULT_BACKLOG = 100


class ConfigError(ValueError):
    pass


def _validate_port(port) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        raise ConfigError(f"Port must be a valid number between 0 and 65535, got {port!r}.")
    return port


class Config:

    def __init__(
            self,
            port,
            identity_length=DEFAULT_IDENTITY_LENGTH,
            host=LOCAL_HOST,
            backlog=DEFAULT_BACKLOG
    ):
        self.port = _validate_port(port)
        if isinstance(identity_length, bool) or not isinstance(identity_length, int) \
                or not 1 <= identity_length <= MAX_IDENTITY_LENGTH:
            raise ConfigError(
                f"Identity length must be an integer between 1 and {MAX_IDENTITY_LENGTH}, got {identity_length!r}."
            )
        self.identity_length = identity_length
        self.host = host
        self.backlog = backlog


class ClientConfig:

    def __init__(self, port, host=LOCAL_HOST):
        self.port = _validate_port(port)
        self.host = host
