from .config import Config, ClientConfig, ConfigError
from .frame import FRAME_SIZE, encode, decode, FrameError, EncodeError, DecodeError
from .identity import generate_identity
from .server import Server
from .client import Client

__version__ = "0.1.0"
__all__ = [
    "Config",
    "ClientConfig",
    "ConfigError",
    "FRAME_SIZE",
    "encode",
    "decode",
    "FrameError",
    "EncodeError",
    "DecodeError",
    "generate_identity",
    "Server",
    "Client",
]
