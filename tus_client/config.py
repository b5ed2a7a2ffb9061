"""Client configuration."""

from dataclasses import dataclass
from typing import Union

TUS_VERSION = "1.0.0"

DEFAULT_CHUNK_SIZE = 6 * 1024 * 1024  # 6MB


@dataclass
class ClientOptions:
    """Options shared by every upload driven by one TusClient.

    Attributes:
        chunk_size: Size of upload chunks in bytes (default: 6MB). Can be int or float.
        tus_version: Value sent in the Tus-Resumable header
    """

    chunk_size: Union[int, float] = DEFAULT_CHUNK_SIZE
    tus_version: str = TUS_VERSION

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1 byte, got {self.chunk_size}")
        self.chunk_size = int(self.chunk_size)
