import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024
DEFAULT_INFO_DIR = Path.home() / ".dropboxstore"


@dataclass
class Config:
    token: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    path: Path = field(default_factory=lambda: DEFAULT_INFO_DIR)

    def __post_init__(self):
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int):
            raise ValueError(f"chunk_size must be an integer, got {self.chunk_size!r}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        self.path = Path(self.path).expanduser()

    @classmethod
    def from_env(cls) -> "Config":
        chunk_size = os.environ.get("DROPBOXSTORE_CHUNK_SIZE")
        try:
            chunk_size = int(chunk_size) if chunk_size else DEFAULT_CHUNK_SIZE
        except ValueError:
            raise ValueError(
                f"DROPBOXSTORE_CHUNK_SIZE must be an integer, got {chunk_size!r}"
            ) from None

        return cls(
            token=os.environ.get("DROPBOXSTORE_TOKEN") or None,
            chunk_size=chunk_size,
            path=Path(os.environ.get("DROPBOXSTORE_PATH", str(DEFAULT_INFO_DIR))),
        )
