"""Storage for rendered chart images."""

from __future__ import annotations

import threading
import uuid
from pathlib import Path
from typing import Mapping, Protocol

from infra.env import get_env, get_str

DEFAULT_IMAGE_DIR = "storage/charts"
DEFAULT_PUBLIC_BASE_URL = "http://localhost:8080/charts"


class ImageStore(Protocol):
    def save(self, data: bytes) -> str:  # pragma: no cover - Protocol definition
        ...


class FilesystemImageStore:
    """Writes PNG files under a directory and returns their public URL."""

    def __init__(self, directory: str | Path, public_base_url: str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        self._lock = threading.Lock()

    def save(self, data: bytes) -> str:
        name = f"{uuid.uuid4().hex}.png"
        with self._lock:
            (self.directory / name).write_bytes(data)
        return f"{self.public_base_url}/{name}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "FilesystemImageStore":
        source = get_env(env)
        return cls(
            get_str(source, "IMAGE_STORE_DIR", DEFAULT_IMAGE_DIR) or DEFAULT_IMAGE_DIR,
            get_str(source, "IMAGE_PUBLIC_BASE_URL", DEFAULT_PUBLIC_BASE_URL)
            or DEFAULT_PUBLIC_BASE_URL,
        )


__all__ = ["FilesystemImageStore", "ImageStore"]
