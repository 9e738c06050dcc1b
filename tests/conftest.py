from __future__ import annotations

import io
import tarfile
import threading
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import pytest

from harbor_installer.config import InstallerConfig


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"",
        *,
        chunks: int = 1,
        chunk_delay: float = 0.0,
        fail_after: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.chunks = max(1, chunks)
        self.chunk_delay = chunk_delay
        self.fail_after = fail_after
        self.headers = dict(headers) if headers is not None else {"Content-Length": str(len(body))}
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        size = max(1, -(-len(self.body) // self.chunks))
        for i in range(0, max(len(self.body), 1), size):
            if self.chunk_delay:
                time.sleep(self.chunk_delay)
            if self.fail_after is not None and i >= self.fail_after:
                raise ConnectionResetError("connection reset by peer")
            yield self.body[i : i + size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


Route = Union[FakeResponse, BaseException]


class FakeSession:
    """Stands in for requests.Session; unknown URLs answer 404."""

    def __init__(self, routes: Optional[Dict[str, Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[str] = []
        self.kwargs: List[dict] = []
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs) -> FakeResponse:
        with self._lock:
            self.calls.append(url)
            self.kwargs.append(kwargs)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, b"not found")
        if isinstance(route, BaseException):
            raise route
        return route

    def close(self) -> None:
        pass

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc) -> None:
        pass


def make_tar_gz(
    path: Path,
    files: Optional[Mapping[str, bytes]] = None,
    *,
    symlinks: Optional[Mapping[str, str]] = None,
    modes: Optional[Mapping[str, int]] = None,
) -> Path:
    """Write a .tar.gz with the given regular files and symlinks."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, mode="w:gz") as tf:
        for name, data in (files or {}).items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = (modes or {}).get(name, 0o644)
            tf.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tf.addfile(info)
    return path


@pytest.fixture
def cfg(tmp_path: Path) -> InstallerConfig:
    return InstallerConfig(
        rootfs_dir=str(tmp_path / "container"),
        tmp_dir=str(tmp_path / "tmp"),
        show_banner=False,
    )

