from __future__ import annotations

import logging
import os
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List, Set

from ..errors import ExtractError

logger = logging.getLogger(__name__)


def _escapes(name: str) -> bool:
    return name.startswith("/") or ".." in PurePosixPath(name).parts


def _inside(root: str, path: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def _check_members(members: List[tarfile.TarInfo], dst: Path) -> None:
    # Symlink targets are left alone: the minirootfs is full of absolute links
    # (busybox applets) that only make sense inside the guest. What must not
    # happen is writing *through* a link, whether the archive brought it or an
    # earlier extraction left it on disk.
    root = os.path.realpath(dst)
    links: Set[PurePosixPath] = set()

    for m in members:
        if _escapes(m.name):
            raise tarfile.TarError(f"refusing member outside target: {m.name}")
        if m.islnk() and _escapes(m.linkname):
            raise tarfile.TarError(f"refusing hard link outside target: {m.name} -> {m.linkname}")

        name = PurePosixPath(m.name)
        # A symlink member replaces whatever sits at its own path; anything else
        # is written at that path, so the path itself must not be a link.
        written = [name.parent] if m.issym() else [name]
        if m.islnk():
            written.append(PurePosixPath(m.linkname))

        for path in written:
            via = [p for p in (path, *path.parents) if p in links]
            if via:
                raise tarfile.TarError(f"refusing member through archive symlink {via[0]}: {m.name}")
            real = os.path.realpath(os.path.join(root, str(path)))
            if not _inside(root, real):
                raise tarfile.TarError(f"refusing member that resolves outside target: {m.name} -> {real}")

        if m.issym():
            links.add(name)


def extract_archive(archive: str | Path, target: str | Path) -> List[str]:
    """Extract a .tar.gz (or gzip-framed .apk) into target.

    Returns the member names.
    """

    src = Path(archive)
    dst = Path(target)

    logger.info("Extracting %s -> %s", str(src), str(dst))
    try:
        dst.mkdir(parents=True, exist_ok=True)
        with tarfile.open(src, mode="r:gz") as tf:
            members = tf.getmembers()
            _check_members(members, dst)
            if hasattr(tarfile, "fully_trusted_filter"):
                tf.extractall(dst, members=members, filter="fully_trusted")
            else:  # pragma: no cover - interpreters without extraction filters
                tf.extractall(dst, members=members)
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ExtractError(str(src), str(dst), e) from e

    logger.debug("Extracted %d entries from %s", len(members), src.name)
    return [m.name for m in members]
