from __future__ import annotations

from typing import List

from ..config import InstallerConfig
from .arch import ArchDescriptor


def rootfs_urls(cfg: InstallerConfig, arch: ArchDescriptor) -> List[str]:
    """Minirootfs on the primary mirror, then exactly one fallback mirror."""

    rel = (
        f"v{cfg.alpine_version}/releases/{arch.name}/"
        f"alpine-minirootfs-{cfg.alpine_full_version}-{arch.name}.tar.gz"
    )
    return [f"{m.rstrip('/')}/{rel}" for m in (cfg.alpine_mirror, cfg.alpine_fallback_mirror)]


def apk_tools_urls(cfg: InstallerConfig, arch: ArchDescriptor) -> List[str]:
    base = cfg.alpine_mirror.rstrip("/")
    name = f"apk-tools-static-{cfg.apk_tools_version}.apk"
    return [
        f"{base}/{branch}/main/{arch.name}/{name}"
        for branch in (f"v{cfg.alpine_version}", "latest-stable", "edge")
    ]


def apk_repository_url(cfg: InstallerConfig) -> str:
    return f"{cfg.alpine_mirror.rstrip('/')}/v{cfg.alpine_version}/main/"


def gotty_url(cfg: InstallerConfig, arch: ArchDescriptor) -> str:
    v = cfg.gotty_version
    return f"{cfg.gotty_release_url.rstrip('/')}/v{v}/gotty_v{v}_linux_{arch.alt}.tar.gz"


def proot_url(cfg: InstallerConfig, arch: ArchDescriptor) -> str:
    v = cfg.proot_version
    return f"{cfg.proot_release_url.rstrip('/')}/v{v}/proot-v{v}-{arch.name}-static"
