from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import InstallerConfig
from .lib.fetch import Fetcher


@dataclass(frozen=True)
class InstallCtx:
    cfg: InstallerConfig
    fetcher: Fetcher

    @property
    def rootfs_dir(self) -> Path:
        return Path(self.cfg.rootfs_dir)

    @property
    def bin_dir(self) -> Path:
        return self.rootfs_dir / "usr/local/bin"

    @property
    def marker_path(self) -> Path:
        return self.rootfs_dir / self.cfg.marker_name

    @property
    def resolv_conf(self) -> Path:
        return self.rootfs_dir / "etc/resolv.conf"

    @property
    def work_dir(self) -> Path:
        # Every temporary artifact lives here so cleanup is a single rmtree.
        return Path(self.cfg.tmp_dir) / "harbor-bootstrap"

    @property
    def rootfs_archive(self) -> Path:
        return self.work_dir / "rootfs.tar.gz"

    @property
    def apk_archive(self) -> Path:
        return self.work_dir / "apk-tools-static.apk"

    @property
    def apk_dir(self) -> Path:
        return self.work_dir / "apk"

    @property
    def apk_static(self) -> Path:
        return self.apk_dir / "sbin/apk.static"

    @property
    def gotty_archive(self) -> Path:
        return self.work_dir / "gotty.tar.gz"

    @property
    def proot_download(self) -> Path:
        return self.work_dir / "proot"
