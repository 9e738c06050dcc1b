from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO

from .config import InstallerConfig

_LOGO = r"""
 ██╗  ██╗ █████╗ ██████╗ ██████╗  ██████╗ ██████╗
 ██║  ██║██╔══██╗██╔══██╗██╔══██╗██╔═══██╗██╔══██╗
 ███████║███████║██████╔╝██████╔╝██║   ██║██████╔╝
 ██╔══██║██╔══██║██╔══██╗██╔══██╗██║   ██║██╔══██╗
 ██║  ██║██║  ██║██║  ██║██████╔╝╚██████╔╝██║  ██║
 ╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚═════╝  ╚═════╝ ╚═╝  ╚═╝
"""

_BODY = """
 Welcome to Alpine Linux minirootfs!
 This is a lightweight and security-oriented Linux distribution that is perfect for running high-performance applications.

 Here are some useful commands to get you started:

    apk add [package] : install a package
    apk del [package] : remove a package
    apk update : update the package index
    apk upgrade : upgrade installed packages
    apk search [keyword] : search for a package
    apk info [package] : show information about a package
    gotty -p [server-port] -w ash : share your terminal

 If you run into any issues make sure to report them on GitHub!
 https://github.com/RealTriassic/Harbor
"""

_CLEAR = "\033[H\033[2J"


def alpine_release(cfg: InstallerConfig) -> str:
    os_release = Path(cfg.rootfs_dir) / "etc/os-release"
    try:
        for line in os_release.read_text(encoding="utf-8").splitlines():
            if line.startswith("PRETTY_NAME="):
                name = line.split("=", 1)[1].strip().strip('"')
                if name:
                    return name
    except OSError:
        pass
    return f"Alpine Linux {cfg.alpine_full_version}"


def render_banner(cfg: InstallerConfig) -> str:
    return f"{_LOGO}{_BODY}\nCurrent Alpine release: {alpine_release(cfg)}\n"


def show_banner(cfg: InstallerConfig, stream: Optional[TextIO] = None) -> None:
    out = stream or sys.stdout
    if out.isatty():
        out.write(_CLEAR)
    out.write(render_banner(cfg))
    out.write("\n")
    out.flush()
