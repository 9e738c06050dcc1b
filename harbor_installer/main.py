from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import InstallerConfig, load_config
from .context import InstallCtx
from .errors import InstallerError
from .launcher import handoff
from .lib.fetch import Fetcher
from .logging_utils import configure_logging, log_path_for
from .marker import load_marker, marker_exists
from .motd import show_banner
from .pipeline import BootstrapStatus, new_state, run_pipeline, set_status
from .steps import (
    CleanupStep,
    ExtractRootfsStep,
    ExtractToolsStep,
    FetchRootfsStep,
    FetchToolsStep,
    InstallBasePackagesStep,
    ResolveArchitectureStep,
    SetPermissionsStep,
    WriteMarkerStep,
    WriteResolvConfStep,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapResult:
    status: BootstrapStatus
    state: Dict[str, Any]
    ran_steps: List[str]
    marker: Dict[str, Any]


def build_steps():
    return [
        ResolveArchitectureStep(),
        FetchRootfsStep(),
        ExtractRootfsStep(),
        FetchToolsStep(),
        ExtractToolsStep(),
        InstallBasePackagesStep(),
        SetPermissionsStep(),
        WriteResolvConfStep(),
        CleanupStep(),
        WriteMarkerStep(),
    ]


def provision(cfg: InstallerConfig, *, fetcher: Optional[Fetcher] = None) -> BootstrapResult:
    """Provision the installation root unless the marker says it already is."""

    ctx = InstallCtx(cfg=cfg, fetcher=fetcher or Fetcher(timeout=cfg.fetch_timeout_s))
    state = new_state()

    if marker_exists(ctx.marker_path):
        marker = load_marker(ctx.marker_path)
        set_status(state, BootstrapStatus.ALREADY_PROVISIONED)
        logger.info("Alpine Linux already installed in %s %s", str(ctx.rootfs_dir), marker or "")
        return BootstrapResult(BootstrapStatus.ALREADY_PROVISIONED, state, [], marker)

    logger.info("Starting Alpine Linux installation into %s", str(ctx.rootfs_dir))
    ctx.rootfs_dir.mkdir(parents=True, exist_ok=True)
    ctx.work_dir.mkdir(parents=True, exist_ok=True)

    result = run_pipeline(ctx=ctx, state=state, steps=build_steps())
    return BootstrapResult(BootstrapStatus.MARKED, result.state, result.ran_steps, result.state.get("marker") or {})


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="harbor-installer",
        description="Install Alpine Linux into a writable directory and start a shell inside it.",
    )
    p.add_argument("--config", default=None, help="YAML file overriding installer defaults")
    p.add_argument("--rootfs", default=None, help="Installation root (default /home/container)")
    p.add_argument("--tmp-dir", default=None, help="Scratch directory for downloads (default /tmp)")
    p.add_argument("--log", default=None, help="Path to installer log (default <tmp-dir>/harbor-installer.log)")
    p.add_argument("--timeout", type=float, default=None, help="Per-download timeout in seconds")
    p.add_argument("--no-banner", action="store_true", help="Do not print the welcome banner")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = p.parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    # The log lives in the configured temporary directory, so the config is read first.
    try:
        cfg = load_config(
            args.config,
            rootfs_dir=args.rootfs,
            tmp_dir=args.tmp_dir,
            fetch_timeout_s=args.timeout,
            show_banner=False if args.no_banner else None,
        )
    except (InstallerError, FileNotFoundError) as e:
        configure_logging(log_path=args.log or log_path_for(args.tmp_dir or InstallerConfig.tmp_dir), level=level)
        logger.error("Invalid configuration: %s", e)
        return 1

    configure_logging(log_path=args.log or log_path_for(cfg.tmp_dir), level=level)

    try:
        provision(cfg)
    except InstallerError as e:
        logger.error("Installation failed: %s", e)
        return 1
    except Exception:
        logger.exception("Installation failed")
        return 1

    if cfg.show_banner:
        show_banner(cfg)

    try:
        return handoff(cfg)
    except InstallerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
