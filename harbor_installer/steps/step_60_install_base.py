from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.command import run_cmd
from ..lib.sources import apk_repository_url
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class InstallBasePackagesStep:
    step_id = "60_install_base"
    status = BootstrapStatus.INSTALLING_BASE_PACKAGES

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        logger.info("Installing base system packages: %s", " ".join(cfg.base_packages))

        # The static apk has no keys for the fresh root yet, hence --allow-untrusted.
        run_cmd(
            [
                str(ctx.apk_static),
                "-X",
                apk_repository_url(cfg),
                "-U",
                "--allow-untrusted",
                "--root",
                str(ctx.rootfs_dir),
                "add",
                *cfg.base_packages,
            ]
        )
        state["packages"] = list(cfg.base_packages)
        return state
