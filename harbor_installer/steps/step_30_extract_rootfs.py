from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.archive import extract_archive
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class ExtractRootfsStep:
    step_id = "30_extract_rootfs"
    status = BootstrapStatus.EXTRACTING_ROOTFS

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Extracting Alpine Linux root filesystem...")
        names = extract_archive(ctx.rootfs_archive, ctx.rootfs_dir)
        logger.info("Root filesystem extracted into %s (%d entries)", str(ctx.rootfs_dir), len(names))
        return state
