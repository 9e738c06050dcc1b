from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.fetch import LoggingProgress
from ..lib.sources import rootfs_urls
from ..pipeline import BootstrapStatus
from ._common import arch_from_state

logger = logging.getLogger(__name__)


class FetchRootfsStep:
    step_id = "20_fetch_rootfs"
    status = BootstrapStatus.FETCHING_ROOTFS

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        arch = arch_from_state(state)

        logger.info("Downloading Alpine Linux %s root filesystem...", ctx.cfg.alpine_full_version)
        # Primary mirror, then a single fallback mirror. No further retries.
        url = ctx.fetcher.fetch(
            rootfs_urls(ctx.cfg, arch),
            ctx.rootfs_archive,
            progress=LoggingProgress("rootfs"),
        )
        state.setdefault("downloads", {})["rootfs"] = url
        return state
