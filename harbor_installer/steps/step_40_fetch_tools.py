from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.fetch import FetchTarget
from ..lib.sources import apk_tools_urls, gotty_url, proot_url
from ..pipeline import BootstrapStatus
from ._common import arch_from_state

logger = logging.getLogger(__name__)


class FetchToolsStep:
    step_id = "40_fetch_tools"
    status = BootstrapStatus.FETCHING_TOOLS

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        arch = arch_from_state(state)

        logger.info("Downloading required packages...")
        targets = [
            # stable branch, then latest-stable, then edge
            FetchTarget("apk-tools-static", tuple(apk_tools_urls(ctx.cfg, arch)), ctx.apk_archive),
            FetchTarget("gotty", (gotty_url(ctx.cfg, arch),), ctx.gotty_archive),
            FetchTarget("proot", (proot_url(ctx.cfg, arch),), ctx.proot_download),
        ]
        used = ctx.fetcher.fetch_many(targets)
        state.setdefault("downloads", {}).update(used)
        return state
