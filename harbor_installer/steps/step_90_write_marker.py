from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from .. import __version__
from ..context import InstallCtx
from ..marker import write_marker
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class WriteMarkerStep:
    step_id = "90_write_marker"
    status = BootstrapStatus.MARKED

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        arch = state.get("arch") or {}
        provenance = {
            "installed_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "arch": arch.get("name"),
            "arch_alt": arch.get("alt"),
            "alpine_version": ctx.cfg.alpine_full_version,
            "proot_version": ctx.cfg.proot_version,
            "gotty_version": ctx.cfg.gotty_version,
            "installer_version": __version__,
        }
        # Written last: its existence is what "installed" means from now on.
        write_marker(ctx.marker_path, provenance)
        state["marker"] = provenance
        logger.info("Installation complete!")
        return state
