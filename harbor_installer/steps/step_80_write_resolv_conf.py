from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class WriteResolvConfStep:
    step_id = "80_write_resolv_conf"
    status = BootstrapStatus.WRITING_NETWORK_CONFIG

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        # No trailing newline: the file content is exactly the nameserver lines.
        contents = "\n".join(f"nameserver {ns}" for ns in ctx.cfg.nameservers)

        ctx.resolv_conf.parent.mkdir(parents=True, exist_ok=True)
        ctx.resolv_conf.write_text(contents, encoding="utf-8")
        logger.info("Wrote %s (%s)", str(ctx.resolv_conf), ", ".join(ctx.cfg.nameservers))
        return state
