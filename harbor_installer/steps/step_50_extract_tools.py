from __future__ import annotations

import logging
import shutil
from typing import Any, Dict

from ..context import InstallCtx
from ..errors import ExtractError
from ..lib.archive import extract_archive
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class ExtractToolsStep:
    step_id = "50_extract_tools"
    status = BootstrapStatus.EXTRACTING_TOOLS

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Extracting packages...")
        ctx.bin_dir.mkdir(parents=True, exist_ok=True)

        # apk.static only lives until cleanup; gotty ships inside the root.
        extract_archive(ctx.apk_archive, ctx.apk_dir)
        extract_archive(ctx.gotty_archive, ctx.bin_dir)

        if not ctx.apk_static.is_file():
            raise ExtractError(
                str(ctx.apk_archive),
                str(ctx.apk_dir),
                FileNotFoundError(f"package does not contain {ctx.apk_static.relative_to(ctx.apk_dir)}"),
            )

        # /tmp and the root may be different filesystems.
        dest = ctx.bin_dir / "proot"
        shutil.move(str(ctx.proot_download), str(dest))
        logger.info("Installed proot -> %s", str(dest))
        return state
