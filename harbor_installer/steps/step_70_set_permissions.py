from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..context import InstallCtx
from ..errors import PermissionSetupError
from ..pipeline import BootstrapStatus, add_warning

logger = logging.getLogger(__name__)

EXEC_MODE = 0o755


class SetPermissionsStep:
    step_id = "70_set_permissions"
    status = BootstrapStatus.CONFIGURING_PERMISSIONS

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Setting up permissions...")

        proot = ctx.bin_dir / "proot"
        try:
            os.chmod(proot, EXEC_MODE)
        except OSError as e:
            raise PermissionSetupError(str(proot), e) from e

        # gotty is a convenience; the shell works without it.
        gotty = ctx.bin_dir / "gotty"
        try:
            os.chmod(gotty, EXEC_MODE)
        except OSError as e:
            err = PermissionSetupError(str(gotty), e)
            logger.warning("%s (continuing without gotty)", err)
            add_warning(state, str(err))

        logger.info("Contents of %s: %s", str(ctx.bin_dir), ", ".join(sorted(p.name for p in ctx.bin_dir.iterdir())))
        return state
