from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List

from ..context import InstallCtx
from ..errors import CleanupError
from ..pipeline import BootstrapStatus, add_warning

logger = logging.getLogger(__name__)


def remove_paths(paths: List[Path]) -> List[CleanupError]:
    """Best-effort removal. Returns the failures instead of raising."""

    failures: List[CleanupError] = []
    for p in paths:
        try:
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            else:
                p.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            failures.append(CleanupError(str(p), e))
    return failures


class CleanupStep:
    step_id = "85_cleanup"
    status = BootstrapStatus.CLEANING_TEMP

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Finalizing installation...")
        for err in remove_paths([ctx.work_dir]):
            logger.warning("%s", err)
            add_warning(state, str(err))
        return state
