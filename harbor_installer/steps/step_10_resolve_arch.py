from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.arch import resolve_architecture
from ..pipeline import BootstrapStatus

logger = logging.getLogger(__name__)


class ResolveArchitectureStep:
    step_id = "10_resolve_arch"
    status = BootstrapStatus.RESOLVING_ARCHITECTURE

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        arch = resolve_architecture()
        state["arch"] = {"name": arch.name, "alt": arch.alt}
        return state
