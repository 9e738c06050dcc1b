from __future__ import annotations

from typing import Any, Dict

from ..lib.arch import ArchDescriptor


def arch_from_state(state: Dict[str, Any]) -> ArchDescriptor:
    arch = state.get("arch") or {}
    if not arch.get("name") or not arch.get("alt"):
        raise RuntimeError("state.arch missing; run the architecture step first")
    return ArchDescriptor(name=str(arch["name"]), alt=str(arch["alt"]))
