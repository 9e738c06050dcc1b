from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from typing import Optional

from ..errors import CommandError, UnsupportedArchitecture
from .command import run_cmd

logger = logging.getLogger(__name__)

# Alpine release naming -> Go release naming (gotty).
_SUPPORTED = {
    "x86_64": "amd64",
    "aarch64": "arm64",
}


@dataclass(frozen=True)
class ArchDescriptor:
    name: str  # Alpine / proot release naming
    alt: str  # gotty release naming


def _uname_machine() -> Optional[str]:
    try:
        r = run_cmd(["uname", "-m"])
    except CommandError as e:
        logger.warning("uname -m failed (%s); using the interpreter's view of the machine", e)
        return None
    return r.stdout.strip() or None


def resolve_architecture() -> ArchDescriptor:
    """Map the host CPU to release artifact names.

    Asks the kernel first: under emulation the interpreter may report a different
    machine than the one we are actually running on. Never guesses.
    """

    machine = _uname_machine() or platform.machine()
    alt = _SUPPORTED.get(machine)
    if alt is None:
        raise UnsupportedArchitecture(machine)

    logger.info("Architecture: %s (%s)", machine, alt)
    return ArchDescriptor(name=machine, alt=alt)
