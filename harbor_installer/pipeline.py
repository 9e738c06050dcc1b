from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence

from .context import InstallCtx

logger = logging.getLogger(__name__)


class BootstrapStatus(str, enum.Enum):
    NOT_STARTED = "NotStarted"
    RESOLVING_ARCHITECTURE = "ResolvingArchitecture"
    FETCHING_ROOTFS = "FetchingRootfs"
    EXTRACTING_ROOTFS = "ExtractingRootfs"
    FETCHING_TOOLS = "FetchingTools"
    EXTRACTING_TOOLS = "ExtractingTools"
    INSTALLING_BASE_PACKAGES = "InstallingBasePackages"
    CONFIGURING_PERMISSIONS = "ConfiguringPermissions"
    WRITING_NETWORK_CONFIG = "WritingNetworkConfig"
    CLEANING_TEMP = "CleaningTemp"
    MARKED = "Marked"
    ALREADY_PROVISIONED = "AlreadyProvisioned"
    FAILED = "Failed"


class Step(Protocol):
    """A single bootstrap step. Steps run strictly in order."""

    step_id: str
    status: BootstrapStatus

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]


def new_state() -> Dict[str, Any]:
    return {
        "arch": {},
        "downloads": {},
        "execution": {
            "status": BootstrapStatus.NOT_STARTED.value,
            "current_step": None,
            "completed_steps": [],
            "history": [BootstrapStatus.NOT_STARTED.value],
            "warnings": [],
        },
    }


def set_status(state: Dict[str, Any], status: BootstrapStatus) -> None:
    exe = state.setdefault("execution", {})
    exe["status"] = status.value
    exe.setdefault("history", []).append(status.value)


def add_warning(state: Dict[str, Any], message: str) -> None:
    state.setdefault("execution", {}).setdefault("warnings", []).append(message)


def run_pipeline(*, ctx: InstallCtx, state: Dict[str, Any], steps: Sequence[Step]) -> PipelineResult:
    """Run every step in order. There is no resume: a failure aborts the run."""

    ran: List[str] = []

    for step in steps:
        state.setdefault("execution", {})["current_step"] = step.step_id
        set_status(state, step.status)
        logger.info("Running step %s", step.step_id)
        try:
            state = step.run(ctx, state)
        except Exception as e:
            set_status(state, BootstrapStatus.FAILED)
            state["execution"]["error"] = {"step": step.step_id, "error": str(e)}
            logger.error("Step %s failed: %s", step.step_id, e)
            raise
        state["execution"].setdefault("completed_steps", []).append(step.step_id)
        ran.append(step.step_id)

    state["execution"]["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran)
