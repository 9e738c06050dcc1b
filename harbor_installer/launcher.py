from __future__ import annotations

import logging
import shutil
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from .config import InstallerConfig
from .errors import HandoffError
from .lib.command import fmt_argv

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class LaunchOutcome:
    strategy: str
    launched: bool
    returncode: Optional[int] = None
    reason: str = ""


class LaunchStrategy(Protocol):
    name: str

    def attempt(self) -> LaunchOutcome:
        ...


def run_attached(argv: Sequence[str]) -> int:
    """Run argv on our stdin/stdout/stderr and wait for it.

    The child owns the terminal: Ctrl-C and Ctrl-\\ are meant for it, so the parent
    ignores them until the child exits. Death by signal N maps to 128+N.

    A Ctrl-C that lands between Popen() returning and the handlers being swapped
    still raises KeyboardInterrupt here while the child keeps the terminal. The
    window is a few instructions wide and is accepted.
    """

    proc = subprocess.Popen(list(argv))

    # Set after spawning: an ignored disposition would be inherited across exec.
    saved = {}
    for sig in (signal.SIGINT, signal.SIGQUIT):
        try:
            saved[sig] = signal.signal(sig, signal.SIG_IGN)
        except ValueError:
            # Not the main thread; leave dispositions alone.
            break
    try:
        rc = proc.wait()
    finally:
        for sig, handler in saved.items():
            signal.signal(sig, handler)

    return 128 - rc if rc < 0 else rc


def proot_argv(binary: str, cfg: InstallerConfig) -> List[str]:
    return [
        binary,
        f"--rootfs={cfg.rootfs_dir}",
        "--link2symlink",
        "--kill-on-exit",
        "--root-id",
        f"--cwd={cfg.guest_cwd}",
        *[f"--bind={p}" for p in cfg.bind_mounts],
        cfg.guest_shell,
    ]


def chroot_argv(binary: str, cfg: InstallerConfig) -> List[str]:
    # No binds and no fake root: a much weaker environment than proot.
    return [binary, cfg.rootfs_dir, cfg.guest_shell]


class CommandStrategy:
    """Launch a binary located by `locate`, or report why it was skipped."""

    def __init__(
        self,
        name: str,
        locate: Callable[[], Optional[str]],
        build_argv: Callable[[str, InstallerConfig], List[str]],
        cfg: InstallerConfig,
        *,
        runner: Runner = run_attached,
    ) -> None:
        self.name = name
        self.locate = locate
        self.build_argv = build_argv
        self.cfg = cfg
        self.runner = runner

    def attempt(self) -> LaunchOutcome:
        binary = self.locate()
        if not binary:
            return LaunchOutcome(self.name, launched=False, reason="binary not found")

        argv = self.build_argv(binary, self.cfg)
        logger.info("Starting %s: %s", self.name, fmt_argv(argv))
        try:
            rc = self.runner(argv)
        except OSError as e:
            return LaunchOutcome(self.name, launched=False, reason=f"could not start {binary}: {e}")
        return LaunchOutcome(self.name, launched=True, returncode=rc)


def default_strategies(cfg: InstallerConfig, *, runner: Runner = run_attached) -> List[LaunchStrategy]:
    bundled = Path(cfg.rootfs_dir) / "usr/local/bin/proot"

    def _bundled() -> Optional[str]:
        return str(bundled) if bundled.is_file() else None

    return [
        CommandStrategy("bundled-proot", _bundled, proot_argv, cfg, runner=runner),
        CommandStrategy("host-proot", lambda: shutil.which("proot"), proot_argv, cfg, runner=runner),
        CommandStrategy("chroot", lambda: shutil.which("chroot"), chroot_argv, cfg, runner=runner),
    ]


def handoff(cfg: InstallerConfig, strategies: Optional[Sequence[LaunchStrategy]] = None) -> int:
    """Hand the terminal to the first strategy that starts; return its exit code."""

    chain = list(strategies) if strategies is not None else default_strategies(cfg)

    for strategy in chain:
        outcome = strategy.attempt()
        if outcome.launched:
            logger.info("%s exited with code %s", outcome.strategy, outcome.returncode)
            return int(outcome.returncode or 0)
        logger.warning("Skipping %s: %s", outcome.strategy, outcome.reason)

    raise HandoffError(
        f"No way to enter {cfg.rootfs_dir}: tried {', '.join(s.name for s in chain) or 'nothing'}"
    )
