from __future__ import annotations

from typing import Optional, Sequence


class InstallerError(Exception):
    """Base class for errors that abort the bootstrap."""


class ConfigError(InstallerError):
    pass


class UnsupportedArchitecture(InstallerError):
    def __init__(self, machine: str) -> None:
        super().__init__(f"Unsupported CPU architecture: {machine or '<unknown>'}")
        self.machine = machine


class FetchError(InstallerError):
    def __init__(
        self,
        urls: Sequence[str],
        dest: str,
        *,
        status: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.urls = list(urls)
        self.dest = dest
        self.status = status
        self.error = error

        last = self.urls[-1] if self.urls else "<no urls>"
        if status is not None:
            why = f"HTTP {status}"
        elif error is not None:
            why = f"{type(error).__name__}: {error}"
        else:
            why = "no url succeeded"
        super().__init__(f"Failed to download {last} -> {dest} ({why}; tried {len(self.urls)} url(s))")


class ExtractError(InstallerError):
    def __init__(self, archive: str, target: str, error: BaseException) -> None:
        super().__init__(f"Failed to extract {archive} into {target}: {error}")
        self.archive = archive
        self.target = target
        self.error = error


class CommandError(InstallerError):
    def __init__(self, argv: Sequence[str], returncode: Optional[int], stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class PermissionSetupError(InstallerError):
    """chmod of an installed tool failed (or the tool is missing)."""

    def __init__(self, path: str, error: BaseException) -> None:
        super().__init__(f"Unable to make {path} executable: {error}")
        self.path = path
        self.error = error


class CleanupError(InstallerError):
    """Best-effort removal failed. Collected and logged, never raised by the pipeline."""

    def __init__(self, path: str, error: BaseException) -> None:
        super().__init__(f"Could not clean up {path}: {error}")
        self.path = path
        self.error = error


class HandoffError(InstallerError):
    pass
