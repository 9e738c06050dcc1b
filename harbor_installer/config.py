from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigError


@dataclass(frozen=True)
class InstallerConfig:
    """Everything the installer needs to know, fixed for the whole run.

    Defaults match the published Harbor egg: the container can only write to
    /home/container and /tmp.
    """

    rootfs_dir: str = "/home/container"
    tmp_dir: str = "/tmp"

    # Keep apk_tools_version in step with alpine_version.
    alpine_version: str = "3.18"
    alpine_full_version: str = "3.18.3"
    apk_tools_version: str = "2.14.0-r2"
    # Some proot releases do not ship static builds.
    proot_version: str = "5.3.0"
    gotty_version: str = "1.5.0"

    alpine_mirror: str = "https://dl-cdn.alpinelinux.org/alpine"
    alpine_fallback_mirror: str = "https://dl-2.alpinelinux.org/alpine"
    gotty_release_url: str = "https://github.com/sorenisanerd/gotty/releases/download"
    proot_release_url: str = "https://github.com/proot-me/proot/releases/download"

    base_packages: Tuple[str, ...] = ("alpine-base", "apk-tools")
    nameservers: Tuple[str, ...] = ("1.1.1.1", "1.0.0.1")

    fetch_timeout_s: float = 300.0

    guest_shell: str = "/bin/sh"
    guest_cwd: str = "/root"
    bind_mounts: Tuple[str, ...] = ("/proc", "/dev", "/sys", "/tmp")

    marker_name: str = ".installed"
    show_banner: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "InstallerConfig":
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in raw.items():
            default = known[key].default
            if isinstance(default, tuple):
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ConfigError(f"{key} must be a list")
                if not all(isinstance(v, str) for v in value):
                    raise ConfigError(f"{key} entries must be strings (quote numeric values)")
                value = tuple(value)
            elif isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"{key} must be true or false")
            elif isinstance(default, float):
                try:
                    value = float(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be a number") from e
                if value <= 0:
                    raise ConfigError(f"{key} must be positive")
            elif not isinstance(value, str):
                # YAML reads 3.20 as the float 3.2; never guess at the intended text.
                raise ConfigError(f"{key} must be a string; quote numeric values such as versions")
            values[key] = value

        return cls(**values)


def load_config(path: Optional[str] = None, **overrides: Any) -> InstallerConfig:
    """Build the config from an optional YAML file plus CLI overrides.

    Overrides that are None are ignored so argparse defaults don't clobber the file.
    """

    raw: Dict[str, Any] = {}

    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError("installer config must be YAML")

        import yaml

        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping/object")
        raw.update(data)

    raw.update({k: v for k, v in overrides.items() if v is not None})
    return InstallerConfig.from_mapping(raw)
