from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def marker_exists(path: str | Path) -> bool:
    # Existence alone means "installed"; the root itself is never re-validated.
    return Path(path).exists()


def load_marker(path: str | Path) -> Dict[str, Any]:
    """Return provenance recorded in the marker.

    Older installs created an empty marker (``touch``); anything that isn't a YAML
    mapping is returned verbatim under ``raw``.
    """

    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8", errors="replace")
    if not text.strip():
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return {"raw": text.strip()}

    if not isinstance(data, dict):
        return {"raw": text.strip()}
    return data


def write_marker(path: str | Path, provenance: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(yaml.safe_dump(provenance, sort_keys=False), encoding="utf-8")
    logger.info("Wrote installation marker %s", str(p))
