"""Harbor installer: Alpine Linux userland bootstrap for unprivileged hosts.

Core design goals:
- Idempotent, marker-gated provisioning
- Only writes to the installation root and the temp dir
- Architecture-aware release selection
- Degrades through proot -> host proot -> chroot at handoff
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
