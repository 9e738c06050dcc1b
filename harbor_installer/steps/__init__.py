from .step_10_resolve_arch import ResolveArchitectureStep
from .step_20_fetch_rootfs import FetchRootfsStep
from .step_30_extract_rootfs import ExtractRootfsStep
from .step_40_fetch_tools import FetchToolsStep
from .step_50_extract_tools import ExtractToolsStep
from .step_60_install_base import InstallBasePackagesStep
from .step_70_set_permissions import SetPermissionsStep
from .step_80_write_resolv_conf import WriteResolvConfStep
from .step_85_cleanup import CleanupStep
from .step_90_write_marker import WriteMarkerStep

__all__ = [
    "ResolveArchitectureStep",
    "FetchRootfsStep",
    "ExtractRootfsStep",
    "FetchToolsStep",
    "ExtractToolsStep",
    "InstallBasePackagesStep",
    "SetPermissionsStep",
    "WriteResolvConfStep",
    "CleanupStep",
    "WriteMarkerStep",
]
