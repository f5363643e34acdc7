"""Network probe interface and its system implementation."""

from .base import NetworkProbes, ProbeError, ProbeTimeout, ProbeReset, ProbeUnavailable
from .platform_adapter import PlatformAdapter, get_platform_adapter

__all__ = [
    "NetworkProbes",
    "ProbeError",
    "ProbeTimeout",
    "ProbeReset",
    "ProbeUnavailable",
    "PlatformAdapter",
    "get_platform_adapter",
]
