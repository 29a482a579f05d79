"""System probes (read-only host inspection)."""

from .base import Account, SystemProbe
from .linux import LinuxSystemProbe

__all__ = ["Account", "SystemProbe", "LinuxSystemProbe"]
