"""
Default check catalog for Linux hosts.

Families are declared in this order: AC, AU, IA, SC, SI.
"""

from ..core.registry import CheckRegistry
from . import (
    access_control,
    audit_accountability,
    identification_authentication,
    system_communications,
    system_integrity,
)

FAMILY_MODULES = [
    access_control,
    audit_accountability,
    identification_authentication,
    system_communications,
    system_integrity,
]


def build_default_registry() -> CheckRegistry:
    """Собрать registry со всеми семействами каталога."""
    registry = CheckRegistry()
    for module in FAMILY_MODULES:
        registry.register_all(module.FAMILY, module.CHECKS)
    return registry


__all__ = ["build_default_registry", "FAMILY_MODULES"]
