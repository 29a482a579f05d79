"""
SystemProbe interface.

A probe is the only component that touches the inspected host. Every
capability is a read-only query; failures are raised as InspectionError
subclasses so the runner can record them as ERROR results.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence

from ..core.exceptions import UnsupportedPlatformError
from ..core.models import ProbeCall


@dataclass(frozen=True)
class Account:
    """Учётная запись на инспектируемой системе."""

    name: str
    uid: int
    home: str = ""
    shell: str = ""
    inactive_days: Optional[int] = None  # None = никогда не входил / неизвестно

    @property
    def is_system(self) -> bool:
        return self.uid < 1000 and self.name != "root"


class SystemProbe(ABC):
    """
    Платформенный набор read-only запросов.

    Подклассы объявляют в PRIVILEGED_CAPABILITIES, каким capability нужны
    повышенные права; CheckRunner не вызывает их без прав.
    """

    # Все capability только читают состояние системы
    CAPABILITIES: FrozenSet[str] = frozenset({
        "file_exists",
        "read_config_value",
        "tool_present",
        "list_accounts",
        "service_or_rule_active",
        "file_contains",
        "file_owner",
        "file_age_days",
        "disk_usage_percent",
    })

    PRIVILEGED_CAPABILITIES: FrozenSet[str] = frozenset()

    name: str = "probe"

    def is_privileged(self) -> bool:
        """Есть ли у процесса повышенные права."""
        return True

    def requires_privilege(self, call: ProbeCall) -> bool:
        return call.capability in self.PRIVILEGED_CAPABILITIES

    def can_invoke(self, call: ProbeCall) -> bool:
        return not self.requires_privilege(call) or self.is_privileged()

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def read_config_value(self, scope: str, key: str) -> Optional[str]:
        """Значение ключа `key` в конфигурации `scope` (None если ключ не задан)."""

    @abstractmethod
    def tool_present(self, name: str) -> bool:
        ...

    @abstractmethod
    def list_accounts(self, filter: Optional[str] = None) -> Sequence[Account]:
        ...

    @abstractmethod
    def service_or_rule_active(self, descriptor: str) -> bool:
        ...

    # Дополнительные capability: по умолчанию не поддерживаются

    def file_contains(self, path: str, pattern: str) -> bool:
        raise UnsupportedPlatformError(f"{self.name} cannot search file contents", "file_contains")

    def file_owner(self, path: str) -> str:
        raise UnsupportedPlatformError(f"{self.name} cannot read file ownership", "file_owner")

    def file_age_days(self, path: str) -> Optional[float]:
        raise UnsupportedPlatformError(f"{self.name} cannot read file timestamps", "file_age_days")

    def disk_usage_percent(self, path: str) -> float:
        raise UnsupportedPlatformError(f"{self.name} cannot read disk usage", "disk_usage_percent")
