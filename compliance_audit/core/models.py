"""
Core data models for compliance audit.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .exceptions import CheckDefinitionError, UnsupportedPlatformError


class ControlFamily(Enum):
    """Семейство контролей NIST 800-53."""
    AC = "AC"  # Access Control
    AU = "AU"  # Audit and Accountability
    IA = "IA"  # Identification and Authentication
    SC = "SC"  # System and Communications Protection
    SI = "SI"  # System and Information Integrity

    @property
    def title(self) -> str:
        return FAMILY_TITLES[self.value]


FAMILY_TITLES: Dict[str, str] = {
    "AC": "Access Control",
    "AU": "Audit and Accountability",
    "IA": "Identification and Authentication",
    "SC": "System and Communications Protection",
    "SI": "System and Information Integrity",
}


def family_key(family: Any) -> str:
    """Привести семейство (enum или строку) к строковому ключу."""
    if isinstance(family, ControlFamily):
        return family.value
    return str(family).strip().upper()


def family_title(family: Any) -> str:
    """Человекочитаемое название семейства, например 'Access Control (AC)'."""
    key = family_key(family)
    title = FAMILY_TITLES.get(key)
    return f"{title} ({key})" if title else key


class CheckKind(Enum):
    """Тип проверки."""
    AUTOMATED = "automated"
    MANUAL_REVIEW = "manual_review"


class CheckStatus(Enum):
    """Итог выполнения проверки."""
    PASS = "pass"
    FAIL = "fail"
    MANUAL_REVIEW = "manual_review"
    ERROR = "error"  # Probe не удалось выполнить (не то же самое, что FAIL)

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")


class Severity(Enum):
    """Уровень серьёзности несоответствия."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ProbeCall:
    """
    Вызов capability на SystemProbe.

    Хранит только имя capability и аргументы; сам probe передаётся
    во время выполнения.
    """

    capability: str
    args: Tuple[Any, ...] = ()

    @property
    def calls(self) -> Tuple["ProbeCall", ...]:
        return (self,)

    def invoke(self, probe: Any) -> Any:
        method = getattr(probe, self.capability, None)
        if method is None or not callable(method):
            raise UnsupportedPlatformError(
                f"{type(probe).__name__} does not provide capability '{self.capability}'",
                self.capability,
            )
        return method(*self.args)

    def __str__(self) -> str:
        rendered = ", ".join(repr(a) for a in self.args)
        return f"{self.capability}({rendered})"


@dataclass(frozen=True)
class ProbeGroup:
    """Несколько вызовов probe; expectation получает кортеж результатов."""

    members: Tuple[ProbeCall, ...]

    def __post_init__(self):
        if not self.members:
            raise CheckDefinitionError("ProbeGroup needs at least one call")

    @property
    def calls(self) -> Tuple[ProbeCall, ...]:
        return self.members

    def invoke(self, probe: Any) -> Tuple[Any, ...]:
        return tuple(call.invoke(probe) for call in self.members)

    def __str__(self) -> str:
        return " + ".join(str(call) for call in self.members)


@dataclass(frozen=True)
class CheckDefinition:
    """Декларативное описание одной проверки контроля."""

    id: str
    family: str
    description: str
    kind: CheckKind = CheckKind.AUTOMATED
    probe: Optional[Union[ProbeCall, "ProbeGroup"]] = None
    expectation: Optional[Callable[[Any], bool]] = field(default=None, compare=False)
    remediation: str = ""  # Для MANUAL_REVIEW это текст guidance
    pass_message: str = ""
    severity: Severity = Severity.MEDIUM

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise CheckDefinitionError("Check id must not be empty")
        object.__setattr__(self, "family", family_key(self.family))
        if "\n" in self.description or "\r" in self.description:
            raise CheckDefinitionError(f"{self.id}: description must be a single line")

        if not self.remediation.strip():
            raise CheckDefinitionError(f"{self.id}: remediation/guidance text is required")

        if self.kind is CheckKind.AUTOMATED:
            if self.probe is None or self.expectation is None:
                raise CheckDefinitionError(
                    f"{self.id}: automated checks need both a probe and an expectation"
                )

    @property
    def is_manual(self) -> bool:
        return self.kind is CheckKind.MANUAL_REVIEW


@dataclass(frozen=True)
class CheckResult:
    """Результат выполнения проверки."""

    check_id: str
    family: str
    status: CheckStatus
    message: str
    description: str = ""
    duration_ms: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.PASS

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "check_id": self.check_id,
            "family": self.family,
            "status": self.status.value,
            "description": self.description,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class FamilyReport:
    """Результаты одного семейства в порядке выполнения."""

    family: str
    results: List[CheckResult] = field(default_factory=list)
    completed: bool = False
    unavailable_reason: Optional[str] = None

    @property
    def unavailable(self) -> bool:
        return self.unavailable_reason is not None

    @property
    def title(self) -> str:
        return family_title(self.family)

    def count(self, status: CheckStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    def status_counts(self) -> Dict[str, int]:
        return {status.value: self.count(status) for status in CheckStatus}

    @classmethod
    def unavailable_for(cls, family: Any, reason: str) -> "FamilyReport":
        """Placeholder для семейства, которое не удалось выполнить."""
        return cls(family=family_key(family), results=[], completed=False, unavailable_reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "title": self.title,
            "completed": self.completed,
            "unavailable": self.unavailable,
            "unavailable_reason": self.unavailable_reason,
            "counts": self.status_counts(),
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class ConsolidatedReport:
    """Итоговый отчёт по всем семействам."""

    families: Tuple[FamilyReport, ...]
    generated_at: datetime
    report_path: Optional[Path] = None
    duration_seconds: float = 0.0

    def totals(self) -> Dict[str, int]:
        totals = {status.value: 0 for status in CheckStatus}
        for report in self.families:
            for key, value in report.status_counts().items():
                totals[key] += value
        return totals

    @property
    def total_checks(self) -> int:
        return sum(len(r.results) for r in self.families)

    def unavailable_families(self) -> List[FamilyReport]:
        return [r for r in self.families if r.unavailable]

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "report_path": str(self.report_path) if self.report_path else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "total_checks": self.total_checks,
            "totals": self.totals(),
            "families": [r.to_dict() for r in self.families],
        }
