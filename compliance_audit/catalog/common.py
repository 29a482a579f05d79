"""
Helpers for declaring catalog checks.
"""

from typing import Any, Callable, Optional

from ..core.models import CheckDefinition, CheckKind, ControlFamily, ProbeCall, Severity


def call(capability: str, *args: Any) -> ProbeCall:
    return ProbeCall(capability, tuple(args))


def policy_document(check_id: str, family: ControlFamily, policy: str, path: str,
                    severity: Severity = Severity.LOW) -> CheckDefinition:
    """Проверка наличия документа политики (AC-1, AU-1, IA-1, ...)."""
    return CheckDefinition(
        id=check_id,
        family=family.value,
        description=f"Verifying {policy} documentation",
        probe=call("file_exists", path),
        expectation=is_true,
        pass_message=f"{policy} is documented.",
        remediation=(
            f"{policy} is NOT documented! Ensure the policy is created and stored in '{path}'."
        ),
        severity=severity,
    )


def manual(check_id: str, family: ControlFamily, topic: str, guidance: str) -> CheckDefinition:
    """Проверка, требующая ручной оценки."""
    return CheckDefinition(
        id=check_id,
        family=family.value,
        description=f"Manual Review Required - {topic}",
        kind=CheckKind.MANUAL_REVIEW,
        remediation=guidance,
    )


# === Expectations ===

def is_true(value: Any) -> bool:
    return value is True


def is_not_none(value: Any) -> bool:
    return value is not None


def int_at_least(minimum: int) -> Callable[[Optional[str]], bool]:
    def expectation(value: Optional[str]) -> bool:
        return value is not None and int(value) >= minimum
    return expectation


def int_at_most(maximum: int) -> Callable[[Optional[str]], bool]:
    def expectation(value: Optional[str]) -> bool:
        return value is not None and int(value) <= maximum
    return expectation


def less_than(limit: float) -> Callable[[float], bool]:
    return lambda value: value < limit


def all_equal(expected: Any) -> Callable[[tuple], bool]:
    return lambda values: all(v == expected for v in values)
