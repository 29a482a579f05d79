"""
Exception taxonomy for the compliance audit engine.

Inspection-level errors become CheckResult.ERROR, family-level errors become
an "unavailable" FamilyReport, and only ReportError reaches the caller.
"""


class ComplianceAuditError(Exception):
    """Базовое исключение аудита."""


class CheckDefinitionError(ComplianceAuditError, ValueError):
    """Некорректное описание проверки (ошибка построения каталога)."""


class DuplicateCheckError(CheckDefinitionError):
    """Повторный check id внутри одного семейства."""

    def __init__(self, family: str, check_id: str):
        self.family = family
        self.check_id = check_id
        super().__init__(f"Check '{check_id}' is already registered in family '{family}'")


class CheckError(ComplianceAuditError):
    """Проверку не удалось вычислить."""


class InspectionError(CheckError):
    """Probe не смог прочитать состояние системы."""

    def __init__(self, message: str, capability: str = ""):
        self.capability = capability
        super().__init__(message)


class PermissionDeniedError(InspectionError):
    """Недостаточно прав для чтения."""


class UnsupportedPlatformError(InspectionError):
    """Capability не поддерживается на этой платформе."""


class ProbeTimeoutError(InspectionError):
    """Probe не ответил за отведённое время."""


class FamilyError(ComplianceAuditError):
    """Семейство целиком не удалось запустить."""

    def __init__(self, family: str, reason: str):
        self.family = family
        self.reason = reason
        super().__init__(f"Family '{family}' unavailable: {reason}")


class ReportError(ComplianceAuditError):
    """Итоговый отчёт не удалось записать."""
