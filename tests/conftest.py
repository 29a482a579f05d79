"""
Pytest configuration and fixtures.

Использование:
    pytest tests/ -v
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from compliance_audit.config import AuditConfig
from compliance_audit.core.models import CheckDefinition, CheckKind, ProbeCall
from compliance_audit.core.registry import CheckRegistry
from compliance_audit.probes.base import Account, SystemProbe


# ═══════════════════════════════════════════════════════
# FAKE PROBE
# ═══════════════════════════════════════════════════════

class FakeProbe(SystemProbe):
    """
    Probe с заранее заданными ответами.

    responses: {capability: value | Exception | callable(*args)}
    Все вызовы записываются в self.calls.
    """

    name = "fake"

    def __init__(self, responses: Optional[Dict[str, Any]] = None, privileged: bool = True,
                 privileged_capabilities: Sequence[str] = ()):
        self.responses = responses or {}
        self.privileged = privileged
        self.PRIVILEGED_CAPABILITIES = frozenset(privileged_capabilities)
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def is_privileged(self) -> bool:
        return self.privileged

    def _answer(self, capability: str, *args: Any) -> Any:
        self.calls.append((capability, args))
        response = self.responses.get(capability)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(*args)
        return response

    def file_exists(self, path: str) -> bool:
        return self._answer("file_exists", path)

    def read_config_value(self, scope: str, key: str) -> Optional[str]:
        return self._answer("read_config_value", scope, key)

    def tool_present(self, name: str) -> bool:
        return self._answer("tool_present", name)

    def list_accounts(self, filter: Optional[str] = None) -> Sequence[Account]:
        return self._answer("list_accounts", filter)

    def service_or_rule_active(self, descriptor: str) -> bool:
        return self._answer("service_or_rule_active", descriptor)

    def file_contains(self, path: str, pattern: str) -> bool:
        return self._answer("file_contains", path, pattern)

    def file_owner(self, path: str) -> Optional[str]:
        return self._answer("file_owner", path)

    def file_age_days(self, path: str) -> Optional[float]:
        return self._answer("file_age_days", path)

    def disk_usage_percent(self, path: str) -> float:
        return self._answer("disk_usage_percent", path)


def automated(check_id: str, family: str = "AC", capability: str = "file_exists",
              args: Tuple[Any, ...] = ("/etc/policy.txt",), expectation=None,
              remediation: str = "Fix it.", pass_message: str = "") -> CheckDefinition:
    """Собрать автоматическую проверку для тестов."""
    return CheckDefinition(
        id=check_id,
        family=family,
        description=f"Checking {check_id}",
        probe=ProbeCall(capability, args),
        expectation=expectation or (lambda value: value is True),
        remediation=remediation,
        pass_message=pass_message,
    )


def manual_check(check_id: str, family: str = "AC", guidance: str = "Review it manually.") -> CheckDefinition:
    return CheckDefinition(
        id=check_id,
        family=family,
        description=f"Manual Review Required - {check_id}",
        kind=CheckKind.MANUAL_REVIEW,
        remediation=guidance,
    )


# ═══════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════

@pytest.fixture
def fake_probe():
    return FakeProbe({"file_exists": True, "list_accounts": []})


@pytest.fixture
def config(tmp_path):
    """Конфигурация с output_dir во временной директории."""
    return AuditConfig(
        output_dir=tmp_path / "compliance-checks",
        report_filename="master_compliance_report.html",
        report_format="html",
        probe_timeout_seconds=2.0,
        command_timeout_seconds=2.0,
        parallel_families=False,
        families=[],
    )


@pytest.fixture
def example_registry():
    """
    Registry из примера: AC-1 (policy file) и AC-2 (хотя бы один аккаунт).
    """
    registry = CheckRegistry()
    registry.register("AC", CheckDefinition(
        id="AC-1",
        family="AC",
        description="Verifying Access Control Policy documentation",
        probe=ProbeCall("file_exists", ("/etc/security/access_control_policy.txt",)),
        expectation=lambda exists: exists is True,
        pass_message="Access Control policy is documented.",
        remediation=(
            "Access Control policy is NOT documented! Please ensure that an organizational "
            "Access Control policy is created and stored in '/etc/security/access_control_policy.txt'."
        ),
    ))
    registry.register("AC", CheckDefinition(
        id="AC-2",
        family="AC",
        description="Checking user accounts",
        probe=ProbeCall("list_accounts", ("human",)),
        expectation=lambda accounts: len(accounts) >= 1,
        pass_message="User accounts are present.",
        remediation="No user accounts found! Review account management.",
    ))
    return registry


@pytest.fixture
def three_accounts():
    return [
        Account(name="root", uid=0, home="/root", shell="/bin/bash"),
        Account(name="alice", uid=1000, home="/home/alice", shell="/bin/bash"),
        Account(name="bob", uid=1001, home="/home/bob", shell="/bin/bash"),
    ]
