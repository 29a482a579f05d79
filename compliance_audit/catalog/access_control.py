"""
Access Control (AC) checks, AC-1 through AC-10.
"""

from ..core.models import CheckDefinition, ControlFamily, ProbeGroup, Severity
from .common import all_equal, call, is_true, manual, policy_document

FAMILY = ControlFamily.AC

INACTIVITY_THRESHOLD_DAYS = 30


def no_inactive_accounts(accounts) -> bool:
    return not any(
        a.inactive_days is not None and a.inactive_days > INACTIVITY_THRESHOLD_DAYS
        for a in accounts
    )


CHECKS = [
    policy_document(
        "AC-1", FAMILY, "Access Control policy", "/etc/security/access_control_policy.txt"
    ),
    CheckDefinition(
        id="AC-2",
        family=FAMILY.value,
        description="Checking for inactive user accounts",
        probe=call("list_accounts", "human"),
        expectation=no_inactive_accounts,
        pass_message=f"No user account has been inactive for more than {INACTIVITY_THRESHOLD_DAYS} days.",
        remediation=(
            f"One or more user accounts have been inactive for more than {INACTIVITY_THRESHOLD_DAYS} days. "
            "Consider disabling or reviewing these accounts."
        ),
    ),
    CheckDefinition(
        id="AC-3",
        family=FAMILY.value,
        description="Checking access enforcement mechanisms",
        probe=call("file_exists", "/etc/security/access_enforcement_rules.conf"),
        expectation=is_true,
        pass_message="Access enforcement mechanisms are in place.",
        remediation=(
            "Access enforcement mechanisms are NOT in place! Please configure and document "
            "enforcement rules in '/etc/security/access_enforcement_rules.conf'."
        ),
    ),
    CheckDefinition(
        id="AC-4",
        family=FAMILY.value,
        description="Checking information flow control",
        probe=call("service_or_rule_active", "firewall:DROP"),
        expectation=is_true,
        pass_message="Information flow is controlled using iptables.",
        remediation=(
            "Information flow is NOT controlled! Ensure iptables or equivalent is set up to "
            "regulate data flow."
        ),
        severity=Severity.HIGH,
    ),
    manual(
        "AC-5", FAMILY, "Separation of Duties",
        "Review roles and responsibilities to ensure no single individual has conflicting duties. "
        "Document your findings in your organizational compliance records.",
    ),
    CheckDefinition(
        id="AC-6",
        family=FAMILY.value,
        description="Checking least privilege enforcement",
        probe=ProbeGroup((call("file_owner", "/etc/shadow"), call("file_owner", "/etc/passwd"))),
        expectation=all_equal("root"),
        pass_message="Files /etc/shadow and /etc/passwd are properly restricted to root.",
        remediation=(
            "/etc/shadow or /etc/passwd is NOT restricted to root! Restore root ownership "
            "(chown root /etc/shadow /etc/passwd)."
        ),
        severity=Severity.HIGH,
    ),
    CheckDefinition(
        id="AC-7",
        family=FAMILY.value,
        description="Checking unsuccessful login attempt logging",
        probe=call("file_contains", "/etc/pam.d/common-auth", r"auth.*pam_(tally2|faillock)"),
        expectation=is_true,
        pass_message="Unsuccessful login attempts are logged using pam_tally2/pam_faillock.",
        remediation=(
            "Unsuccessful login attempts are NOT logged! Please configure pam_tally2 or "
            "equivalent in '/etc/pam.d/common-auth'."
        ),
    ),
    CheckDefinition(
        id="AC-8",
        family=FAMILY.value,
        description="Checking system use notification banner",
        probe=call("file_contains", "/etc/issue", "Authorized users only"),
        expectation=is_true,
        pass_message="System use notification banner is configured.",
        remediation="System use notification banner is NOT configured! Add a banner message in '/etc/issue'.",
        severity=Severity.LOW,
    ),
    CheckDefinition(
        id="AC-9",
        family=FAMILY.value,
        description="Checking previous logon notification",
        probe=call("file_contains", "/etc/pam.d/login", r"^\s*session\s+.*pam_lastlog\.so"),
        expectation=is_true,
        pass_message="Previous logon notification is enabled.",
        remediation=(
            "Previous logon notification is NOT enabled! Configure your system to display the "
            "last login information (pam_lastlog in '/etc/pam.d/login')."
        ),
        severity=Severity.LOW,
    ),
    CheckDefinition(
        id="AC-10",
        family=FAMILY.value,
        description="Checking concurrent session control",
        probe=call("file_contains", "/etc/security/limits.conf", r"^\s*[^#\s].*\bmaxlogins\b"),
        expectation=is_true,
        pass_message="Concurrent session control is configured.",
        remediation=(
            "Concurrent session control is NOT configured! Update '/etc/security/limits.conf' "
            "to set session restrictions."
        ),
    ),
]
