"""
Identification and Authentication (IA) checks, IA-1 through IA-8.
"""

from ..core.models import CheckDefinition, ControlFamily, Severity
from .common import call, int_at_least, int_at_most, is_true, manual, policy_document

FAMILY = ControlFamily.IA

PWQUALITY_CONF = "/etc/security/pwquality.conf"
COMMON_AUTH = "/etc/pam.d/common-auth"


def unique_account_names(accounts) -> bool:
    names = [a.name for a in accounts]
    return len(names) == len(set(names))


CHECKS = [
    policy_document(
        "IA-1", FAMILY, "Identification and Authentication Policy",
        "/etc/security/identification_authentication_policy.txt",
    ),
    CheckDefinition(
        id="IA-2",
        family=FAMILY.value,
        description="Checking for organizational user authentication mechanisms",
        probe=call("file_contains", COMMON_AUTH, r"pam_unix\.so"),
        expectation=is_true,
        pass_message="Organizational user authentication is enabled (e.g., via PAM).",
        remediation=(
            "Organizational user authentication is NOT enabled! Ensure that PAM or equivalent is "
            "configured for user authentication."
        ),
        severity=Severity.HIGH,
    ),
    CheckDefinition(
        id="IA-2(1)",
        family=FAMILY.value,
        description="Checking for multi-factor authentication (MFA) mechanisms",
        probe=call("file_contains", COMMON_AUTH, r"pam_google_authenticator\.so"),
        expectation=is_true,
        pass_message="Multi-factor authentication is enabled (e.g., via Google Authenticator).",
        remediation=(
            f"Multi-factor authentication is NOT enabled! Ensure that MFA mechanisms are configured "
            f"in '{COMMON_AUTH}'."
        ),
        severity=Severity.HIGH,
    ),
    CheckDefinition(
        id="IA-4",
        family=FAMILY.value,
        description="Checking for unique user identifiers",
        probe=call("list_accounts", "all"),
        expectation=unique_account_names,
        pass_message="No duplicate user identifiers found in /etc/passwd.",
        remediation=(
            "Duplicate user identifiers detected! Ensure all users have unique identifiers in /etc/passwd."
        ),
    ),
    CheckDefinition(
        id="IA-5",
        family=FAMILY.value,
        description="Checking password policy and authenticator management",
        probe=call("read_config_value", PWQUALITY_CONF, "minlen"),
        expectation=int_at_least(12),
        pass_message="Password policy enforces a minimum length of 12 characters.",
        remediation=(
            f"Password policy is NOT compliant! Ensure {PWQUALITY_CONF} enforces a minimum "
            "password length of 12."
        ),
    ),
    CheckDefinition(
        id="IA-5(1)",
        family=FAMILY.value,
        description="Checking password complexity requirements",
        probe=call("read_config_value", PWQUALITY_CONF, "minclass"),
        expectation=int_at_least(3),
        pass_message=(
            "Password policy enforces at least 3 character classes (e.g., uppercase, lowercase, "
            "numbers, special characters)."
        ),
        remediation=(
            f"Password complexity requirements are NOT compliant! Ensure {PWQUALITY_CONF} enforces "
            "'minclass=3'."
        ),
    ),
    CheckDefinition(
        id="IA-5(2)",
        family=FAMILY.value,
        description="Checking password reuse restrictions",
        probe=call("file_contains", "/etc/pam.d/common-password", r"\bremember=([5-9]|\d{2,})\b"),
        expectation=is_true,
        pass_message="Password policy restricts reuse of the last 5 passwords.",
        remediation=(
            "Password reuse restrictions are NOT compliant! Ensure '/etc/pam.d/common-password' "
            "enforces 'remember=5'."
        ),
    ),
    CheckDefinition(
        id="IA-5(3)",
        family=FAMILY.value,
        description="Checking password expiration settings",
        probe=call("read_config_value", "/etc/login.defs", "PASS_MAX_DAYS"),
        expectation=int_at_most(90),
        pass_message="Password expiration is set to 90 days or less.",
        remediation="Password expiration is NOT compliant! Ensure '/etc/login.defs' enforces 'PASS_MAX_DAYS 90'.",
    ),
    manual(
        "IA-8", FAMILY, "Non-Organizational User Identification and Authentication",
        "Verify that non-organizational users are uniquely identified and authenticated before "
        "accessing the system. Review access control policies and authentication mechanisms.",
    ),
]
