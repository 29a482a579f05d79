"""
System and Information Integrity (SI) checks, SI-1 through SI-7.
"""

from ..core.models import CheckDefinition, ControlFamily, ProbeGroup, Severity
from .common import call, is_true, manual, policy_document

FAMILY = ControlFamily.SI

UPDATE_WINDOW_DAYS = 30


def updated_recently(age_days) -> bool:
    return age_days is not None and age_days <= UPDATE_WINDOW_DAYS


CHECKS = [
    policy_document(
        "SI-1", FAMILY, "System and Information Integrity Policy",
        "/etc/security/system_information_integrity_policy.txt",
    ),
    CheckDefinition(
        id="SI-2",
        family=FAMILY.value,
        description="Checking system for recent software updates",
        probe=call("file_age_days", "/var/log/apt/history.log"),
        expectation=updated_recently,
        pass_message=f"System software updates have been applied in the last {UPDATE_WINDOW_DAYS} days.",
        remediation=(
            "System software updates have NOT been applied recently! Ensure that updates are "
            "applied regularly."
        ),
        severity=Severity.HIGH,
    ),
    CheckDefinition(
        id="SI-3",
        family=FAMILY.value,
        description="Checking for anti-malware software",
        probe=call("tool_present", "clamscan"),
        expectation=is_true,
        pass_message="Anti-malware software (ClamAV) is installed.",
        remediation=(
            "Anti-malware software is NOT installed! Ensure ClamAV or equivalent is installed and configured."
        ),
    ),
    manual(
        "SI-4", FAMILY, "Information System Monitoring",
        "Verify that the organization monitors the information system to detect attacks and indicators "
        "of potential attacks. Review monitoring configurations and logs.",
    ),
    CheckDefinition(
        id="SI-5",
        family=FAMILY.value,
        description="Checking for security alert subscriptions",
        probe=call("file_exists", "/etc/security/security_alerts_subscription.txt"),
        expectation=is_true,
        pass_message="Security alerts subscription is documented.",
        remediation=(
            "Security alerts subscription is NOT documented! Ensure the organization subscribes to "
            "relevant security alert services."
        ),
        severity=Severity.LOW,
    ),
    manual(
        "SI-6", FAMILY, "Security Function Verification",
        "Verify that the organization tests the security functions of the system to ensure proper "
        "operation. Review test results and system configurations.",
    ),
    CheckDefinition(
        id="SI-7",
        family=FAMILY.value,
        description="Checking for integrity verification mechanisms",
        probe=ProbeGroup((call("tool_present", "tripwire"), call("tool_present", "aide"))),
        expectation=any,
        pass_message="Integrity verification tool (Tripwire or AIDE) is installed.",
        remediation=(
            "Integrity verification tool is NOT installed! Ensure Tripwire or equivalent is "
            "installed and configured."
        ),
    ),
]
