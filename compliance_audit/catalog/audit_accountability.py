"""
Audit and Accountability (AU) checks, AU-1 through AU-12.
"""

from ..core.models import CheckDefinition, ControlFamily, Severity
from .common import call, is_not_none, is_true, less_than, manual, policy_document

FAMILY = ControlFamily.AU

AUDIT_DIR = "/var/log/audit"
AUDIT_LOG = "/var/log/audit/audit.log"
CAPACITY_THRESHOLD_PERCENT = 80


CHECKS = [
    policy_document("AU-1", FAMILY, "Audit policy", "/etc/security/audit_policy.txt"),
    CheckDefinition(
        id="AU-2",
        family=FAMILY.value,
        description="Checking for audit record generation",
        probe=call("file_exists", AUDIT_LOG),
        expectation=is_true,
        pass_message="Audit records are being generated.",
        remediation=(
            "Audit records are NOT being generated! Ensure that the auditd service is installed "
            "and running."
        ),
        severity=Severity.HIGH,
    ),
    CheckDefinition(
        id="AU-3",
        family=FAMILY.value,
        description="Verifying content of audit records",
        probe=call("file_contains", AUDIT_LOG, "type=SYSCALL"),
        expectation=is_true,
        pass_message="Audit records include syscall information.",
        remediation=(
            "Audit records do NOT include sufficient information! Update audit rules to capture "
            "syscall data."
        ),
    ),
    CheckDefinition(
        id="AU-4",
        family=FAMILY.value,
        description="Checking audit storage capacity",
        probe=call("disk_usage_percent", AUDIT_DIR),
        expectation=less_than(CAPACITY_THRESHOLD_PERCENT),
        pass_message=f"Audit storage usage is below {CAPACITY_THRESHOLD_PERCENT}%.",
        remediation=(
            f"Audit storage capacity is LOW (at least {CAPACITY_THRESHOLD_PERCENT}% used)! "
            f"Consider increasing storage for {AUDIT_DIR}."
        ),
    ),
    manual(
        "AU-5", FAMILY, "Response to Audit Processing Failures",
        "Ensure that the system is configured to alert administrators and take appropriate actions "
        "(e.g., halt system processes) in case of audit failures. Document actions taken in "
        "organizational compliance records.",
    ),
    manual(
        "AU-6", FAMILY, "Audit Review, Analysis, and Reporting",
        "Ensure audit logs are regularly reviewed and analyzed by authorized personnel. Summarize "
        "findings in periodic reports and maintain evidence of reviews.",
    ),
    manual(
        "AU-7", FAMILY, "Audit Reduction and Report Generation",
        "Ensure mechanisms are in place to reduce and generate reports from audit logs. Verify that "
        "tools such as ausearch or aureport are configured and operational.",
    ),
    CheckDefinition(
        id="AU-8",
        family=FAMILY.value,
        description="Checking system time synchronization",
        probe=call("service_or_rule_active", "ntp"),
        expectation=is_true,
        pass_message="System time is synchronized with NTP.",
        remediation=(
            "System time is NOT synchronized with NTP! Ensure NTP or equivalent is configured "
            "and running."
        ),
    ),
    CheckDefinition(
        id="AU-9",
        family=FAMILY.value,
        description="Checking protection of audit records",
        probe=call("file_owner", AUDIT_LOG),
        expectation=lambda owner: owner == "root",
        pass_message=f"Audit file {AUDIT_LOG} is protected (owned by root).",
        remediation=f"Audit file {AUDIT_LOG} is NOT protected! Ensure ownership is restricted to root.",
        severity=Severity.HIGH,
    ),
    manual(
        "AU-10", FAMILY, "Non-repudiation",
        "Ensure mechanisms are in place to associate audit records with the identity of the user "
        "performing the action. This may involve reviewing system configurations and "
        "authentication logs.",
    ),
    CheckDefinition(
        id="AU-11",
        family=FAMILY.value,
        description="Checking audit record retention",
        probe=call("read_config_value", "/etc/audit/auditd.conf", "max_log_file_action"),
        expectation=is_not_none,
        pass_message=(
            "Audit record retention is configured (review retention period in /etc/audit/auditd.conf)."
        ),
        remediation=(
            "Audit record retention is NOT configured! Update /etc/audit/auditd.conf to specify "
            "retention settings."
        ),
    ),
    CheckDefinition(
        id="AU-12",
        family=FAMILY.value,
        description="Checking audit generation configuration",
        probe=call("service_or_rule_active", "audit-rules"),
        expectation=is_true,
        pass_message="Audit generation is enabled and rules are in place.",
        remediation=(
            "Audit generation is NOT enabled! Configure and enable audit rules using auditctl "
            "or equivalent."
        ),
        severity=Severity.HIGH,
    ),
]
