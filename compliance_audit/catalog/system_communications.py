"""
System and Communications Protection (SC) checks, SC-1 through SC-7.
"""

from ..core.models import CheckDefinition, ControlFamily, Severity
from .common import call, is_true, manual, policy_document

FAMILY = ControlFamily.SC

CHECKS = [
    policy_document(
        "SC-1", FAMILY, "System and Communications Protection Policy",
        "/etc/security/system_communications_policy.txt",
    ),
    manual(
        "SC-2", FAMILY, "Application Partitioning",
        "Verify that application partitioning is implemented to separate user and system processes. "
        "Review system architecture and configuration for partitioning mechanisms.",
    ),
    manual(
        "SC-3", FAMILY, "Security Function Isolation",
        "Verify that security functions (e.g., authentication, encryption) are isolated from "
        "non-security functions. Check for dedicated hardware or software modules for security functions.",
    ),
    manual(
        "SC-4", FAMILY, "Information in Shared Resources",
        "Ensure that information in shared resources (e.g., memory buffers, cache) is protected from "
        "unauthorized access. Review system resource configurations.",
    ),
    CheckDefinition(
        id="SC-5",
        family=FAMILY.value,
        description="Checking Denial of Service (DoS) protection mechanisms",
        probe=call("service_or_rule_active", "firewall:DROP"),
        expectation=is_true,
        pass_message="Denial of Service protection is enabled (e.g., via iptables rules).",
        remediation=(
            "Denial of Service protection is NOT enabled! Ensure iptables or equivalent is configured "
            "to mitigate DoS attacks."
        ),
        severity=Severity.HIGH,
    ),
    manual(
        "SC-6", FAMILY, "Resource Availability",
        "Verify that the system provides measures to ensure resource availability (e.g., load "
        "balancing, capacity planning). Review deployment architecture and resource monitoring tools.",
    ),
    CheckDefinition(
        id="SC-7",
        family=FAMILY.value,
        description="Checking boundary protection mechanisms",
        probe=call("service_or_rule_active", "firewall:ACCEPT"),
        expectation=is_true,
        pass_message="Boundary protection is enabled (e.g., via iptables rules).",
        remediation=(
            "Boundary protection is NOT enabled! Ensure iptables or equivalent is configured to "
            "protect system boundaries."
        ),
        severity=Severity.HIGH,
    ),
]
