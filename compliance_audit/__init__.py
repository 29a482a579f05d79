"""
NIST 800-53 Compliance Audit

Read-only аудит конфигурации хоста по семействам контролей:
- AC  Access Control
- AU  Audit and Accountability
- IA  Identification and Authentication
- SC  System and Communications Protection
- SI  System and Information Integrity

Usage:
    compliance-audit run
    python -m compliance_audit run --format json
"""

__version__ = "1.0.0"
