"""Policy audit over beneficiary records.

Stateless household rules (duplicate identifiers, forbidden relationships,
polygamy consistency) evaluated independently of clustering.
"""

from bnfdedupe.audit.engine import audit_records, select_rules
from bnfdedupe.audit.models import Finding, Severity
from bnfdedupe.audit.rules import AUDIT_RULES, AuditRule, register_rule

__all__ = [
    "AUDIT_RULES",
    "AuditRule",
    "Finding",
    "Severity",
    "audit_records",
    "register_rule",
    "select_rules",
]
