"""Data models for policy audit findings."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

__all__ = ["Finding", "Severity"]


class Severity(StrEnum):
    """Finding severity.

    Attributes
    ----------
    HIGH : str
        Policy violation that blocks payment until reviewed.
    MEDIUM : str
        Suspicious pattern worth a field check.
    LOW : str
        Informational.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


@dataclass(frozen=True)
class Finding:
    """One audit finding.

    Attributes
    ----------
    severity : Severity
        Finding severity.
    type : str
        Type tag (e.g. "DUPLICATE_IDENTIFIER").
    description : str
        Human-readable explanation.
    rids : tuple[str, ...]
        Implicated record IDs, sorted.
    """

    severity: Severity
    type: str
    description: str
    rids: tuple[str, ...]

    @staticmethod
    def create(severity: Severity, type_: str, description: str, rids: Iterable[str]) -> "Finding":
        """Build a finding with sorted, de-duplicated rids."""
        return Finding(
            severity=severity,
            type=type_,
            description=description,
            rids=tuple(sorted(set(rids))),
        )

    def sort_key(self) -> tuple[int, str, tuple[str, ...]]:
        return (self.severity.rank, self.type, self.rids)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "type": self.type,
            "description": self.description,
            "rids": list(self.rids),
        }
