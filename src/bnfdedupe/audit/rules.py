"""Household policy audit rules.

Each rule is a pure function over the full normalized record population
returning zero or more findings. Rules never mutate records and never see
each other's output. New rules are added with ``register_rule`` without
touching existing ones.
"""

from collections import defaultdict
from collections.abc import Callable, Sequence
from itertools import combinations

from bnfdedupe.audit.models import Finding, Severity
from bnfdedupe.models import NormalizedRecord
from bnfdedupe.scoring.comparators import jaro_winkler, token_jaccard

__all__ = ["AUDIT_RULES", "AuditRule", "register_rule"]

AuditRule = Callable[[Sequence[NormalizedRecord]], list[Finding]]

AUDIT_RULES: dict[str, AuditRule] = {}

# Names shorter than this are too common to attribute to one person
MIN_PERSON_TOKENS = 3
MAX_SPOUSES = 4
LINEAGE_TOKEN_MIN = 0.93
SHARED_DEPENDENTS_MIN = 0.9


def register_rule(name: str) -> Callable[[AuditRule], AuditRule]:
    """Register an audit rule under ``name``.

    Parameters
    ----------
    name : str
        Stable rule name used in ``enabled_rules``.

    Returns
    -------
    Callable[[AuditRule], AuditRule]
        Decorator returning the rule unchanged.

    Raises
    ------
    ValueError
        If a rule with the same name is already registered.
    """

    def decorator(rule: AuditRule) -> AuditRule:
        if name in AUDIT_RULES:
            raise ValueError(f"Audit rule already registered: {name}")
        AUDIT_RULES[name] = rule
        return rule

    return decorator


def _group_by(
    records: Sequence[NormalizedRecord],
    key: Callable[[NormalizedRecord], str],
) -> dict[str, list[NormalizedRecord]]:
    groups: dict[str, list[NormalizedRecord]] = defaultdict(list)
    for record in records:
        value = key(record)
        if value:
            groups[value].append(record)
    return groups


def _person_key(field_tokens: tuple[str, ...], canonical: str) -> str:
    return canonical if len(field_tokens) >= MIN_PERSON_TOKENS else ""


# ---------------------------------------------------------------------------
# Identity rules
# ---------------------------------------------------------------------------


@register_rule("duplicate_identifier")
def duplicate_identifier(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """Same external identifier on different records."""
    findings = []
    for identifier, group in sorted(_group_by(records, lambda r: r.identifier).items()):
        rids = {r.rid for r in group}
        if len(rids) > 1:
            findings.append(
                Finding.create(
                    Severity.HIGH,
                    "DUPLICATE_IDENTIFIER",
                    f"Identifier '{identifier}' is shared by {len(rids)} records.",
                    rids,
                )
            )
    return findings


@register_rule("duplicate_couple")
def duplicate_couple(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """Identical primary and secondary names on different records."""

    def couple(r: NormalizedRecord) -> str:
        if not r.primary.canonical or not r.secondary.canonical:
            return ""
        return f"{r.primary.canonical}|{r.secondary.canonical}"

    findings = []
    for key, group in sorted(_group_by(records, couple).items()):
        rids = {r.rid for r in group}
        if len(rids) > 1:
            primary, secondary = key.split("|", 1)
            findings.append(
                Finding.create(
                    Severity.HIGH,
                    "DUPLICATE_COUPLE",
                    f"Couple '{primary}' / '{secondary}' is registered {len(rids)} times.",
                    rids,
                )
            )
    return findings


@register_rule("multiple_identifiers")
def multiple_identifiers(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """One principal registered under more than one identifier."""
    findings = []
    groups = _group_by(records, lambda r: _person_key(r.primary.tokens, r.primary.canonical))
    for name, group in sorted(groups.items()):
        identifiers = sorted({r.identifier for r in group if r.identifier})
        if len(identifiers) > 1:
            findings.append(
                Finding.create(
                    Severity.HIGH,
                    "MULTIPLE_IDENTIFIERS",
                    f"'{name}' is associated with {len(identifiers)} identifiers: "
                    f"{', '.join(identifiers)}.",
                    (r.rid for r in group if r.identifier),
                )
            )
    return findings


# ---------------------------------------------------------------------------
# Household structure rules
# ---------------------------------------------------------------------------


@register_rule("multiple_spouses")
def multiple_spouses(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """One principal linked to more than one distinct spouse."""
    findings = []
    groups = _group_by(records, lambda r: _person_key(r.primary.tokens, r.primary.canonical))
    for name, group in sorted(groups.items()):
        spouses = sorted({r.secondary.canonical for r in group if r.secondary.canonical})
        if len(spouses) > 1:
            findings.append(
                Finding.create(
                    Severity.HIGH,
                    "WOMAN_MULTIPLE_HUSBANDS",
                    f"'{name}' is registered with {len(spouses)} spouses: {', '.join(spouses)}.",
                    (r.rid for r in group if r.secondary.canonical),
                )
            )
    return findings


@register_rule("too_many_wives")
def too_many_wives(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """One spouse linked to more principals than the household limit."""
    findings = []
    groups = _group_by(records, lambda r: _person_key(r.secondary.tokens, r.secondary.canonical))
    for name, group in sorted(groups.items()):
        principals = {r.primary.canonical for r in group if r.primary.canonical}
        if len(principals) > MAX_SPOUSES:
            findings.append(
                Finding.create(
                    Severity.MEDIUM,
                    "HUSBAND_TOO_MANY_WIVES",
                    f"'{name}' is registered with {len(principals)} wives, "
                    f"which exceeds the limit of {MAX_SPOUSES}.",
                    (r.rid for r in group),
                )
            )
    return findings


@register_rule("polygamy_shared_dependents")
def polygamy_shared_dependents(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """Different wives of one husband listing the same dependents."""
    findings = []
    groups = _group_by(records, lambda r: _person_key(r.secondary.tokens, r.secondary.canonical))
    for name, group in sorted(groups.items()):
        for a, b in combinations(group, 2):
            if a.primary.canonical == b.primary.canonical:
                continue
            if token_jaccard(a.dependent_tokens, b.dependent_tokens) >= SHARED_DEPENDENTS_MIN:
                findings.append(
                    Finding.create(
                        Severity.MEDIUM,
                        "SHARED_DEPENDENTS",
                        f"Two wives of '{name}' list the same dependents.",
                        (a.rid, b.rid),
                    )
                )
    return findings


# ---------------------------------------------------------------------------
# Forbidden relationship rules
# ---------------------------------------------------------------------------


def _is_listed_as_child(principal: NormalizedRecord, dependent_tokens: tuple[str, ...]) -> bool:
    """Whether a dependent name denotes the principal as the spouse's child.

    Either the full name matches, or the dependent is the principal's given
    name alone and the principal's father is the spouse.
    """
    tokens = principal.primary.tokens
    if not tokens or not dependent_tokens:
        return False
    if dependent_tokens == tokens:
        return True
    return (
        len(dependent_tokens) == 1
        and dependent_tokens[0] == tokens[0]
        and len(tokens) > 1
        and bool(principal.secondary.tokens)
        and tokens[1] == principal.secondary.tokens[0]
    )


@register_rule("forbidden_relationship")
def forbidden_relationship(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """A principal who is also listed as a dependent of her own spouse's household."""
    findings = []
    groups = _group_by(records, lambda r: r.secondary.canonical)
    for name, group in sorted(groups.items()):
        for principal in group:
            for other in group:
                if other.rid == principal.rid:
                    continue
                if any(_is_listed_as_child(principal, dep.tokens) for dep in other.dependents):
                    findings.append(
                        Finding.create(
                            Severity.HIGH,
                            "FORBIDDEN_RELATIONSHIP",
                            f"'{principal.primary.canonical}' is registered as wife of '{name}' "
                            f"and listed as a dependent in another household of '{name}'.",
                            (principal.rid, other.rid),
                        )
                    )
    return findings


@register_rule("lineage_conflict")
def lineage_conflict(records: Sequence[NormalizedRecord]) -> list[Finding]:
    """Spouse name repeating the principal's father and grandfather."""
    findings = []
    for record in records:
        primary = record.primary.tokens
        secondary = record.secondary.tokens
        if len(primary) < MIN_PERSON_TOKENS or len(secondary) < 2:
            continue
        if all(jaro_winkler(primary[i + 1], secondary[i]) >= LINEAGE_TOKEN_MIN for i in range(2)):
            findings.append(
                Finding.create(
                    Severity.HIGH,
                    "LINEAGE_CONFLICT",
                    f"Spouse '{record.secondary.canonical}' matches the father and grandfather "
                    f"of '{record.primary.canonical}'.",
                    (record.rid,),
                )
            )
    return findings
