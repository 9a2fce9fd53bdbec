"""Beneficiary record data models for bnfdedupe.

This module defines the closed record shape every engine stage consumes,
plus the normalized derivatives computed once per run.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

__all__ = [
    "MAX_EXTRA_ATTRIBUTES",
    "FIELD_ALIASES",
    "NormalizedField",
    "NormalizedRecord",
    "Record",
    "load_records",
]

MAX_EXTRA_ATTRIBUTES = 32

# Column names seen in registry exports, mapped to record fields
FIELD_ALIASES: dict[str, str] = {
    "rid": "rid",
    "internal_id": "rid",
    "primary_name": "primary_name",
    "woman_name": "primary_name",
    "womanName": "primary_name",
    "secondary_name": "secondary_name",
    "husband_name": "secondary_name",
    "husbandName": "secondary_name",
    "identifier": "identifier",
    "national_id": "identifier",
    "nationalId": "identifier",
    "phone": "phone",
    "location": "location",
    "village": "location",
    "sub_location": "sub_location",
    "subdistrict": "sub_location",
    "dependents": "dependents",
    "children": "dependents",
}

_TEXT_FIELDS = ("primary_name", "secondary_name", "identifier", "phone", "location", "sub_location")


def _coerce_text(value: Any) -> str:
    """Coerce a raw cell value to text, treating unusable values as empty."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, int | float):
        return str(value)
    return ""


def _coerce_dependents(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, list | tuple):
        items = (_coerce_text(item).strip() for item in value)
        return tuple(item for item in items if item)
    return ()


@dataclass(frozen=True)
class Record:
    """One beneficiary entry as supplied by the caller.

    Raw values are kept verbatim; the engine never mutates a record.

    Attributes
    ----------
    rid : str
        Stable internal identifier, unique within a run.
    primary_name : str
        Principal person name.
    secondary_name : str
        Linked person name (e.g. spouse).
    identifier : str
        External identifier string.
    phone : str
        Phone number as entered.
    location : str
        Primary location (e.g. village).
    sub_location : str
        Sub-location (e.g. subdistrict).
    dependents : tuple[str, ...]
        Dependent names in order. Elements may still contain separators;
        the normalizer splits them.
    extra : Mapping[str, str]
        Bounded side-map of caller attributes the engine carries but ignores.
    """

    rid: str
    primary_name: str = ""
    secondary_name: str = ""
    identifier: str = ""
    phone: str = ""
    location: str = ""
    sub_location: str = ""
    dependents: tuple[str, ...] = ()
    extra: Mapping[str, str] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Mapping[str, Any], index: int | None = None) -> "Record":
        """Build a record from a loosely-typed mapping.

        Known fields (and their registry aliases) populate the typed slots;
        anything else goes into ``extra``, truncated to
        ``MAX_EXTRA_ATTRIBUTES`` keys in sorted order. Missing or
        non-text values become empty strings.

        Parameters
        ----------
        data : Mapping[str, Any]
            Raw row.
        index : int | None, optional
            Row position, used to derive ``row_<index>`` when no rid is given.

        Returns
        -------
        Record
            Typed record.
        """
        values: dict[str, Any] = {}
        extra: dict[str, str] = {}

        for key in sorted(data, key=str):
            if key == "extra" and isinstance(data[key], Mapping):
                # Output of to_dict
                extra.update((str(k), _coerce_text(v)) for k, v in data[key].items())
                continue
            target = FIELD_ALIASES.get(str(key))
            if target is None:
                extra[str(key)] = _coerce_text(data[key])
            elif target not in values or not values[target]:
                values[target] = data[key]

        rid = _coerce_text(values.get("rid")).strip()
        if not rid:
            rid = f"row_{index}" if index is not None else ""

        kept_extra = dict(list(extra.items())[:MAX_EXTRA_ATTRIBUTES])

        return Record(
            rid=rid,
            dependents=_coerce_dependents(values.get("dependents")),
            extra=kept_extra,
            **{name: _coerce_text(values.get(name)) for name in _TEXT_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rid": self.rid,
            "primary_name": self.primary_name,
            "secondary_name": self.secondary_name,
            "identifier": self.identifier,
            "phone": self.phone,
            "location": self.location,
            "sub_location": self.sub_location,
            "dependents": list(self.dependents),
            "extra": dict(self.extra),
        }


@dataclass(frozen=True, slots=True)
class NormalizedField:
    """Canonical form of one free-text value.

    Attributes
    ----------
    canonical : str
        Normalized string; compound names glued with ``_``.
    tokens : tuple[str, ...]
        Whitespace tokens of ``canonical``.
    """

    canonical: str = ""
    tokens: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.tokens


@dataclass(frozen=True)
class NormalizedRecord:
    """A record with all of its normalized derivatives.

    Built by ``bnfdedupe.normalize.normalize_record``; a pure function of
    the raw fields.

    Attributes
    ----------
    record : Record
        Source record.
    primary : NormalizedField
        Normalized primary name.
    secondary : NormalizedField
        Normalized secondary name.
    identifier : str
        Trimmed identifier.
    phone_digits : str
        Digits of the phone number.
    location : NormalizedField
        Normalized location.
    sub_location : NormalizedField
        Normalized sub-location.
    dependents : tuple[NormalizedField, ...]
        Normalized dependents, one per split name.
    """

    record: Record
    primary: NormalizedField
    secondary: NormalizedField
    identifier: str
    phone_digits: str
    location: NormalizedField
    sub_location: NormalizedField
    dependents: tuple[NormalizedField, ...]

    @property
    def rid(self) -> str:
        return self.record.rid

    @property
    def dependent_tokens(self) -> frozenset[str]:
        """Tokens pooled across every dependent name."""
        return frozenset(token for dep in self.dependents for token in dep.tokens)


def load_records(rows: Iterable[Record | Mapping[str, Any]]) -> list[Record]:
    """Convert raw rows to records, generating ``row_<i>`` rids where missing.

    Parameters
    ----------
    rows : Iterable[Record | Mapping[str, Any]]
        Records or raw rows in input order. Anything else is skipped.

    Returns
    -------
    list[Record]
        Records in the same order.
    """
    records: list[Record] = []
    for i, row in enumerate(rows):
        if isinstance(row, Record):
            records.append(row if row.rid else replace(row, rid=f"row_{i}"))
        elif isinstance(row, Mapping):
            records.append(Record.from_dict(row, index=i))
    return records
