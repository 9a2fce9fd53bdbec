"""Normalizer entry points.

Turns raw record values into ``NormalizedField`` derivatives. None of these
functions raise on bad input: empty, ``None`` or non-string values yield an
empty field.
"""

from collections.abc import Iterable

from bnfdedupe.models.records import NormalizedField, NormalizedRecord, Record
from bnfdedupe.normalize._helpers import (
    DEPENDENT_SEPARATORS_RE,
    base_normalize,
    digits_only,
)
from bnfdedupe.normalize.compounds import glue_compounds

__all__ = [
    "normalize",
    "normalize_dependents",
    "normalize_name",
    "normalize_record",
    "split_dependents",
]

_EMPTY = NormalizedField()


def normalize(raw: object, *, compounds: bool = True) -> NormalizedField:
    """Normalize one free-text value.

    Parameters
    ----------
    raw : object
        Raw value.
    compounds : bool, optional
        Glue compound names into single tokens, by default True. Location
        fields turn this off.

    Returns
    -------
    NormalizedField
        Canonical string and its tokens.
    """
    canonical = base_normalize(raw)
    if compounds:
        canonical = glue_compounds(canonical)
    if not canonical:
        return _EMPTY
    return NormalizedField(canonical=canonical, tokens=tuple(canonical.split(" ")))


def normalize_name(raw: object) -> str:
    """Return the canonical form of a person name, compounds glued."""
    return normalize(raw).canonical


def split_dependents(raw: object) -> list[str]:
    """Split a dependents value into individual names.

    Strings are split on ``;``, ``,``, ``|`` and the Arabic comma. Lists
    and tuples are split element-wise, so an element that still holds
    several names is expanded too.

    Parameters
    ----------
    raw : object
        A string, a list/tuple of strings, or anything else.

    Returns
    -------
    list[str]
        Trimmed, non-empty names in input order.
    """
    if isinstance(raw, str):
        items: Iterable[object] = (raw,)
    elif isinstance(raw, list | tuple):
        items = raw
    else:
        return []

    names: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        for part in DEPENDENT_SEPARATORS_RE.split(item):
            part = part.strip()
            if part:
                names.append(part)
    return names


def normalize_dependents(raw: object) -> tuple[NormalizedField, ...]:
    """Normalize a dependents value element-wise, dropping names that normalize to nothing."""
    fields = (normalize(name) for name in split_dependents(raw))
    return tuple(f for f in fields if not f.is_empty)


def normalize_record(record: Record) -> NormalizedRecord:
    """Compute every normalized derivative of a record.

    Parameters
    ----------
    record : Record
        Source record.

    Returns
    -------
    NormalizedRecord
        Record plus derivatives.
    """
    return NormalizedRecord(
        record=record,
        primary=normalize(record.primary_name),
        secondary=normalize(record.secondary_name),
        identifier=record.identifier.strip() if isinstance(record.identifier, str) else "",
        phone_digits=digits_only(record.phone),
        location=normalize(record.location, compounds=False),
        sub_location=normalize(record.sub_location, compounds=False),
        dependents=normalize_dependents(record.dependents),
    )
