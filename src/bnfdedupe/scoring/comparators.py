"""Field comparators for pairwise scoring.

This module provides pure, deterministic functions comparing normalized
beneficiary fields. Every comparator returns a similarity in [0, 1] and
treats a missing value on either side as no evidence (0.0).
"""

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bnfdedupe.models import NormalizedRecord

__all__ = [
    "FIELD_CONFIGS",
    "FieldConfig",
    "compare_dependents",
    "compare_identifier",
    "compare_location",
    "compare_phone",
    "jaro_winkler",
    "name_order_free_score",
    "token_jaccard",
]

JW_PREFIX_SCALE = 0.1
JW_MAX_PREFIX = 4

IDENTIFIER_SUFFIX_LEN = 5
IDENTIFIER_SUFFIX_SCORE = 0.75

# (suffix length, score), strongest first
PHONE_SUFFIX_TIERS: tuple[tuple[int, float], ...] = ((6, 0.85), (4, 0.6))


# ---------------------------------------------------------------------------
# String and token similarity
# ---------------------------------------------------------------------------


def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity.

    Parameters
    ----------
    a : str
        First string.
    b : str
        Second string.

    Returns
    -------
    float
        Similarity in [0, 1]. 0.0 if either string is empty, 1.0 if equal.

    Notes
    -----
    Characters match when equal and within ``max(len) // 2 - 1`` positions.
    Half the out-of-order matches count as transpositions. Up to four
    shared leading characters add ``0.1 * (1 - jaro)`` each.

    Arguments are evaluated in sorted order so the result is symmetric.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if b < a:
        a, b = b, a

    len_a, len_b = len(a), len(b)
    window = max(max(len_a, len_b) // 2 - 1, 0)
    a_matched = [False] * len_a
    b_matched = [False] * len_b

    matches = 0
    for i, ch in enumerate(a):
        start = max(0, i - window)
        end = min(i + window + 1, len_b)
        for j in range(start, end):
            if b_matched[j] or b[j] != ch:
                continue
            a_matched[i] = True
            b_matched[j] = True
            matches += 1
            break

    if not matches:
        return 0.0

    out_of_order = 0
    k = 0
    for i, ch in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[k]:
            k += 1
        if ch != b[k]:
            out_of_order += 1
        k += 1
    transpositions = out_of_order / 2

    jaro = (matches / len_a + matches / len_b + (matches - transpositions) / matches) / 3

    prefix = 0
    for ch_a, ch_b in zip(a[:JW_MAX_PREFIX], b[:JW_MAX_PREFIX], strict=False):
        if ch_a != ch_b:
            break
        prefix += 1

    return jaro + prefix * JW_PREFIX_SCALE * (1 - jaro)


def token_jaccard(tokens_a: Collection[str], tokens_b: Collection[str]) -> float:
    """Jaccard similarity of two token collections.

    Jaccard = |A ∩ B| / |A ∪ B|

    Returns 0.0 when either side has no tokens; two missing names are not
    evidence of the same person.
    """
    set_a = set(tokens_a)
    set_b = set(tokens_b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def name_order_free_score(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> float:
    """Name similarity insensitive to token order.

    Parameters
    ----------
    tokens_a : Sequence[str]
        Tokens of the first normalized name.
    tokens_b : Sequence[str]
        Tokens of the second normalized name.

    Returns
    -------
    float
        ``0.7 * token_jaccard + 0.3 * jaro_winkler`` over the sorted,
        space-joined tokens; 0.0 if either name is empty.
    """
    if not tokens_a or not tokens_b:
        return 0.0
    jaccard = token_jaccard(tokens_a, tokens_b)
    sorted_a = " ".join(sorted(tokens_a))
    sorted_b = " ".join(sorted(tokens_b))
    return 0.7 * jaccard + 0.3 * jaro_winkler(sorted_a, sorted_b)


# ---------------------------------------------------------------------------
# Field comparators
# ---------------------------------------------------------------------------


def compare_identifier(id_a: str, id_b: str) -> float:
    """Compare external identifiers.

    Returns 1.0 on equality and 0.75 when the last five characters agree
    (a typo earlier in the number); otherwise 0.0.
    """
    if not id_a or not id_b:
        return 0.0
    if id_a == id_b:
        return 1.0
    if (
        len(id_a) >= IDENTIFIER_SUFFIX_LEN
        and len(id_b) >= IDENTIFIER_SUFFIX_LEN
        and id_a[-IDENTIFIER_SUFFIX_LEN:] == id_b[-IDENTIFIER_SUFFIX_LEN:]
    ):
        return IDENTIFIER_SUFFIX_SCORE
    return 0.0


def compare_phone(digits_a: str, digits_b: str) -> float:
    """Compare digit-only phone numbers with tiered suffix tolerance.

    Parameters
    ----------
    digits_a : str
        Digits of the first phone.
    digits_b : str
        Digits of the second phone.

    Returns
    -------
    float
        1.0 exact, 0.85 on equal last six digits, 0.6 on equal last four,
        else 0.0.
    """
    if not digits_a or not digits_b:
        return 0.0
    if digits_a == digits_b:
        return 1.0
    for length, score in PHONE_SUFFIX_TIERS:
        if len(digits_a) >= length and len(digits_b) >= length and digits_a[-length:] == digits_b[-length:]:
            return score
    return 0.0


def compare_location(
    location_a: str,
    location_b: str,
    sub_location_a: str,
    sub_location_b: str,
) -> float:
    """Additive location agreement: 0.5 for the location, 0.5 for the sub-location."""
    score = 0.0
    if location_a and location_a == location_b:
        score += 0.5
    if sub_location_a and sub_location_a == sub_location_b:
        score += 0.5
    return min(score, 1.0)


def compare_dependents(tokens_a: Collection[str], tokens_b: Collection[str]) -> float:
    """Token Jaccard over dependent-name tokens pooled across each list."""
    return token_jaccard(tokens_a, tokens_b)


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------


def _extract_primary(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {"tokens_a": a.primary.tokens, "tokens_b": b.primary.tokens}


def _extract_secondary(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {"tokens_a": a.secondary.tokens, "tokens_b": b.secondary.tokens}


def _extract_dependents(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {"tokens_a": a.dependent_tokens, "tokens_b": b.dependent_tokens}


def _extract_identifier(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {"id_a": a.identifier, "id_b": b.identifier}


def _extract_phone(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {"digits_a": a.phone_digits, "digits_b": b.phone_digits}


def _extract_location(a: "NormalizedRecord", b: "NormalizedRecord") -> dict[str, Any]:
    return {
        "location_a": a.location.canonical,
        "location_b": b.location.canonical,
        "sub_location_a": a.sub_location.canonical,
        "sub_location_b": b.sub_location.canonical,
    }


@dataclass(frozen=True, slots=True)
class FieldConfig:
    """Configuration for a field comparator.

    Attributes
    ----------
    name : str
        Field name, matching a ``FieldWeights`` attribute.
    extractor : Callable[[NormalizedRecord, NormalizedRecord], dict[str, Any]]
        Function to extract comparison inputs from a record pair.
    comparator : Callable[..., float]
        Comparison function.
    """

    name: str
    extractor: Callable[["NormalizedRecord", "NormalizedRecord"], dict[str, Any]]
    comparator: Callable[..., float]

    def compare(self, record_a: "NormalizedRecord", record_b: "NormalizedRecord") -> float:
        """Extract fields and run comparison, clamped to [0, 1]."""
        params = self.extractor(record_a, record_b)
        return min(max(self.comparator(**params), 0.0), 1.0)


# ---------------------------------------------------------------------------
# Field registry - ordered list for deterministic iteration
# ---------------------------------------------------------------------------


FIELD_CONFIGS: tuple[FieldConfig, ...] = (
    FieldConfig(name="primary_name", extractor=_extract_primary, comparator=name_order_free_score),
    FieldConfig(name="secondary_name", extractor=_extract_secondary, comparator=name_order_free_score),
    FieldConfig(name="dependents", extractor=_extract_dependents, comparator=compare_dependents),
    FieldConfig(name="identifier", extractor=_extract_identifier, comparator=compare_identifier),
    FieldConfig(name="phone", extractor=_extract_phone, comparator=compare_phone),
    FieldConfig(name="location", extractor=_extract_location, comparator=compare_location),
)
