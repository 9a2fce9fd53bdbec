"""Text normalization for beneficiary records.

Canonicalizes names, identifiers and locations into comparable tokens and
glues compound names so they are compared atomically.
"""

from bnfdedupe.normalize._helpers import base_normalize, digits_only
from bnfdedupe.normalize.compounds import COMPOUND_JOINER, glue_compounds
from bnfdedupe.normalize.normalizer import (
    normalize,
    normalize_dependents,
    normalize_name,
    normalize_record,
    split_dependents,
)

__all__ = [
    "COMPOUND_JOINER",
    "base_normalize",
    "digits_only",
    "glue_compounds",
    "normalize",
    "normalize_dependents",
    "normalize_name",
    "normalize_record",
    "split_dependents",
]
