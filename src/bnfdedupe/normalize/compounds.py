"""Compound name detection.

Many Arabic given names span two words ("Nour al-Din", "Abu Bakr"). Token
comparisons would otherwise count each half as an independent name part, so
compounds are glued into one token with ``COMPOUND_JOINER``.

"Abd" servant names need no entry here: base normalization already attaches
the prefix to the following word.
"""

import re

from bnfdedupe.normalize._helpers import base_normalize

__all__ = [
    "COMPOUND_JOINER",
    "FIXED_COMPOUND_NAMES",
    "PREFIX_COMPOUND_RULES",
    "glue_compounds",
]

COMPOUND_JOINER = "_"

FIXED_COMPOUND_NAMES: tuple[str, ...] = (
    "أمة الله",
    "أمة الرحمن",
    "أمة الرحيم",
    "أمة الكريم",
    "صنع الله",
    "عطاء الله",
    "نور الله",
    "فتح الله",
    "نصر الله",
    "فضل الله",
    "رحمة الله",
    "حسب الله",
    "جود الله",
    "نور الدين",
    "شمس الدين",
    "سيف الدين",
    "زين الدين",
    "جمال الدين",
    "كمال الدين",
    "صلاح الدين",
    "علاء الدين",
    "تقي الدين",
    "نجم الدين",
    "أبو بكر",
    "أبو طالب",
    "أبو هريرة",
    "أم كلثوم",
    "أم سلمة",
    "أم حبيبة",
    "ابن تيمية",
    "ابن سينا",
    "ابن خلدون",
    "ابن رشد",
    "بنت الشاطئ",
)

# Applied to adjacent token pairs left to right, after the fixed list
PREFIX_COMPOUND_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^امه\s+[ء-ي]{3,}$"),
    re.compile(r"^ابو\s+[ء-ي]{3,}$"),
    re.compile(r"^ام\s+[ء-ي]{3,}$"),
    re.compile(r"^ابن\s+[ء-ي]{3,}$"),
    re.compile(r"^بنت\s+[ء-ي]{3,}$"),
    re.compile(r"^[ء-ي]{3,}\s+الدين$"),
    re.compile(r"^[ء-ي]{3,}\s+الله$"),
)


def _compile_fixed(names: tuple[str, ...]) -> tuple[tuple[re.Pattern[str], str], ...]:
    compiled = []
    for name in names:
        first, _, second = base_normalize(name).partition(" ")
        if not second:
            continue
        pattern = re.compile(rf"(?<!\S){re.escape(first)}\s*{re.escape(second)}(?!\S)")
        compiled.append((pattern, f"{first}{COMPOUND_JOINER}{second}"))
    return tuple(compiled)


_FIXED_PATTERNS = _compile_fixed(FIXED_COMPOUND_NAMES)


def glue_compounds(canonical: str) -> str:
    """Glue compound names in an already base-normalized string.

    Parameters
    ----------
    canonical : str
        Output of ``base_normalize``.

    Returns
    -------
    str
        Same text with each detected compound joined by ``COMPOUND_JOINER``.

    Examples
    --------
    >>> glue_compounds("محمد نور الدين علي")
    'محمد نور_الدين علي'
    """
    if not canonical:
        return ""

    for pattern, replacement in _FIXED_PATTERNS:
        canonical = pattern.sub(replacement, canonical)

    parts = canonical.split(" ")
    glued: list[str] = []
    i = 0
    while i < len(parts):
        if i + 1 < len(parts):
            pair = f"{parts[i]} {parts[i + 1]}"
            if any(rule.match(pair) for rule in PREFIX_COMPOUND_RULES):
                glued.append(f"{parts[i]}{COMPOUND_JOINER}{parts[i + 1]}")
                i += 2
                continue
        glued.append(parts[i])
        i += 1

    return " ".join(glued)
