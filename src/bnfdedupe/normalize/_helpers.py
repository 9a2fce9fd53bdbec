"""Helper functions and compiled regex patterns for normalization.

Arabic registry data arrives with inconsistent diacritics, hamza seats,
final-letter forms and mixed digit scripts. These helpers reduce a value to
a comparable base form; compound-name gluing lives in ``compounds``.
"""

import re
import unicodedata

# Pre-compiled regex patterns
ABD_PREFIX_RE = re.compile(r"عبد\s+")
YAHYA_RE = re.compile(r"يحيي")
DISALLOWED_CHARS_RE = re.compile(r"[^ء-ي0-9a-zA-Z\s]")
WHITESPACE_RE = re.compile(r"\s+")
DEPENDENT_SEPARATORS_RE = re.compile(r"[;,|،]")
NON_DIGIT_RE = re.compile(r"[^0-9]")

TATWEEL = "ـ"
HAMZA = "ء"

# Seated hamza and madda forms decompose under NFD; these cover the
# letters whose variants have no decomposition.
LETTER_VARIANTS = str.maketrans(
    {
        "أ": "ا",
        "إ": "ا",
        "آ": "ا",
        "ٱ": "ا",
        "ى": "ي",
        "ؤ": "و",
        "ئ": "ي",
        "ة": "ه",
        "گ": "ك",
        "ک": "ك",
        "ی": "ي",
    }
)

EASTERN_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹", "01234567890123456789")


# ---------------------------------------------------------------------------
# Text normalization functions
# ---------------------------------------------------------------------------


def strip_marks(text: str) -> str:
    """Remove combining marks, tatweel and standalone hamza.

    Parameters
    ----------
    text : str
        Input text with potential harakat or Latin accents.

    Returns
    -------
    str
        Text with marks removed. Seated hamza letters lose their hamza
        and fall back to their base letter.
    """
    nfd = unicodedata.normalize("NFD", text)
    return "".join(
        ch for ch in nfd if not unicodedata.combining(ch) and ch != TATWEEL and ch != HAMZA
    )


def base_normalize(value: object) -> str:
    """Reduce a raw value to its canonical comparable string.

    Parameters
    ----------
    value : object
        Raw value. Anything that is not a non-empty string yields "".

    Returns
    -------
    str
        Lower-cased, mark-free, whitespace-collapsed text containing only
        Arabic letters, ASCII letters and digits.
    """
    if not isinstance(value, str) or not value:
        return ""

    text = unicodedata.normalize("NFKC", value)
    text = strip_marks(text)
    text = text.translate(LETTER_VARIANTS).translate(EASTERN_DIGITS)
    text = ABD_PREFIX_RE.sub("عبد", text)
    text = YAHYA_RE.sub("يحي", text)
    text = DISALLOWED_CHARS_RE.sub(" ", text)
    return WHITESPACE_RE.sub(" ", text).strip().lower()


def digits_only(value: object) -> str:
    """Keep only the digits of a value, mapping Eastern Arabic digits to ASCII."""
    if value is None or isinstance(value, bool):
        return ""
    text = str(value).translate(EASTERN_DIGITS)
    return NON_DIGIT_RE.sub("", text)
