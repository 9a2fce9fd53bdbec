"""Lenient numeric validation for configuration values."""

import math

__all__ = ["is_valid_number"]


def is_valid_number(
    value: object,
    *,
    low: float | None = 0.0,
    high: float | None = None,
    integer: bool = False,
) -> bool:
    """Check that a configuration value is a usable finite number.

    Parameters
    ----------
    value : object
        Candidate value. Booleans and strings are rejected.
    low : float | None, optional
        Inclusive lower bound, by default 0.0. None disables the check.
    high : float | None, optional
        Inclusive upper bound, by default None.
    integer : bool, optional
        Require an ``int``, by default False.

    Returns
    -------
    bool
        True when the value can be used as-is.
    """
    if isinstance(value, bool):
        return False
    if integer and not isinstance(value, int):
        return False
    if not isinstance(value, int | float) or not math.isfinite(value):
        return False
    if low is not None and value < low:
        return False
    return high is None or value <= high
