"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from bnfdedupe.models import NormalizedRecord, Record  # noqa: E402
from bnfdedupe.normalize import normalize_record  # noqa: E402


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for test records with minimal boilerplate.

    Every field defaults to empty, so a test only states what it relies on.
    """

    def _factory(
        rid: str = "r001",
        *,
        primary_name: str = "",
        secondary_name: str = "",
        identifier: str = "",
        phone: str = "",
        location: str = "",
        sub_location: str = "",
        dependents: Sequence[str] = (),
    ) -> Record:
        return Record(
            rid=rid,
            primary_name=primary_name,
            secondary_name=secondary_name,
            identifier=identifier,
            phone=phone,
            location=location,
            sub_location=sub_location,
            dependents=tuple(dependents),
        )

    return _factory


@pytest.fixture
def make_normalized(make_record: Callable[..., Record]) -> Callable[..., NormalizedRecord]:
    """Factory returning normalized records; accepts the same arguments as ``make_record``."""

    def _factory(rid: str = "r001", **kwargs: object) -> NormalizedRecord:
        return normalize_record(make_record(rid, **kwargs))

    return _factory


@pytest.fixture
def household() -> dict[str, str | list[str]]:
    """Fully populated beneficiary row used across modules."""
    return {
        "primary_name": "فاطمة محمد احمد علي",
        "secondary_name": "خالد عبد الله حسن",
        "identifier": "1234567890",
        "phone": "0791234567",
        "location": "الزرقاء",
        "sub_location": "الرصيفة",
        "dependents": ["سارة خالد", "يوسف خالد"],
    }
