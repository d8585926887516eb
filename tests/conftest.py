from __future__ import annotations

from typing import Callable, Tuple

import pytest

from core.data import CAPSULE_ROWS, CapsuleRecord, load_capsules, parse_capsule_row


@pytest.fixture
def make_record() -> Callable[..., CapsuleRecord]:
    """Build a record from loose keyword fields, dates given as ISO strings."""

    def _make(record_id: str = "test-major", **fields) -> CapsuleRecord:
        row = {"id": record_id, "name": f"Test Major {record_id}", "location": "Nowhere", "year": 2024}
        row.update(fields)
        return parse_capsule_row(row)

    return _make


@pytest.fixture
def capsules() -> Tuple[CapsuleRecord, ...]:
    return load_capsules(CAPSULE_ROWS)


@pytest.fixture
def by_id(capsules) -> dict:
    return {r.id: r for r in capsules}
