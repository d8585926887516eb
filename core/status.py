from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.data import CapsuleRecord


class CapsuleStatus(Enum):
    """Lifecycle bucket of a capsule relative to a given day.

    Members are declared in rank order: Planned sorts above Active, Active above Removed.
    """

    PLANNED = "Planned"
    ACTIVE = "Active"
    REMOVED = "Removed"

    @property
    def label(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {CapsuleStatus.PLANNED: 0, CapsuleStatus.ACTIVE: 1, CapsuleStatus.REMOVED: 2}


def classify_status(record: "CapsuleRecord", now: date) -> CapsuleStatus:
    intro = record.introduced_date
    removed = record.removed_date
    if removed is not None and now > removed:
        return CapsuleStatus.REMOVED
    if intro is not None and now >= intro and (removed is None or now <= removed):
        return CapsuleStatus.ACTIVE
    return CapsuleStatus.PLANNED


def status_rank(record: "CapsuleRecord", now: date) -> int:
    return classify_status(record, now).rank
