# hd_core/visits/workflow.py
"""
Pure visit workflow rules. Nothing here touches the database.

Status precedence, for flags (lab, pharmacy, doctor):
- all done            -> completed
- exactly one pending -> pending_<that department>
- two or three        -> pending_all

The granular single-department labels only appear once the last blocking
department is unambiguous.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from hd_core.visits.models import Department, HistoryEvent, VisitStatus

# Department -> Visit boolean field
FLAG_FIELDS = {
    Department.LAB: "lab_done",
    Department.PHARMACY: "pharmacy_done",
    Department.DOCTOR: "doctor_done",
}

COMPLETION_EVENTS = {
    Department.LAB: HistoryEvent.LAB_COMPLETED,
    Department.PHARMACY: HistoryEvent.PHARMACY_COMPLETED,
    Department.DOCTOR: HistoryEvent.DOCTOR_COMPLETED,
}

_PENDING_ONE = {
    Department.LAB: VisitStatus.PENDING_LAB,
    Department.PHARMACY: VisitStatus.PENDING_PHARMACY,
    Department.DOCTOR: VisitStatus.PENDING_DOCTOR,
}


def outstanding_departments(*, lab_done: bool, pharmacy_done: bool, doctor_done: bool) -> list[str]:
    flags = {
        Department.LAB: lab_done,
        Department.PHARMACY: pharmacy_done,
        Department.DOCTOR: doctor_done,
    }
    return [str(d) for d, done in flags.items() if not done]


def derive_status(*, lab_done: bool, pharmacy_done: bool, doctor_done: bool) -> str:
    outstanding = outstanding_departments(lab_done=lab_done, pharmacy_done=pharmacy_done, doctor_done=doctor_done)
    if not outstanding:
        return VisitStatus.COMPLETED
    if len(outstanding) == 1:
        return _PENDING_ONE[Department(outstanding[0])]
    return VisitStatus.PENDING_ALL


def flag_field(department: str) -> str:
    try:
        return FLAG_FIELDS[Department(department)]
    except ValueError:
        raise ValueError(f"Unknown department: {department!r}")


def _normalize_ids(ids: Iterable) -> tuple[str, ...]:
    # Order-preserving de-duplication
    seen: dict[str, None] = {}
    for raw in ids or ():
        seen.setdefault(str(raw), None)
    return tuple(seen)


@dataclass(frozen=True)
class RestrictionSet:
    """
    Allow-list of catalog items for a doctor-directed visit.

    An empty side leaves that department unrestricted.
    """
    lab_test_ids: tuple[str, ...] = ()
    drug_ids: tuple[str, ...] = ()

    @classmethod
    def build(cls, *, lab_test_ids: Iterable = (), drug_ids: Iterable = ()) -> "RestrictionSet":
        return cls(lab_test_ids=_normalize_ids(lab_test_ids), drug_ids=_normalize_ids(drug_ids))

    @classmethod
    def from_visit(cls, visit) -> "RestrictionSet":
        return cls.build(lab_test_ids=visit.restricted_lab_test_ids, drug_ids=visit.restricted_drug_ids)

    @property
    def is_empty(self) -> bool:
        return not self.lab_test_ids and not self.drug_ids

    def ids_for(self, department: str) -> tuple[str, ...]:
        if department == Department.LAB:
            return self.lab_test_ids
        if department == Department.PHARMACY:
            return self.drug_ids
        return ()

    def is_restricted(self, department: str) -> bool:
        return bool(self.ids_for(department))

    def allows(self, department: str, catalog_item_id) -> bool:
        allowed = self.ids_for(department)
        if not allowed:
            return True
        if catalog_item_id is None:
            return False
        return str(catalog_item_id) in allowed
