# hd_core/visits/exceptions.py
"""
Visit workflow outcomes.

Precondition violations are expected business results (HTTP 409 with a
structured `details` payload). VisitIntegrityError is not: it means a
collaborator wrote against a visit that does not exist.
"""
from __future__ import annotations

from hd_core.common.api.exceptions import BusinessRuleError


class OpenVisitExists(BusinessRuleError):
    default_detail = "Patient already has an open visit."
    default_code = "open_visit_exists"

    @classmethod
    def for_visit(cls, visit) -> "OpenVisitExists":
        return cls(
            visit_id=str(visit.id),
            visit_number=visit.visit_number,
            status=visit.status,
            lab_done=visit.lab_done,
            pharmacy_done=visit.pharmacy_done,
            doctor_done=visit.doctor_done,
            created_at=visit.created_at.isoformat() if visit.created_at else None,
        )


class EmptyDepartment(BusinessRuleError):
    default_detail = "Department has no work items to complete."
    default_code = "empty_department"


class AlreadyCompleted(BusinessRuleError):
    default_detail = "Department has already completed this visit."
    default_code = "already_completed"


class AlreadySelected(BusinessRuleError):
    default_detail = "Items have already been selected for this visit."
    default_code = "already_selected"


class RestrictedItem(BusinessRuleError):
    default_detail = "Item is not allowed for this visit."
    default_code = "restricted_item"


class VisitTerminal(BusinessRuleError):
    default_detail = "Visit is closed."
    default_code = "visit_terminal"


class NotDoctorDirected(BusinessRuleError):
    default_detail = "Visit is not doctor-directed."
    default_code = "not_doctor_directed"


class DepartmentAlreadyComplete(BusinessRuleError):
    default_detail = "Department has already completed this visit; its items are locked."
    default_code = "department_already_complete"


class AlreadyTerminal(BusinessRuleError):
    default_detail = "Visit is already completed or closed."
    default_code = "already_terminal"


class VisitIntegrityError(Exception):
    """
    Write against a visit id that does not exist. Reported as a server error.
    """

    def __init__(self, visit_id):
        self.visit_id = visit_id
        super().__init__(f"Visit {visit_id} does not exist")


class StaleVisitWrite(Exception):
    """
    Compare-and-set on the visit row matched nothing. Retried once by the engine.
    """
