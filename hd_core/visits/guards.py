# hd_core/visits/guards.py
"""
Row-level locking and conflict handling shared by every visit mutation.

All writes to a visit (flags, status, work items) lock that one visit row
first; there are no cross-visit locks.
"""
from __future__ import annotations

import functools
import logging
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import OperationalError, transaction

from hd_core.visits.exceptions import (
    AlreadyCompleted,
    DepartmentAlreadyComplete,
    RestrictedItem,
    StaleVisitWrite,
    VisitIntegrityError,
    VisitTerminal,
)
from hd_core.visits.models import Department, Visit

logger = logging.getLogger(__name__)


def lock_visit(visit_id: UUID) -> Visit:
    """
    Lock the visit row for the rest of the current transaction.
    """
    try:
        return Visit.objects.select_for_update().get(id=visit_id)
    except (Visit.DoesNotExist, ValueError, DjangoValidationError):
        logger.error("Write against unknown visit %s", visit_id)
        raise VisitIntegrityError(visit_id)


def ensure_not_terminal(visit: Visit) -> None:
    if visit.is_terminal:
        raise VisitTerminal(visit_id=str(visit.id), status=visit.status)


def lock_visit_for_work(*, visit_id: UUID, department: str, catalog_item_id=None) -> Visit:
    """
    Lock a visit before a department writes one of its work items.

    Rejects terminal visits, departments that already completed, and (for
    doctor-directed visits) items outside the physician's selection.
    """
    department = Department(department)
    visit = lock_visit(visit_id)
    ensure_not_terminal(visit)

    if visit.is_done(department):
        raise DepartmentAlreadyComplete(visit_id=str(visit.id), department=str(department))

    if department != Department.DOCTOR and visit.is_doctor_directed:
        restrictions = visit.restrictions
        if restrictions.is_empty:
            raise RestrictedItem(
                "Waiting for the doctor to select items for this visit.",
                visit_id=str(visit.id),
                department=str(department),
                reason="selection_pending",
            )
        if not restrictions.allows(department, catalog_item_id):
            raise RestrictedItem(
                visit_id=str(visit.id),
                department=str(department),
                reason="not_selected",
                catalog_item_id=str(catalog_item_id) if catalog_item_id else None,
                allowed_ids=list(restrictions.ids_for(department)),
            )

    return visit


def resolve_conflict(*, visit_id, department: str | None = None) -> Exception:
    """
    Map a repeated write conflict to the business outcome seen on a fresh read.
    """
    visit = Visit.objects.filter(id=visit_id).first()
    if visit is None:
        return VisitIntegrityError(visit_id)
    if visit.is_terminal:
        return VisitTerminal(visit_id=str(visit.id), status=visit.status)
    details = {"visit_id": str(visit.id)}
    if department:
        details["department"] = str(department)
    return AlreadyCompleted(**details)


def retry_once_on_conflict(fn):
    """
    Retry a visit mutation once on a lost compare-and-set or a lock error.

    The wrapped callable must take `visit_id` (and optionally `department`)
    as keyword arguments and open its own transaction.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        visit_id = kwargs.get("visit_id")
        for attempt in (1, 2):
            try:
                return fn(*args, **kwargs)
            except (StaleVisitWrite, OperationalError) as exc:
                # A failed statement poisons an enclosing transaction; let it unwind.
                if isinstance(exc, OperationalError) and transaction.get_connection().in_atomic_block:
                    raise
                if attempt == 1:
                    logger.warning("Write conflict on visit %s in %s (%s); retrying", visit_id, fn.__name__, exc)
                    continue
                logger.warning("Write conflict on visit %s in %s persisted after retry", visit_id, fn.__name__)
                raise resolve_conflict(visit_id=visit_id, department=kwargs.get("department")) from exc

    return wrapper
