# hd_core/notifications/subscribers.py
from __future__ import annotations

from hd_core.common.events import subscribe
from hd_core.common.permissions import (
    DEPARTMENT_ROLES,
    ROLE_DOCTOR,
    ROLE_INQUIRY,
    ROLE_LAB,
    ROLE_PHARMACIST,
)
from hd_core.notifications.models import NotificationKind
from hd_core.notifications.services import NotificationService


def _notify(payload: dict, *, roles, kind: str, title: str, message: str) -> None:
    NotificationService.notify_roles(
        roles=roles,
        kind=kind,
        title=title,
        message=message,
        visit_id=payload.get("visit_id"),
        visit_number=payload.get("visit_number", ""),
        created_by_id=payload.get("actor_user_id"),
    )


@subscribe("visit.created")
def on_visit_created(payload: dict) -> None:
    number = payload.get("visit_number", "")
    if payload.get("variant") == "doctor_directed":
        _notify(
            payload,
            roles=[ROLE_DOCTOR],
            kind=NotificationKind.NEW_VISIT,
            title="New doctor-directed visit",
            message=f"Visit {number} is waiting for the doctor to select lab tests and drugs.",
        )
        return

    _notify(
        payload,
        roles=[ROLE_LAB, ROLE_PHARMACIST, ROLE_DOCTOR],
        kind=NotificationKind.NEW_VISIT,
        title="New visit",
        message=f"Visit {number} is open for all departments.",
    )


@subscribe("visit.items_selected")
def on_items_selected(payload: dict) -> None:
    roles = []
    if payload.get("lab_selected"):
        roles.append(ROLE_LAB)
    if payload.get("pharmacy_selected"):
        roles.append(ROLE_PHARMACIST)

    _notify(
        payload,
        roles=roles,
        kind=NotificationKind.ITEMS_SELECTED,
        title="Doctor selected items",
        message=f"Visit {payload.get('visit_number', '')} has items selected by the doctor.",
    )


@subscribe("visit.department_completed")
def on_department_completed(payload: dict) -> None:
    number = payload.get("visit_number", "")
    outstanding = payload.get("outstanding") or []

    if payload.get("status") == "completed":
        _notify(
            payload,
            roles=[ROLE_INQUIRY],
            kind=NotificationKind.VISIT_COMPLETED,
            title="Visit completed",
            message=f"All departments finished visit {number}.",
        )
        return

    if len(outstanding) == 1:
        dept = outstanding[0]
        _notify(
            payload,
            roles=[DEPARTMENT_ROLES[dept]],
            kind=NotificationKind.LAST_DEPARTMENT,
            title="Last department pending",
            message=f"Visit {number} is only waiting on {dept}.",
        )


@subscribe("visit.force_closed")
def on_force_closed(payload: dict) -> None:
    roles = [DEPARTMENT_ROLES[d] for d in payload.get("outstanding") or [] if d in DEPARTMENT_ROLES]
    reason = payload.get("reason") or ""
    message = f"Visit {payload.get('visit_number', '')} was closed by the front desk."
    if reason:
        message += f" Reason: {reason}"

    _notify(
        payload,
        roles=roles,
        kind=NotificationKind.VISIT_CLOSED,
        title="Visit closed",
        message=message,
    )


@subscribe("visit.reminder")
def on_reminder(payload: dict) -> None:
    number = payload.get("visit_number", "")
    _notify(
        payload,
        roles=[payload["role"]],
        kind=NotificationKind.REMINDER,
        title="Reminder",
        message=payload.get("message") or f"Please finish your work on visit {number}.",
    )
