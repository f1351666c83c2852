# hd_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Group/role names (Django auth Group names)
ROLE_ADMIN = "ADMIN"
ROLE_INQUIRY = "INQUIRY"  # front desk
ROLE_LAB = "LAB"
ROLE_PHARMACIST = "PHARMACIST"
ROLE_DOCTOR = "DOCTOR"
ROLE_READONLY = "READONLY"

ALL_ROLES = {ROLE_ADMIN, ROLE_INQUIRY, ROLE_LAB, ROLE_PHARMACIST, ROLE_DOCTOR, ROLE_READONLY}
STAFF_ROLES = {ROLE_ADMIN, ROLE_INQUIRY, ROLE_LAB, ROLE_PHARMACIST, ROLE_DOCTOR}

# Which role owns which department's work
DEPARTMENT_ROLES = {
    "lab": ROLE_LAB,
    "pharmacy": ROLE_PHARMACIST,
    "doctor": ROLE_DOCTOR,
}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from Django groups.

    - Superuser is treated as ADMIN.
    - Authenticated users without any group are READONLY.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if not roles:
        roles.add(ROLE_READONLY)

    return roles


def can_act_for_department(user, department: str) -> bool:
    roles = user_roles(user)
    if ROLE_ADMIN in roles:
        return True
    role = DEPARTMENT_ROLES.get(str(department))
    return role is not None and role in roles


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    - ADMIN bypass.
    - Uses allowed_roles_per_action for strict RBAC.
    - Unknown SAFE actions fall back to list/retrieve.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)

        if ROLE_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            allowed = self.allowed_roles_per_action.get("retrieve" if is_detail else "list")

        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny by default
        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class PatientPermission(BaseRolePermission):
    """Patient registration is a front-desk job."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "visits": ALL_ROLES,
        "create": {ROLE_ADMIN, ROLE_INQUIRY},
        "update": {ROLE_ADMIN, ROLE_INQUIRY},
        "partial_update": {ROLE_ADMIN, ROLE_INQUIRY},
        "destroy": {ROLE_ADMIN},
    }


class VisitPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "history": ALL_ROLES,
        "create": {ROLE_ADMIN, ROLE_INQUIRY},
        # department ownership is checked again in the view
        "complete": {ROLE_ADMIN, ROLE_LAB, ROLE_PHARMACIST, ROLE_DOCTOR},
        "select_items": {ROLE_ADMIN, ROLE_DOCTOR},
        "force_close": {ROLE_ADMIN, ROLE_INQUIRY},
        "remind": {ROLE_ADMIN, ROLE_INQUIRY},
    }


class LabPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_LAB, ROLE_READONLY},
        "retrieve": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_LAB, ROLE_READONLY},
        "create": {ROLE_ADMIN, ROLE_LAB},
        "from_panel": {ROLE_ADMIN, ROLE_LAB},
        "partial_update": {ROLE_ADMIN, ROLE_LAB},
        "destroy": {ROLE_ADMIN, ROLE_LAB},
    }


class PharmacyPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_PHARMACIST, ROLE_READONLY},
        "retrieve": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_PHARMACIST, ROLE_READONLY},
        "create": {ROLE_ADMIN, ROLE_PHARMACIST},
        "from_set": {ROLE_ADMIN, ROLE_PHARMACIST},
        "partial_update": {ROLE_ADMIN, ROLE_PHARMACIST},
        "destroy": {ROLE_ADMIN, ROLE_PHARMACIST},
    }


class DoctorPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_READONLY},
        "retrieve": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_INQUIRY, ROLE_READONLY},
        "create": {ROLE_ADMIN, ROLE_DOCTOR},
        "partial_update": {ROLE_ADMIN, ROLE_DOCTOR},
        "destroy": {ROLE_ADMIN, ROLE_DOCTOR},
    }


class CatalogPermission(BaseRolePermission):
    """Catalog is read-only over the API; maintenance goes through Django admin."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
    }


class NotificationPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": STAFF_ROLES,
        "retrieve": STAFF_ROLES,
        "read": STAFF_ROLES,
        "unread_count": STAFF_ROLES,
        "mark_all_read": STAFF_ROLES,
    }


class AuditPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN},
        "retrieve": {ROLE_ADMIN},
    }
