"""
Custom permission classes for role and hospital based access control.
"""
from rest_framework.permissions import BasePermission

from .models import Hospital

ADMIN_ROLES = {"admin"}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "patient"


class IsHospitalOrAdmin(BasePermission):
    """Hospital staff for their own hospital, or an administrator.

    Expects the view to be routed with a ``hospital_id`` kwarg.  An unknown
    hospital id is let through so the view can answer 404.
    """
    message = "Access restricted to the hospital's own staff"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        role = _role(request)
        if role in ADMIN_ROLES:
            return True
        if role != "hospital":
            return False
        hospital_id = view.kwargs.get("hospital_id") if hasattr(view, "kwargs") else None
        if hospital_id is None:
            return False
        hospital = Hospital.objects.filter(pk=hospital_id).only("owner_id").first()
        if hospital is None:
            return True
        return hospital.owner_id == request.user.id
