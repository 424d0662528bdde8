"""Capability checks against an explicit SessionContext."""

from breakdowntracker.domain.models.session import Capability, SessionContext
from breakdowntracker.domain.models.tracking_error import PermissionDeniedError


def require_capability(session: SessionContext, capability: Capability) -> None:
    """Fail fast when the session lacks ``capability``.

    Raises:
        PermissionDeniedError: If the session does not hold the capability.
    """
    if not session.has_permission(capability):
        raise PermissionDeniedError(
            f"Role '{session.role.value}' lacks permission '{capability.value}'",
            capability=capability.value,
        )
