"""
Dependency injection setup for the Breakdown Tracker API.
"""

import os
from functools import cache

from fastapi import Header, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from breakdowntracker.domain.models.session import SessionContext, UserRole
from breakdowntracker.tracker import BreakdownTracker


@cache
def get_tracker() -> BreakdownTracker:
    """Get a singleton instance of the BreakdownTracker.

    Settings come from BREAKDOWNTRACKER_CONFIG_FILE when it is set,
    otherwise from BREAKDOWNTRACKER_* environment variables.
    """
    return BreakdownTracker(config_file=os.getenv("BREAKDOWNTRACKER_CONFIG_FILE") or None)


async def close_tracker() -> None:
    """Stop background refreshers of the singleton, if it was created."""
    if get_tracker.cache_info().currsize:
        await get_tracker().close()


def get_session(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_operator_name: str | None = Header(default=None),
) -> SessionContext:
    """Build the caller's SessionContext from gateway headers.

    The upstream auth gateway authenticates the user and forwards its id,
    role and display name; requests without them are rejected.

    Raises:
        HTTPException: 401 if the identity headers are missing or invalid.
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id or X-User-Role header",
        )
    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        ) from None
    try:
        return SessionContext(
            user_id=x_user_id,
            operator_name=x_operator_name or "",
            role=role,
        )
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session headers",
        ) from e
