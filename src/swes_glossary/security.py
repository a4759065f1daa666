import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

admin_password_scheme = APIKeyHeader(name="X-Admin-Password", auto_error=False)


def check_password(candidate: Optional[str], expected: str) -> bool:
    """
    Compare a supplied password with the configured one in constant time.

    Parameters
    ----------
    candidate : str or None
        Value sent by the client; None when absent.
    expected : str
        The configured admin password.

    Returns
    -------
    bool
        True if both are equal.
    """
    if candidate is None:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(
    request: Request,
    x_admin_password: Optional[str] = Security(admin_password_scheme),
) -> None:
    """
    Dependency gating mutating routes behind the shared admin password.

    The admin UI sends the password in the ``X-Admin-Password`` header.

    Raises
    ------
    HTTPException
        401 when the header is missing or does not match.
    """
    if not check_password(x_admin_password, request.app.state.settings.admin_password):
        raise HTTPException(401, "Unauthorized")
