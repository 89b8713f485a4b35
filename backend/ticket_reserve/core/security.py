"""
Bearer token handling.

Tokens are minted by the identity provider; this service only verifies the
signature and reads the user id from the ``sub`` claim.
"""

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ticket_reserve.core.config import get_settings
from ticket_reserve.core.exceptions import AuthenticationError

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def decode_user_id(token: str) -> str:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError as e:
        raise AuthenticationError("Could not validate credentials") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Could not validate credentials")
    return str(user_id)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Resolve the caller's user id; 401 when no valid token is sent."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return decode_user_id(credentials.credentials)


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Like get_current_user_id, but anonymous callers get None."""
    if credentials is None:
        return None
    return decode_user_id(credentials.credentials)
