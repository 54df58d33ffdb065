import enum
import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from engagement_engine.auth.jwt import verify_token


class UserRole(str, enum.Enum):
    RECRUITER = "recruiter"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class CurrentUser:
    id: uuid.UUID
    role: UserRole


bearer_scheme = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Identify the caller from the JWT access token.
    Accounts live in the surrounding marketplace; the token carries the
    user id and role. Raises 401 if the token is invalid or expired.
    """
    token = credentials.credentials
    try:
        payload = verify_token(token, expected_type="access")
        user_id_str: str = payload.get("user_id")
        if not user_id_str:
            raise HTTPException(status_code=401, detail="Invalid token payload")

        # Convert string back to UUID
        user_id = uuid.UUID(user_id_str)
        role = UserRole(payload.get("role"))

    except (JWTError, ValueError):  # ValueError for invalid UUID string or role
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return CurrentUser(id=user_id, role=role)


async def is_recruiter(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Allow only users with RECRUITER role.
    """
    if current_user.role != UserRole.RECRUITER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only recruiters can access this resource"
        )
    return current_user


async def is_candidate(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Allow only users with CANDIDATE role.
    """
    if current_user.role != UserRole.CANDIDATE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only candidates can access this resource"
        )
    return current_user
