from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from engagement_engine.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES


# ---------------------------
# Create access token
# ---------------------------
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a short-lived JWT access token.

    Parameters:
        data (dict): Dictionary containing user info (e.g., user_id, role)
                     user_id should be converted to string if UUID.
        expires_delta (timedelta, optional): Custom expiration time. Defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        str: Encoded JWT access token.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# ---------------------------
# Verify token
# ---------------------------
def verify_token(token: str, expected_type: str = "access") -> dict:
    """
    Verify a JWT token and return its payload.

    Raises:
        JWTError: If token is invalid, expired, or type mismatch.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        if payload.get("type") != expected_type:
            raise JWTError(f"Invalid token type. Expected '{expected_type}'.")
        return payload
    except JWTError as e:
        raise JWTError("Invalid or expired token") from e
