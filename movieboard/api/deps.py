# movieboard/api/deps.py
import logging
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth as fb_auth
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..utils import firebase_auth

logger = logging.getLogger(__name__)

SESSION_COOKIE = "auth_session"
USER_ID_COOKIE = "auth_user_id"
TIMESTAMP_COOKIE = "auth_timestamp"

bearer = HTTPBearer(auto_error=False)


def require_session(auth_session: Optional[str] = Cookie(None)) -> str:
    """
    Resolve the dashboard session cookie to a Firebase UID.
    Missing, expired or revoked cookies are a 401.
    """
    if not auth_session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    try:
        decoded = firebase_auth.verify_session_cookie(auth_session, check_revoked=True)
    except (fb_auth.InvalidSessionCookieError, fb_auth.UserDisabledError, ValueError) as e:
        logger.info(f"Rejected session cookie: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )

    uid = decoded.get("uid")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return uid


def require_admin(
    uid: str = Depends(require_session),
    db: Session = Depends(get_db),
) -> User:
    """Session user must exist with the ADMIN role."""
    user = db.query(User).filter(User.id == uid).first()
    if user is None or not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user


def bearer_user_id(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> str:
    """Authorization: Bearer <Firebase ID token> → UID."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = firebase_auth.verify_user_token(credentials.credentials)
    if not result.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result.user_id


def user_id_from_token(id_token: Optional[str]) -> str:
    """Same as bearer_user_id for tokens sent in a JSON body."""
    if not id_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ID token is required",
        )
    result = firebase_auth.verify_user_token(id_token)
    if not result.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "Invalid token",
        )
    return result.user_id
