# movieboard/api/v1/auth.py
"""
Dashboard session management

create-session exchanges a Firebase ID token for an http-only session
cookie; refresh-session trades a valid cookie for a custom token so the
browser can re-sign into the Firebase client SDK.
"""
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Cookie, HTTPException, Response, status
from fastapi.responses import JSONResponse
from firebase_admin import auth as fb_auth

from ...config import settings
from ...schemas.auth import SessionRequest
from ...utils import firebase_auth
from ..deps import SESSION_COOKIE, TIMESTAMP_COOKIE, USER_ID_COOKIE

logger = logging.getLogger(__name__)
router = APIRouter()


def _set_session_cookies(response: Response, session_cookie: str, uid: str, max_age: int) -> None:
    common = {
        "max_age": max_age,
        "secure": settings.SECURE_COOKIES,
        "samesite": "strict",
        "path": "/",
    }
    response.set_cookie(SESSION_COOKIE, session_cookie, httponly=True, **common)
    response.set_cookie(USER_ID_COOKIE, uid, **common)
    response.set_cookie(TIMESTAMP_COOKIE, str(int(time.time() * 1000)), **common)


def _clear_session_cookies(response: Response) -> None:
    for name in (SESSION_COOKIE, USER_ID_COOKIE, TIMESTAMP_COOKIE):
        response.delete_cookie(name, path="/")


@router.post("/create-session")
def create_session(data: SessionRequest, response: Response):
    """Exchange a Firebase ID token for a session cookie"""
    if not data.id_token:
        raise HTTPException(status_code=400, detail="ID token is required")

    expires_in = timedelta(days=settings.SESSION_COOKIE_DAYS)
    try:
        decoded = firebase_auth.verify_id_token(data.id_token)
        session_cookie = firebase_auth.create_session_cookie(data.id_token, expires_in=expires_in)
    except (fb_auth.InvalidIdTokenError, fb_auth.UserDisabledError, ValueError) as e:
        logger.info(f"Session creation rejected: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid ID token")
    except Exception as e:
        logger.error(f"❌ Session creation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create session")

    uid = decoded.get("uid")
    _set_session_cookies(response, session_cookie, uid, int(expires_in.total_seconds()))
    logger.info(f"🔐 Session created for {uid}")
    return {"success": True}


@router.post("/logout")
def logout(response: Response):
    _clear_session_cookies(response)
    return {"success": True}


@router.post("/refresh-session")
def refresh_session(auth_session: Optional[str] = Cookie(None)):
    """Custom token for a still-valid session cookie"""
    if not auth_session:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No session found")

    try:
        decoded = firebase_auth.verify_session_cookie(auth_session, check_revoked=True)
    except (fb_auth.InvalidSessionCookieError, fb_auth.UserDisabledError, ValueError) as e:
        logger.info(f"Session refresh rejected: {e}")
        failed = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Invalid or expired session"},
        )
        _clear_session_cookies(failed)
        return failed

    uid = decoded["uid"]
    try:
        custom_token = firebase_auth.create_custom_token(uid)
    except Exception as e:
        logger.error(f"❌ Custom token creation failed for {uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to refresh session")

    expires_at = None
    if decoded.get("exp"):
        expires_at = datetime.fromtimestamp(decoded["exp"], tz=timezone.utc).isoformat()

    return {
        "success": True,
        "custom_token": custom_token,
        "uid": uid,
        "expires_at": expires_at,
    }
