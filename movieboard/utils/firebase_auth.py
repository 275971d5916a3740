"""
Firebase Admin helpers

Session cookies for the dashboard, ID-token verification for the
mobile/web clients and custom tokens for session refresh.
"""
import base64
import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials

from ..config import settings

logger = logging.getLogger(__name__)


def _load_credentials():
    if settings.FIREBASE_SERVICE_ACCOUNT_BASE64:
        raw = base64.b64decode(settings.FIREBASE_SERVICE_ACCOUNT_BASE64).decode("utf-8")
        return credentials.Certificate(json.loads(raw))
    return credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)


def init_firebase() -> bool:
    """Initialize the default Firebase app once. Returns False when unconfigured."""
    if firebase_admin._apps:
        return True

    if not settings.is_firebase_enabled:
        logger.warning("⚠️ Firebase Admin is not configured; auth endpoints will fail")
        return False

    try:
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        firebase_admin.initialize_app(_load_credentials(), options)
        logger.info("✅ Firebase Admin initialized")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to initialize Firebase: {e}")
        raise


def create_session_cookie(id_token: str, expires_in: timedelta) -> str:
    init_firebase()
    return auth.create_session_cookie(id_token, expires_in=expires_in)


def verify_session_cookie(session_cookie: str, check_revoked: bool = True) -> dict:
    init_firebase()
    return auth.verify_session_cookie(session_cookie, check_revoked=check_revoked)


def verify_id_token(id_token: str) -> dict:
    init_firebase()
    return auth.verify_id_token(id_token)


def create_custom_token(uid: str) -> str:
    init_firebase()
    token = auth.create_custom_token(uid)
    return token.decode("utf-8") if isinstance(token, bytes) else token


@dataclass
class TokenVerification:
    authenticated: bool
    user_id: Optional[str] = None
    claims: Optional[dict] = None
    error: Optional[str] = None


def verify_user_token(id_token: Optional[str]) -> TokenVerification:
    """
    Verify a Firebase ID token without raising.

    Auth failures come back as ``authenticated=False`` with a readable error;
    anything else (misconfiguration, network) propagates.
    """
    if not id_token:
        return TokenVerification(False, error="ID token is required")

    try:
        decoded = verify_id_token(id_token)
    except auth.ExpiredIdTokenError:
        return TokenVerification(False, error="Token has expired")
    except auth.RevokedIdTokenError:
        return TokenVerification(False, error="Token has been revoked")
    except auth.UserDisabledError:
        return TokenVerification(False, error="User account is disabled")
    except (auth.InvalidIdTokenError, ValueError) as e:
        logger.warning(f"Invalid ID token: {e}")
        return TokenVerification(False, error="Invalid token")

    return TokenVerification(True, user_id=decoded.get("uid"), claims=decoded)
