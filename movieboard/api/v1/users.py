# movieboard/api/v1/users.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...models.user import User, UserRole
from ...schemas.user import UserOut, UserUpsert
from ...utils import firebase_auth

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserOut)
def upsert_user(data: UserUpsert, db: Session = Depends(get_db)):
    """
    Sync the signed-in Firebase user into the database.

    Existing users keep stored fields the request leaves out.
    New users are CUSTOMERs with fields defaulted from the token claims.
    """
    result = firebase_auth.verify_user_token(data.id_token)
    if not result.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error or "Invalid token")

    claims = result.claims or {}

    try:
        user = db.query(User).filter(User.id == result.user_id).first()
        if user:
            user.name = data.name or user.name
            user.email_or_phone = data.email_or_phone or user.email_or_phone
            if claims.get("picture"):
                user.avatar_url = claims["picture"]
        else:
            user = User(
                id=result.user_id,
                name=data.name or claims.get("name") or "Anonymous User",
                email_or_phone=data.email_or_phone or claims.get("email") or claims.get("phone_number"),
                avatar_url=claims.get("picture"),
                role=UserRole.CUSTOMER,
            )
            db.add(user)
            logger.info(f"👤 New user: {result.user_id}")
        db.commit()
        db.refresh(user)
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving user {result.user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save user")
