# movieboard/api/v1/public/user.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from ....database import get_db
from ....models.user import User, UserRole
from ....schemas.user import AppUserCreate, UserLookup, UserOut
from ....utils import firebase_auth
from ....utils.storage import StorageNotConfiguredError, UploadError, storage_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["app-user"])


@router.post("/create-user", response_model=UserOut)
def create_app_user(data: AppUserCreate, db: Session = Depends(get_db)):
    """Register (or refresh) an app user right after Firebase sign-up"""
    if not data.uid:
        raise HTTPException(status_code=400, detail="uid is required")

    try:
        user = db.query(User).filter(User.id == data.uid).first()
        if user:
            if data.name:
                user.name = data.name
            if data.email_or_phone:
                user.email_or_phone = data.email_or_phone
        else:
            user = User(
                id=data.uid,
                name=data.name or "App User",
                email_or_phone=data.email_or_phone,
                role=UserRole.CUSTOMER,
            )
            db.add(user)
        db.commit()
        db.refresh(user)
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating app user {data.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.post("/get-user")
def get_app_user(data: UserLookup, db: Session = Depends(get_db)):
    if not data.uid:
        raise HTTPException(status_code=400, detail="uid is required")
    user = db.query(User).filter(User.id == data.uid).first()
    return {"user": UserOut.model_validate(user) if user else None}


@router.post("/profile", response_model=UserOut)
async def update_profile(
    id_token: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """Update display name and/or avatar (uploaded to Cloudinary)"""
    result = firebase_auth.verify_user_token(id_token)
    if not result.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error or "Invalid token")

    avatar_url = None
    if image is not None and image.filename:
        content = await image.read()
        try:
            uploaded = await storage_service.upload_to_cloudinary(content, image.filename, folder="avatars")
        except (StorageNotConfiguredError, UploadError) as e:
            logger.error(f"❌ Avatar upload failed for {result.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload image")
        avatar_url = uploaded["url"]

    try:
        user = db.query(User).filter(User.id == result.user_id).first()
        if user is None:
            claims = result.claims or {}
            user = User(
                id=result.user_id,
                name=name or claims.get("name") or "App User",
                email_or_phone=claims.get("email") or claims.get("phone_number"),
                role=UserRole.CUSTOMER,
            )
            db.add(user)
        elif name:
            user.name = name
        if avatar_url:
            user.avatar_url = avatar_url
        db.commit()
        db.refresh(user)
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating profile {result.user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update profile")
