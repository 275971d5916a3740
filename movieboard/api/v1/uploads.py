# movieboard/api/v1/uploads.py
import logging

from fastapi import APIRouter, HTTPException

from ...schemas.upload import PresignedUrlRequest
from ...utils.storage import StorageNotConfiguredError, UploadError, storage_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/uploads", tags=["upload"])


@router.post("/presigned-url")
def presigned_url(data: PresignedUrlRequest):
    """
    Presigned S3 PUT for direct browser uploads.

    Returns:
    - presigned_url: PUT the file body here with the same Content-Type
    - key: object key
    - final_url: public URL once uploaded
    """
    if not data.filename or not data.content_type:
        raise HTTPException(status_code=400, detail="Filename and content type are required")

    try:
        return storage_service.generate_presigned_upload(data.filename, data.content_type)
    except (StorageNotConfiguredError, UploadError) as e:
        logger.error(f"❌ Presigned URL failed for {data.filename}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")
