"""
Storage helpers

- AWS S3: presigned PUT URLs so the dashboard uploads posters/videos directly
- Cloudinary: server-side upload for user avatars
"""

import logging
import uuid
from typing import Optional

import boto3
import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from botocore.config import Config as BotocoreConfig
from botocore.exceptions import ClientError
from fastapi.concurrency import run_in_threadpool

from ..config import settings

logger = logging.getLogger(__name__)


class StorageNotConfiguredError(RuntimeError):
    pass


class UploadError(RuntimeError):
    pass


class StorageService:
    """S3 presigned uploads and Cloudinary avatar uploads"""

    def __init__(self):
        self.s3_client = None
        self._init_s3()
        self._init_cloudinary()

    def _init_cloudinary(self):
        if not settings.is_cloudinary_enabled:
            logger.warning("Cloudinary is not configured")
            return

        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )
        logger.info("✅ Cloudinary configured")

    def _init_s3(self):
        if not settings.is_s3_enabled:
            logger.warning("AWS S3 is not configured")
            return

        try:
            boto_config = BotocoreConfig(
                signature_version='s3v4',
                retries={'max_attempts': 3, 'mode': 'standard'},
                connect_timeout=10,
                read_timeout=60,
            )
            self.s3_client = boto3.client(
                's3',
                region_name=settings.AWS_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=boto_config,
            )
            logger.info("✅ S3 client initialized")
        except Exception as e:
            logger.error(f"❌ Failed to initialize S3: {e}")

    def generate_presigned_upload(self, filename: str, content_type: str) -> dict:
        """
        Presign a PUT for ``{uuid}-{filename}``.

        Returns: presigned_url, key, final_url
        """
        if self.s3_client is None:
            raise StorageNotConfiguredError("S3 storage is not configured")

        key = f"{uuid.uuid4()}-{filename}"
        try:
            presigned_url = self.s3_client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': settings.AWS_S3_BUCKET_NAME,
                    'Key': key,
                    'ContentType': content_type,
                },
                ExpiresIn=settings.PRESIGNED_URL_EXPIRES,
            )
        except ClientError as e:
            logger.error(f"❌ Presigned URL generation failed: {e}")
            raise UploadError("Could not generate upload URL") from e

        return {
            "presigned_url": presigned_url,
            "key": key,
            "final_url": f"{settings.s3_public_base_url}/{key}",
        }

    async def upload_to_cloudinary(
        self,
        content: bytes,
        filename: str,
        folder: str = "avatars",
    ) -> dict:
        """
        Upload an image to Cloudinary under ``folder``.

        Returns: {"url": secure_url, "public_id": ...}
        """
        if not settings.is_cloudinary_enabled:
            raise StorageNotConfiguredError("Cloudinary is not configured")

        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                content,
                folder=folder,
                resource_type="image",
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"❌ Cloudinary upload failed for {filename}: {e}")
            raise UploadError("Image upload failed") from e

        logger.info(f"✅ Uploaded {filename} to Cloudinary ({result.get('public_id')})")
        return {"url": result.get("secure_url"), "public_id": result.get("public_id")}


storage_service = StorageService()
