from pydantic import BaseModel
from typing import Optional


class PresignedUrlRequest(BaseModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None
