from pydantic import BaseModel
from typing import Optional


class SessionRequest(BaseModel):
    id_token: Optional[str] = None
