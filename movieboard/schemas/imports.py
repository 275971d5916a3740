from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class ImportPayload(BaseModel):
    """
    Bulk import/update body.

    movies are raw KKPhim movie objects; episodes and episode_servers
    reference their movie by the catalog ``_id`` (or slug).
    """
    movies: Optional[List[Dict[str, Any]]] = None
    episodes: Optional[List[Dict[str, Any]]] = None
    episode_servers: Optional[List[Dict[str, Any]]] = None


class CatalogImportRequest(BaseModel):
    slugs: Optional[List[str]] = None
