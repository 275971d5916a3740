"""
KKPhim (phimapi.com) catalog client

Read-only access to the third-party catalog plus the helper that turns
movie-detail responses into an import payload.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_ITEMS_PER_PAGE = 24


class CatalogError(RuntimeError):
    pass


def _default_pagination(page: int) -> dict:
    return {
        "totalItems": 0,
        "totalItemsPerPage": DEFAULT_ITEMS_PER_PAGE,
        "currentPage": page,
        "totalPages": 0,
    }


class KKPhimClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, transport=None):
        self.base_url = (base_url or settings.KKPHIM_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.KKPHIM_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def _get_json(self, path: str, params: Optional[dict] = None) -> dict:
        async with self._client() as client:
            response = await client.get(path, params=params)
        if response.status_code != 200:
            raise CatalogError(f"Catalog request failed with status {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise CatalogError("Catalog returned invalid JSON") from e

    async def get_movies_list(self, page: Any = 1) -> dict:
        """
        Latest-updated movie list.

        Never raises: on failure returns an empty list, default pagination
        and an ``error`` message.
        """
        try:
            page = max(1, int(float(page)))
        except (TypeError, ValueError):
            page = 1

        try:
            data = await self._get_json("/danh-sach/phim-moi-cap-nhat-v3", params={"page": page})
            return {
                "movies": data.get("items") or [],
                "pagination": data.get("pagination") or _default_pagination(page),
            }
        except (httpx.HTTPError, CatalogError) as e:
            logger.error(f"❌ KKPhim list fetch failed (page={page}): {e}")
            return {"movies": [], "pagination": _default_pagination(page), "error": str(e)}

    async def get_movie_detail(self, slug: str) -> dict:
        """Movie detail with episodes, or ``{"movie": None, "error": ...}``."""
        if not slug or not isinstance(slug, str) or not slug.strip():
            return {"movie": None, "episodes": [], "error": "Invalid movie slug"}

        try:
            data = await self._get_json(f"/phim/{quote(slug.strip(), safe='')}")
        except (httpx.HTTPError, CatalogError) as e:
            logger.error(f"❌ KKPhim detail fetch failed ({slug}): {e}")
            return {"movie": None, "episodes": [], "error": str(e)}

        movie = data.get("movie")
        if data.get("status") is False or not movie:
            return {"movie": None, "episodes": [], "error": "Movie not found"}
        return {"movie": movie, "episodes": data.get("episodes") or []}


def format_import_payload(details: List[Dict[str, Any]]) -> dict:
    """
    Flatten KKPhim detail responses into ``{movies, episodes, episode_servers}``.

    Episodes are keyed by (movie _id, episode slug) so the same episode served
    by several server groups appears once; every server group contributes one
    server row per episode.
    """
    movies: List[dict] = []
    episodes: List[dict] = []
    servers: List[dict] = []
    seen_episodes = set()

    for detail in details:
        movie = detail.get("movie")
        if not movie:
            continue
        movies.append(movie)
        movie_ref = movie.get("_id") or movie.get("slug")

        for group in detail.get("episodes") or []:
            server_name = group.get("server_name")
            for item in group.get("server_data") or []:
                slug = item.get("slug")
                if not slug:
                    continue
                key = f"{movie_ref}:{slug}"
                if key not in seen_episodes:
                    seen_episodes.add(key)
                    episodes.append({"name": item.get("name") or slug, "slug": slug, "movie_id": movie_ref})
                servers.append({
                    "server_name": server_name,
                    "filename": item.get("filename"),
                    "link_embed": item.get("link_embed"),
                    "link_m3u8": item.get("link_m3u8"),
                    "movie_id": movie_ref,
                    "slug": slug,
                })

    return {"movies": movies, "episodes": episodes, "episode_servers": servers}


kkphim_client = KKPhimClient()
