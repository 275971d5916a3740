"""Text embeddings through an OpenAI-compatible /embeddings endpoint"""
import logging
from typing import List

import httpx

from ..config import settings
from .vector_search import VectorSearchError

logger = logging.getLogger(__name__)


async def generate_embedding(text: str) -> List[float]:
    if not settings.EMBEDDING_API_KEY:
        raise VectorSearchError("EMBEDDING_API_KEY is not configured")

    payload = {"model": settings.EMBEDDING_MODEL, "input": text.strip()}
    headers = {
        "Authorization": f"Bearer {settings.EMBEDDING_API_KEY}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(settings.EMBEDDING_API_URL, json=payload, headers=headers)

    if response.status_code != 200:
        logger.error(f"Embedding API error {response.status_code}: {response.text[:300]}")
        raise VectorSearchError(f"Embedding request failed with status {response.status_code}")

    data = response.json().get("data") or []
    if not data or not data[0].get("embedding"):
        raise VectorSearchError("Embedding response contained no vector")
    return data[0]["embedding"]
