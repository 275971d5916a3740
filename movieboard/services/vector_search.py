"""
MongoDB Atlas vector search

Builds the ``$vectorSearch`` aggregation used for content search and
reshapes the raw ``aggregate`` command result into plain dicts.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pymongo import MongoClient

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_PROJECTION = {
    "_id": 1,
    "name": 1,
    "slug": 1,
    "poster_url": 1,
    "thumb_url": 1,
    "year": 1,
    "score": {"$meta": "vectorSearchScore"},
}


class VectorSearchError(RuntimeError):
    pass


@lru_cache()
def get_mongo_client() -> MongoClient:
    if not settings.MONGODB_URL:
        raise VectorSearchError("MONGODB_URL is not configured")
    return MongoClient(settings.MONGODB_URL, serverSelectionTimeoutMS=10000)


def build_vector_search_pipeline(
    index: str,
    path: str,
    query_vector: List[float],
    num_candidates: int,
    limit: int,
    filter: Optional[dict] = None,
    project: Optional[dict] = None,
) -> List[dict]:
    # headroom for the $match stage
    search_limit = limit * 3 + 1 if filter else limit * 3

    pipeline: List[dict] = [
        {
            "$vectorSearch": {
                "index": index,
                "path": path,
                "queryVector": query_vector,
                "numCandidates": num_candidates,
                "limit": search_limit,
            }
        }
    ]
    if filter:
        pipeline.append({"$match": filter})
    pipeline.append({"$project": project or DEFAULT_PROJECTION})
    pipeline.append({"$limit": limit})
    return pipeline


def _document_id(raw_id: Any) -> Optional[str]:
    if raw_id is None:
        return None
    if isinstance(raw_id, dict) and "$oid" in raw_id:
        return raw_id["$oid"]
    return str(raw_id)


def format_vector_search_results(raw: Any) -> List[Dict[str, Any]]:
    """Flatten ``cursor.firstBatch`` into dicts with a string ``id``."""
    batch = None
    if isinstance(raw, dict):
        cursor = raw.get("cursor")
        if isinstance(cursor, dict):
            batch = cursor.get("firstBatch")

    if not isinstance(batch, list):
        logger.warning(f"Unexpected vector search result structure: {type(raw).__name__}")
        return []

    results = []
    for doc in batch:
        if not isinstance(doc, dict):
            continue
        item = {key: value for key, value in doc.items() if key != "_id"}
        item["id"] = _document_id(doc.get("_id"))
        results.append(item)
    return results


def perform_vector_search(
    query_vector: List[float],
    limit: int,
    num_candidates: int,
    filter: Optional[dict] = None,
    project: Optional[dict] = None,
    collection: Optional[str] = None,
    index: Optional[str] = None,
    path: Optional[str] = None,
    client: Optional[MongoClient] = None,
) -> List[Dict[str, Any]]:
    collection = collection or settings.MOVIE_VECTOR_COLLECTION
    pipeline = build_vector_search_pipeline(
        index=index or settings.MOVIE_VECTOR_INDEX,
        path=path or settings.MOVIE_VECTOR_PATH,
        query_vector=query_vector,
        num_candidates=num_candidates,
        limit=limit,
        filter=filter,
        project=project,
    )

    try:
        mongo = client or get_mongo_client()
        raw = mongo[settings.MONGODB_DATABASE].command({
            "aggregate": collection,
            "pipeline": pipeline,
            "cursor": {},
        })
    except Exception as e:
        logger.error(f"❌ Vector search on {collection} failed: {e}", exc_info=True)
        raise

    return format_vector_search_results(raw)
