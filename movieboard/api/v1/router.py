from fastapi import APIRouter, Depends

from ..deps import require_session
from . import auth, episodes, imports, movies, taxonomy, uploads, users
from .public import catalog, recommendations, user, user_movie

# Dashboard routes need a session cookie
session_required = [Depends(require_session)]

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router)

api_router.include_router(taxonomy.genres_router, dependencies=session_required)
api_router.include_router(taxonomy.countries_router, dependencies=session_required)
api_router.include_router(taxonomy.movie_types_router, dependencies=session_required)
api_router.include_router(movies.router, dependencies=session_required)
api_router.include_router(imports.router, dependencies=session_required)
api_router.include_router(episodes.router, dependencies=session_required)
api_router.include_router(uploads.router, dependencies=session_required)

# Mobile / web app routes (no session cookie)
public_router = APIRouter()

public_router.include_router(catalog.router)
public_router.include_router(recommendations.router)
public_router.include_router(user_movie.router)
public_router.include_router(user.router)

__all__ = ["api_router", "public_router"]
