"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from nutrition_engine.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/cache/stats", dependencies=[Depends(require_admin)])
async def cache_stats(request: Request) -> dict[str, object]:
    """Return cache size and hit counters."""
    container: AppContainer = request.app.state.container
    stats = container.cache.stats()
    return {**asdict(stats), "hit_rate": stats.hit_rate}


@router.post("/cache/cleanup", dependencies=[Depends(require_admin)])
async def cache_cleanup(request: Request) -> dict[str, int]:
    """Remove expired cache entries now."""
    container: AppContainer = request.app.state.container
    return {"removed": container.cache.cleanup_expired()}


@router.delete("/cache", dependencies=[Depends(require_admin)])
async def cache_invalidate(request: Request, key: str | None = None) -> dict[str, int]:
    """Drop one cache key, or every entry when no key is given."""
    container: AppContainer = request.app.state.container
    if key is None:
        return {"removed": container.cache.clear()}
    return {"removed": int(container.cache.invalidate(key))}
