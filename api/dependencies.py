"""Shared dependencies for the API"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any

from fastapi import Depends, Header, HTTPException

from mercado.config import Settings, get_settings
from mercado.laliga_client import LaLigaAPIError, LaLigaClient

# Thread pool for running sync code
_executor = ThreadPoolExecutor(max_workers=4)


async def run_sync(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Run a synchronous function in a thread pool"""
    loop = asyncio.get_event_loop()
    if kwargs:
        return await loop.run_in_executor(_executor, lambda: func(*args, **kwargs))
    return await loop.run_in_executor(_executor, func, *args)


@lru_cache
def get_cached_settings() -> Settings:
    """Get cached application settings"""
    return get_settings()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_client(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_cached_settings),
) -> LaLigaClient:
    """LaLiga client for the caller's bearer token.

    Falls back to the configured token; 401 when neither is available.
    """
    token = _bearer_token(authorization) or settings.laliga_token
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing LaLiga Fantasy bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return LaLigaClient.from_settings(settings, token=token)


def upstream_error(e: LaLigaAPIError) -> HTTPException:
    """Map a failed upstream call to a 502 for the caller"""
    return HTTPException(status_code=502, detail=str(e))
