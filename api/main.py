"""FastAPI application for the Mercado dashboard"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_cached_settings
from api.routes import analysis, players

settings = get_cached_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

CORS_ORIGINS = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]

app = FastAPI(
    title="Mercado API",
    description="LaLiga Fantasy market analytics",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis.router, prefix="/api", tags=["Analysis"])
app.include_router(players.router, prefix="/api/players", tags=["Players"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mercado-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Mercado API",
        "version": "0.1.0",
        "docs": "/api/docs",
    }
