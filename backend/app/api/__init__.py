"""
API routes initialization.

This module aggregates all API routers and provides a single router
to include in the main application.
"""

from fastapi import APIRouter

from app.api.routes import content, embeddings, generation, search

# Create main API router
api_router = APIRouter()

# Include generation routes (registered before /content/{id})
api_router.include_router(generation.router)

# Include content library routes
api_router.include_router(content.router)

# Include similarity search routes
api_router.include_router(search.router)

# Include embedding routes
api_router.include_router(embeddings.router)
