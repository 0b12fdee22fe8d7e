"""
API route modules.

Import all route modules here for easy access.
"""

from app.api.routes import content, embeddings, generation, search

__all__ = ["content", "embeddings", "generation", "search"]
