"""
API Routers Package

Each router groups the endpoints of one resource and is mounted under
/api/{version} by create_app().
"""

from bookapi.routers.books import router as books_router

__all__ = ["books_router"]
