"""
FastAPI dependencies.

Provides dependency injection for the services built at application startup.
"""

from fastapi import Request

from slowbeam_core.kv_store import KVStore
from slowbeam_core.services import PostService, VisitorService


def get_kv_store(request: Request) -> KVStore:
    """
    Get the key-value store.

    Args:
        request: Incoming request.

    Returns:
        Store created at startup.
    """
    return request.app.state.kv_store


def get_post_service(request: Request) -> PostService:
    """
    Get the post service.

    Args:
        request: Incoming request.

    Returns:
        Post service created at startup.
    """
    return request.app.state.post_service


def get_visitor_service(request: Request) -> VisitorService:
    """
    Get the visitor service.

    Args:
        request: Incoming request.

    Returns:
        Visitor service created at startup.
    """
    return request.app.state.visitor_service
