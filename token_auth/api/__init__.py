"""
HTTP transport for the auth service.
"""
from .auth import router

__all__ = ["router"]
