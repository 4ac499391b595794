from . import queue_router, session_router, status_router

__all__ = ["queue_router", "session_router", "status_router"]
