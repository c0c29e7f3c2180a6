"""Per-request domain context.

Route handlers are plain functions that FastAPI runs on worker threads. The
context pushed here is copied into those threads along with the log context.
"""

from fastapi import Request

from reviews.domain import reviews
from reviews.utils.logging import add_context, clear_context


async def domain_context_middleware(request: Request, call_next):
    """Push the reviews domain context and bind the caller for logging."""
    clear_context()
    add_context(
        path=request.url.path,
        method=request.method,
        user_id=request.headers.get("x-user-id"),
    )
    with reviews.domain_context():
        response = await call_next(request)
    return response
