# erp_sdk/middleware/middleware.py
import logging
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from erp_sdk.db.session import managed_session

logger = logging.getLogger("erp_sdk.middleware")


class DBSessionMiddleware(BaseHTTPMiddleware):
    """Каждый запрос выполняется в своей AsyncSession (через contextvar managed_session)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        async with managed_session():
            logger.debug(
                f"DBSessionMiddleware: Entered managed_session for {request.method} {request.url.path}"
            )
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"DBSessionMiddleware: Unhandled exception for {request.method} {request.url.path}"
                )
                raise
        return response
