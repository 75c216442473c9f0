import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from eduportal.core.config import IDENTITY_HEADER

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()
        caller = request.headers.get(IDENTITY_HEADER, "-")

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed after %.2fs (user %s)",
                request.method,
                request.url.path,
                time.monotonic() - start,
                caller,
            )
            raise

        duration = time.monotonic() - start
        logger.info(
            "%s %s -> %s (%.2fs, user %s)",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            caller,
        )

        return response
