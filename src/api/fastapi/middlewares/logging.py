import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.utils.logging import Logger

SKIPPED_PATHS = ("/", "/api/health", "/api/ping")


class LogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        LOGGER = Logger("FastAPIApp")

        request_id = str(uuid.uuid4())
        request.state.id = request_id

        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        client = request.headers.get("x-client-name", None)

        extra = {
            "method": request.method,
            "url": str(request.url),
            "request_id": request.state.id,
            "client": client if client else "unknown",
            "ip": request.client.host if request.client else "unknown",
        }

        LOGGER.info("Incoming Request", extra)

        try:
            response = await call_next(request)
        except Exception as e:
            extra.update(
                {
                    "error": str(e),
                }
            )

            LOGGER.error("Error in request processing", extra=extra)
            raise

        extra.update(
            {
                "status_code": response.status_code,
            }
        )

        LOGGER.info("Response", extra=extra)

        return response
