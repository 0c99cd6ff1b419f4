from logging import Logger
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import traceback

from src.models.schemas.responses import ErrorResponse

class ExceptionHandler:
    def __init__(self, logger: Logger):
        self.logger = logger

    def handle_exception(self, e: Exception, request_id: str) -> JSONResponse:
            if isinstance(e, ValueError):
                self.logger.error(f"Value error: {str(e)}", extra={"request_id": request_id})
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content=ErrorResponse(
                        success=False, errorMessage=f"validation error: {e}"
                    ).model_dump(),
                )
            else:
                tb_str = traceback.format_exc()
                self.logger.error(
                    f"Internal error - Type: {type(e).__name__}, Message: {str(e)}\nTraceback:\n{tb_str}", 
                    extra={"request_id": request_id}
                )
                return JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content=ErrorResponse(
                        success=False, errorMessage="an internal error just occurred"
                    ).model_dump(),
                )


def add_exception_handlers(app: FastAPI, logger: Logger) -> None:
    handler = ExceptionHandler(logger)

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "id", "unknown")
        return handler.handle_exception(exc, request_id)

    app.add_exception_handler(ValueError, _handle)
    app.add_exception_handler(Exception, _handle)
