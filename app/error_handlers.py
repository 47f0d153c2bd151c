from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from domain.errors import AppError, StateConflictError

logger = logging.getLogger(__name__)

def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        content = {"detail": exc.message, "kind": exc.kind}
        if isinstance(exc, StateConflictError) and exc.current_status:
            content["currentStatus"] = exc.current_status
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
