import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from order_events.exceptions import OrderValidationError, PublishError, RepositoryError

logger = logging.getLogger(__name__)


async def order_validation_error_handler(request: Request, exc: OrderValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "message": str(exc), "errors": exc.errors}
    )


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "message": "Database service unavailable"}
    )


async def publish_error_handler(request: Request, exc: PublishError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": False,
            "message": "Service temporarily unavailable. Please try again later.",
            "error": "Event processing failed"
        }
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderValidationError, order_validation_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(PublishError, publish_error_handler)
