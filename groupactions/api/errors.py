"""
Translation of exceptions into the JSON error envelope,
`{"success": 0, "kind": ..., "message": ...}`.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from groupactions.core.errors import GroupActionsError, Internal, ValidationFailed
from groupactions.core.models import ErrorResponse


def error_response(error: GroupActionsError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(kind=error.kind, message=error.message).model_dump(),
    )


async def groupactions_error_handler(
    request: Request, exc: GroupActionsError
) -> JSONResponse:
    log = get_logger().bind(path=request.url.path, kind=exc.kind)
    await log.ainfo("api.error", message=exc.message)
    return error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    log = get_logger().bind(path=request.url.path)
    await log.ainfo("api.error.validation", problems=problems)
    return error_response(ValidationFailed(problems))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log = get_logger().bind(path=request.url.path)
    await log.aerror("api.error.database", error=str(exc))
    return error_response(Internal(str(exc)))


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(GroupActionsError, groupactions_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    return app
