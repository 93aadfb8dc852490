import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from shared.core.exceptions import ComplianceError
from shared.helpers.json_response_helper import failure_result
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(ComplianceError)
    async def compliance_exception_handler(request: Request, exc: ComplianceError):
        logger.info("%s %s rejected: %s", request.method,
                    request.url.path, exc.message)
        return JSONResponse(
            content=failure_result(exc.message, exc.app_status_code),
            status_code=exc.http_status
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # error_response() already builds the envelope as detail
        if isinstance(exc.detail, dict) and "status_code" in exc.detail:
            wrapped = exc.detail
        else:
            wrapped = failure_result(
                str(exc.detail), str(exc.status_code or AppStatusCode.OPERATION_FAILED))
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            content=failure_result(str(exc), AppStatusCode.INVALID_INPUT),
            status_code=422
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)
        return JSONResponse(
            content=failure_result(str(exc), AppStatusCode.OPERATION_FAILED),
            status_code=500
        )
