import logging

from fastapi import Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sawari.modules.reservations.router import RESERVE_SEATS_PATH
from sawari.schemas.booking import ReserveSeatsFailure
from sawari.services.errors import ServiceError

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info("request rejected: %s", exc.message, extra={"path": request.url.path, "status": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.message})


def validation_reason(exc: RequestValidationError) -> str:
    """First validation error as a sentence, e.g. ``seats: List should have at least 1 item``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    field = next((str(part) for part in reversed(first.get("loc", ())) if not isinstance(part, int)), None)
    message = first.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field}: {message}" if field and field != "body" else message


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # reserve-seats answers with the same failure body as business rejections
    if request.url.path != RESERVE_SEATS_PATH:
        return await request_validation_exception_handler(request, exc)
    body = ReserveSeatsFailure(reason=validation_reason(exc))
    return JSONResponse(status_code=422, content=body.model_dump(by_alias=True))


EXCEPTION_HANDLERS = {
    ServiceError: service_error_handler,
    RequestValidationError: request_validation_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
